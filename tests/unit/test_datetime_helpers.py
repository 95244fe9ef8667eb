"""
Tests for datetime helper utilities

Covers UTC normalization, local calendar days and the injectable clocks.
"""
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from src.utils.datetime_helpers import (
    Clock,
    FrozenClock,
    get_tracker_timezone,
    local_day,
    start_of_local_day,
    to_utc,
)


LA = ZoneInfo("America/Los_Angeles")


class TestTimezone:

    def test_valid_name(self):
        assert get_tracker_timezone("Europe/Berlin") == ZoneInfo("Europe/Berlin")

    def test_invalid_name_falls_back_to_utc(self):
        assert get_tracker_timezone("Not/AZone") == ZoneInfo("UTC")


class TestConversions:

    def test_naive_is_treated_as_utc(self):
        naive = datetime(2024, 5, 15, 12, 0)
        assert to_utc(naive) == datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)

    def test_aware_is_converted(self):
        berlin = datetime(2024, 5, 15, 12, 0, tzinfo=ZoneInfo("Europe/Berlin"))
        assert to_utc(berlin).hour == 10

    def test_local_day_crosses_midnight(self):
        # 03:00 UTC is still the previous evening in Los Angeles
        instant = datetime(2024, 5, 16, 3, 0, tzinfo=timezone.utc)
        assert local_day(instant, LA) == date(2024, 5, 15)
        assert local_day(instant, ZoneInfo("UTC")) == date(2024, 5, 16)

    def test_local_day_passes_dates_through(self):
        assert local_day(date(2024, 1, 1), LA) == date(2024, 1, 1)

    def test_start_of_local_day(self):
        start = start_of_local_day(date(2024, 5, 15), LA)
        assert start == datetime(2024, 5, 15, 7, 0, tzinfo=timezone.utc)


class TestClocks:

    def test_clock_now_is_aware_utc(self):
        now = Clock(ZoneInfo("UTC")).now()
        assert now.tzinfo == timezone.utc

    def test_frozen_clock_advance(self):
        clock = FrozenClock(datetime(2024, 5, 15, 23, 30, tzinfo=timezone.utc), tz=ZoneInfo("UTC"))
        assert clock.today() == date(2024, 5, 15)

        clock.advance(minutes=31)

        assert clock.today() == date(2024, 5, 16)
        assert clock.yesterday() == date(2024, 5, 15)
        assert clock.start_of_today() == datetime(2024, 5, 16, tzinfo=timezone.utc)

    def test_frozen_clock_in_local_zone(self):
        clock = FrozenClock(datetime(2024, 5, 16, 3, 0, tzinfo=timezone.utc), tz=LA)
        assert clock.today() == date(2024, 5, 15)
        assert clock.start_of_today() == datetime(2024, 5, 15, 7, 0, tzinfo=timezone.utc)

    def test_frozen_clock_set(self):
        clock = FrozenClock(datetime(2024, 5, 15, tzinfo=timezone.utc))
        clock.set(datetime(2024, 6, 1))
        assert clock.now() == datetime(2024, 6, 1, tzinfo=timezone.utc)
        assert clock.now() - timedelta(days=1) == datetime(2024, 5, 31, tzinfo=timezone.utc)
