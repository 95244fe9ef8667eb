"""
Standardized Date/Time Handling Utilities

This module provides centralized functions for date/time operations to ensure:
1. All stored timestamps are timezone-aware UTC
2. Calendar days (streaks, daily XP caps) are cut at local midnight
3. Time is read through an injectable Clock so tests control it

CRITICAL RULES:
- Always store datetimes as UTC (use to_utc())
- Always derive calendar days with local_day()
- Never mix naive and aware datetimes
"""

import logging
from datetime import datetime, date, time, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from src.config import TRACKER_TIMEZONE

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"


def get_tracker_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Resolve the timezone used for calendar-day boundaries

    Args:
        tz_name: IANA timezone name, defaults to TRACKER_TIMEZONE

    Returns:
        ZoneInfo object, UTC if the name is invalid
    """
    tz_str = tz_name or TRACKER_TIMEZONE or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(tz_str)
    except Exception as e:
        logger.error(f"Invalid timezone '{tz_str}': {e}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to aware UTC (naive values are assumed to be UTC)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_day(value: Union[datetime, date], tz: ZoneInfo) -> date:
    """
    Normalize a timestamp to its local calendar day

    Args:
        value: Datetime (aware or naive UTC) or date
        tz: Timezone whose midnight cuts the day

    Returns:
        Calendar date in that timezone
    """
    if isinstance(value, datetime):
        return to_utc(value).astimezone(tz).date()
    return value


def start_of_local_day(day: date, tz: ZoneInfo) -> datetime:
    """Local midnight of a calendar day, expressed in UTC"""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


class Clock:
    """
    Source of the current time

    Injected into the rate limiter, XP ledger and streak calculator so
    cooldowns and day boundaries never read the wall clock directly.
    """

    def __init__(self, tz: Optional[ZoneInfo] = None):
        self.tz = tz or get_tracker_timezone()

    def now(self) -> datetime:
        """Current time as aware UTC"""
        return datetime.now(timezone.utc)

    def today(self) -> date:
        """Current local calendar day"""
        return local_day(self.now(), self.tz)

    def yesterday(self) -> date:
        return self.today() - timedelta(days=1)

    def start_of_today(self) -> datetime:
        """Local midnight of today, in UTC"""
        return start_of_local_day(self.today(), self.tz)


class FrozenClock(Clock):
    """
    Clock pinned to a fixed instant that only moves when told to

    Used by tests and by replay tooling.
    """

    def __init__(self, current: datetime, tz: Optional[ZoneInfo] = None):
        super().__init__(tz)
        self._current = to_utc(current)

    def now(self) -> datetime:
        return self._current

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward, e.g. advance(minutes=31)"""
        self._current = self._current + timedelta(**kwargs)
        return self._current

    def set(self, current: datetime) -> None:
        self._current = to_utc(current)
