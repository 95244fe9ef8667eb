"""Unit tests for XP rate limiting (src/gamification/rate_limiter.py)"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from src.db.store import SUSPICIOUS_ACTIVITY, Filter, InMemoryDocumentStore
from src.gamification.rate_limiter import RateLimitConfig, RateLimiter, remaining_minutes
from src.gamification.xp_system import XPLedger
from src.models.xp import ActionEvent, XPActionType


class FailingQueryStore(InMemoryDocumentStore):
    """Store whose reads always fail"""

    async def query(self, *args, **kwargs):
        raise RuntimeError("connection reset")


# ============================================================================
# Cooldown
# ============================================================================

def test_remaining_minutes_rounds_up():
    now = datetime(2024, 5, 15, 15, 0, tzinfo=timezone.utc)
    assert remaining_minutes(now - timedelta(minutes=10, seconds=30), 30, now) == 20
    assert remaining_minutes(now - timedelta(minutes=29, seconds=59), 30, now) == 1
    assert remaining_minutes(now - timedelta(minutes=30), 30, now) == 0
    assert remaining_minutes(now - timedelta(hours=2), 30, now) == 0


@pytest.mark.asyncio
async def test_second_game_within_cooldown_denied(ledger, clock, test_user_id):
    """A second game_logged inside the 30 minute cooldown is denied"""
    first = await ledger.award(test_user_id, XPActionType.GAME_LOGGED)
    assert first.awarded

    clock.advance(minutes=10)
    second = await ledger.award(test_user_id, XPActionType.GAME_LOGGED)

    assert not second.awarded
    assert second.reason == "cooldown"
    assert second.retry_after_minutes == 20
    assert second.message == "Action on cooldown. Try again in 20 minutes."


@pytest.mark.asyncio
async def test_game_allowed_after_cooldown_window(ledger, clock, test_user_id):
    await ledger.award(test_user_id, XPActionType.GAME_LOGGED)

    clock.advance(minutes=31)
    result = await ledger.award(test_user_id, XPActionType.GAME_LOGGED)

    assert result.awarded


@pytest.mark.asyncio
async def test_cooldown_enforced_from_store_without_cache(store, clock, limits, test_user_id):
    """A fresh process (empty action cache) still sees the cooldown"""
    first_limiter = RateLimiter(store, clock=clock, limits=limits)
    await XPLedger(store, first_limiter, clock=clock).award(test_user_id, XPActionType.DAILY_LOGIN)

    clock.advance(hours=2)
    fresh_limiter = RateLimiter(store, clock=clock, limits=limits)
    decision = await fresh_limiter.check_and_reserve(test_user_id, XPActionType.DAILY_LOGIN)

    assert not decision.allowed
    assert decision.check == "cooldown"
    assert decision.retry_after_minutes == 22 * 60


@pytest.mark.asyncio
async def test_cooldown_is_per_action_type(ledger, clock, test_user_id):
    await ledger.award(test_user_id, XPActionType.GAME_LOGGED)
    clock.advance(minutes=1)

    result = await ledger.award(test_user_id, XPActionType.STAT_IMPROVEMENT)

    assert result.awarded


@pytest.mark.asyncio
async def test_cooldown_is_per_user(ledger):
    await ledger.award("player-1", XPActionType.GAME_LOGGED)
    result = await ledger.award("player-2", XPActionType.GAME_LOGGED)

    assert result.awarded


# ============================================================================
# Daily action cap
# ============================================================================

@pytest.mark.asyncio
async def test_daily_action_cap(ledger, clock, test_user_id):
    """profile_completed pays 100 XP at most once per day"""
    assert (await ledger.award(test_user_id, XPActionType.PROFILE_COMPLETED)).awarded

    clock.advance(minutes=5)
    result = await ledger.award(test_user_id, XPActionType.PROFILE_COMPLETED)

    assert not result.awarded
    assert result.reason == "daily_action_cap"


@pytest.mark.asyncio
async def test_daily_action_cap_resets_at_local_midnight(ledger, clock, test_user_id):
    await ledger.award(test_user_id, XPActionType.PROFILE_COMPLETED)

    # 15:00 UTC -> 00:30 UTC next day
    clock.advance(hours=9, minutes=30)
    result = await ledger.award(test_user_id, XPActionType.PROFILE_COMPLETED)

    assert result.awarded


# ============================================================================
# Global ceilings
# ============================================================================

@pytest.mark.asyncio
async def test_hourly_limit_and_suspicious_activity(store, clock, test_user_id):
    limits = RateLimitConfig(max_actions_per_hour=3, max_actions_per_day=200, suspicious_threshold=3)
    limiter = RateLimiter(store, clock=clock, limits=limits, session_id="s-1")
    ledger = XPLedger(store, limiter, clock=clock)

    for _ in range(3):
        assert (await ledger.award(test_user_id, XPActionType.TUTORIAL_COMPLETED)).awarded
        clock.advance(minutes=1)

    result = await ledger.award(test_user_id, XPActionType.TUTORIAL_COMPLETED)

    assert not result.awarded
    assert result.reason == "hourly"

    flagged = await store.query(SUSPICIOUS_ACTIVITY, [Filter("user_id", "==", test_user_id)])
    assert len(flagged) == 1
    assert flagged[0]["type"] == "high_frequency_actions"
    assert flagged[0]["details"] == {"actions_in_last_hour": 3}
    assert flagged[0]["session_id"] == "s-1"


@pytest.mark.asyncio
async def test_hourly_window_is_trailing(store, clock, test_user_id):
    limits = RateLimitConfig(max_actions_per_hour=2, max_actions_per_day=200)
    ledger = XPLedger(store, RateLimiter(store, clock=clock, limits=limits), clock=clock)

    await ledger.award(test_user_id, XPActionType.TUTORIAL_COMPLETED)
    await ledger.award(test_user_id, XPActionType.TUTORIAL_COMPLETED)
    clock.advance(minutes=61)

    assert (await ledger.award(test_user_id, XPActionType.TUTORIAL_COMPLETED)).awarded


@pytest.mark.asyncio
async def test_suspicious_threshold_does_not_block(store, clock, test_user_id):
    limits = RateLimitConfig(max_actions_per_hour=50, max_actions_per_day=200, suspicious_threshold=2)
    ledger = XPLedger(store, RateLimiter(store, clock=clock, limits=limits), clock=clock)

    results = [await ledger.award(test_user_id, XPActionType.TUTORIAL_COMPLETED) for _ in range(3)]

    assert all(r.awarded for r in results)
    assert store.count(SUSPICIOUS_ACTIVITY) == 1


@pytest.mark.asyncio
async def test_daily_global_limit(store, clock, test_user_id):
    limits = RateLimitConfig(max_actions_per_hour=100, max_actions_per_day=2)
    ledger = XPLedger(store, RateLimiter(store, clock=clock, limits=limits), clock=clock)

    await ledger.award(test_user_id, XPActionType.TUTORIAL_COMPLETED)
    clock.advance(hours=2)
    await ledger.award(test_user_id, XPActionType.SEASON_GOAL_SET)
    clock.advance(hours=2)
    result = await ledger.award(test_user_id, XPActionType.SOCIAL_SHARE)

    assert not result.awarded
    assert result.reason == "daily"


@pytest.mark.asyncio
async def test_checks_run_in_order(store, clock, limits, test_user_id):
    """Cooldown wins over the daily cap when both would deny"""
    ledger = XPLedger(store, RateLimiter(store, clock=clock, limits=limits), clock=clock)
    await ledger.award(test_user_id, XPActionType.DAILY_LOGIN)

    clock.advance(minutes=1)
    result = await ledger.award(test_user_id, XPActionType.DAILY_LOGIN)

    assert result.reason == "cooldown"


# ============================================================================
# Fail open
# ============================================================================

@pytest.mark.asyncio
async def test_store_read_failure_fails_open(clock, limits, test_user_id):
    limiter = RateLimiter(FailingQueryStore(), clock=clock, limits=limits)

    decision = await limiter.check_and_reserve(test_user_id, XPActionType.GAME_LOGGED)

    assert decision.allowed


@pytest.mark.asyncio
async def test_single_check_failure_skips_only_that_check(rate_limiter, test_user_id):
    with patch(
        "src.gamification.rate_limiter.queries.count_xp_actions_since",
        AsyncMock(side_effect=TimeoutError("slow")),
    ):
        decision = await rate_limiter.check_and_reserve(test_user_id, XPActionType.TUTORIAL_COMPLETED)

    assert decision.allowed


@pytest.mark.asyncio
async def test_cached_cooldown_applies_when_store_fails(clock, limits, action_cache, test_user_id):
    limiter = RateLimiter(FailingQueryStore(), clock=clock, action_cache=action_cache, limits=limits)
    limiter.record_award(ActionEvent(user_id=test_user_id, action_type="game_logged", timestamp=clock.now()))
    clock.advance(minutes=5)

    decision = await limiter.check_and_reserve(test_user_id, XPActionType.GAME_LOGGED)

    assert not decision.allowed
    assert decision.retry_after_minutes == 25


def test_rate_limit_config_from_settings():
    with patch("src.gamification.rate_limiter.config") as mock_config:
        mock_config.RATE_LIMIT_MAX_PER_HOUR = 10
        mock_config.RATE_LIMIT_MAX_PER_DAY = 40
        mock_config.RATE_LIMIT_SUSPICIOUS_THRESHOLD = 20
        mock_config.RATE_LIMIT_QUERY_LIMIT = 100

        limits = RateLimitConfig.from_settings()

    assert limits == RateLimitConfig(10, 40, 20, 100)
