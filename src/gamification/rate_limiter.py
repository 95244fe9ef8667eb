"""
XP Rate Limiter

Guards the XP ledger against farming. Checks run cheapest and most specific
first, and the first failing check wins:

1. Per-action cooldown (in-process cache, then the store)
2. Per-action daily XP cap (since local midnight)
3. Global hourly action ceiling (trailing 60 minutes)
4. Global daily action ceiling (trailing 24 hours)

Windows are computed by range-querying the XP action log at call time, so
there are no standing counters to expire. Every store read fails open: a
failed read skips that check, because this protects a reward system and must
never block a legitimate player.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from src import config
from src.cache.action_cache import ActionCache
from src.db import queries
from src.db.store import DocumentStore
from src.gamification.catalog import XP_REWARDS
from src.models.xp import ActionEvent, RateLimitDecision, XPActionType
from src.observability.metrics import (
    gamification_rate_limit_fail_open_total,
    gamification_suspicious_activity_total,
)
from src.utils.datetime_helpers import Clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    """Global action ceilings"""
    max_actions_per_hour: int = 50
    max_actions_per_day: int = 200
    suspicious_threshold: int = 100  # actions/hour that get logged for review
    query_limit: int = 365

    @classmethod
    def from_settings(cls) -> "RateLimitConfig":
        return cls(
            max_actions_per_hour=config.RATE_LIMIT_MAX_PER_HOUR,
            max_actions_per_day=config.RATE_LIMIT_MAX_PER_DAY,
            suspicious_threshold=config.RATE_LIMIT_SUSPICIOUS_THRESHOLD,
            query_limit=config.RATE_LIMIT_QUERY_LIMIT,
        )


def remaining_minutes(last_action: datetime, cooldown_minutes: int, now: datetime) -> int:
    """Whole minutes left on a cooldown, rounded up; 0 when it has elapsed"""
    remaining = timedelta(minutes=cooldown_minutes) - (now - last_action)
    if remaining <= timedelta(0):
        return 0
    return math.ceil(remaining.total_seconds() / 60)


class RateLimiter:
    """
    Per-user XP rate limiting.

    The action cache is a fast path in front of the authoritative
    store-backed cooldown check; it is injected together with the clock so
    tests control both.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Optional[Clock] = None,
        action_cache: Optional[ActionCache] = None,
        limits: Optional[RateLimitConfig] = None,
        session_id: Optional[str] = None,
    ):
        self.store = store
        self.clock = clock or Clock()
        self.action_cache = action_cache if action_cache is not None else ActionCache()
        self.limits = limits or RateLimitConfig.from_settings()
        self.session_id = session_id or uuid4().hex
        logger.debug("RateLimiter initialized")

    async def check_and_reserve(self, user_id: str, action_type: XPActionType) -> RateLimitDecision:
        """
        Decide whether an XP award for this action may proceed

        Args:
            user_id: Player's user ID
            action_type: Action about to be awarded

        Returns:
            RateLimitDecision; denials carry a human-readable reason and,
            for cooldowns, the minutes until the action is available again
        """
        now = self.clock.now()

        for check in (
            self._check_cooldown,
            self._check_daily_action_cap,
            self._check_hourly_limit,
            self._check_daily_limit,
        ):
            decision = await check(user_id, action_type, now)
            if not decision.allowed:
                logger.info(
                    f"Rate limit denied {action_type.value} for user {user_id}: "
                    f"{decision.check} ({decision.reason})"
                )
                return decision

        return RateLimitDecision.allow()

    def record_award(self, event: ActionEvent) -> None:
        """Remember a successful award for the in-process cooldown fast path"""
        user_id, action_type, awarded_at = event.identity
        self.action_cache.set(user_id, action_type, awarded_at)

    # ============================================
    # Individual checks
    # ============================================

    async def _check_cooldown(
        self,
        user_id: str,
        action_type: XPActionType,
        now: datetime
    ) -> RateLimitDecision:
        reward = XP_REWARDS[action_type]
        if not reward.cooldown_minutes:
            return RateLimitDecision.allow()

        cached = self.action_cache.get(user_id, action_type.value)
        if cached is not None:
            minutes = remaining_minutes(cached, reward.cooldown_minutes, now)
            if minutes > 0:
                return self._cooldown_denial(minutes)

        try:
            since = now - timedelta(minutes=reward.cooldown_minutes)
            last = await queries.get_last_xp_action(self.store, user_id, action_type.value, since)
        except Exception as e:
            return self._fail_open("cooldown", user_id, e)

        if last and last.get("timestamp"):
            minutes = remaining_minutes(last["timestamp"], reward.cooldown_minutes, now)
            if minutes > 0:
                return self._cooldown_denial(minutes)

        return RateLimitDecision.allow()

    async def _check_daily_action_cap(
        self,
        user_id: str,
        action_type: XPActionType,
        now: datetime
    ) -> RateLimitDecision:
        reward = XP_REWARDS[action_type]
        if not reward.max_per_day:
            return RateLimitDecision.allow()

        try:
            awarded_today = await queries.sum_xp_since(
                self.store,
                user_id,
                action_type.value,
                self.clock.start_of_today(),
                self.limits.query_limit,
            )
        except Exception as e:
            return self._fail_open("daily_action_cap", user_id, e)

        if awarded_today >= reward.max_per_day:
            return RateLimitDecision.deny(
                "daily_action_cap",
                "Daily XP limit reached for this action.",
            )
        return RateLimitDecision.allow()

    async def _check_hourly_limit(
        self,
        user_id: str,
        action_type: XPActionType,
        now: datetime
    ) -> RateLimitDecision:
        try:
            count = await queries.count_xp_actions_since(
                self.store, user_id, now - timedelta(hours=1), self.limits.query_limit
            )
        except Exception as e:
            return self._fail_open("hourly", user_id, e)

        # Flag independently of the ceiling so the audit trail is kept even
        # when the ceiling is configured above the threshold
        if count >= self.limits.suspicious_threshold:
            await self._log_suspicious_activity(user_id, count, now)

        if count >= self.limits.max_actions_per_hour:
            return RateLimitDecision.deny("hourly", "Hourly rate limit exceeded.")
        return RateLimitDecision.allow()

    async def _check_daily_limit(
        self,
        user_id: str,
        action_type: XPActionType,
        now: datetime
    ) -> RateLimitDecision:
        try:
            count = await queries.count_xp_actions_since(
                self.store, user_id, now - timedelta(hours=24), self.limits.query_limit
            )
        except Exception as e:
            return self._fail_open("daily", user_id, e)

        if count >= self.limits.max_actions_per_day:
            return RateLimitDecision.deny("daily", "Daily rate limit exceeded.")
        return RateLimitDecision.allow()

    # ============================================
    # Helpers
    # ============================================

    @staticmethod
    def _cooldown_denial(minutes: int) -> RateLimitDecision:
        return RateLimitDecision.deny(
            "cooldown",
            f"Action on cooldown. Try again in {minutes} minutes.",
            retry_after_minutes=minutes,
        )

    @staticmethod
    def _fail_open(check: str, user_id: str, error: Exception) -> RateLimitDecision:
        logger.error(f"Rate limit {check} check failed for user {user_id}, allowing: {error}", exc_info=True)
        gamification_rate_limit_fail_open_total.labels(check=check).inc()
        return RateLimitDecision.allow()

    async def _log_suspicious_activity(self, user_id: str, count: int, now: datetime) -> None:
        logger.warning(f"Suspicious activity: user {user_id} made {count} XP actions in the last hour")
        gamification_suspicious_activity_total.inc()
        try:
            await queries.log_suspicious_activity(
                self.store,
                user_id,
                "high_frequency_actions",
                {"actions_in_last_hour": count},
                self.session_id,
                now,
            )
        except Exception as e:
            logger.error(f"Failed to log suspicious activity for user {user_id}: {e}")
