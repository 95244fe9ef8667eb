"""
XP Ledger and Leveling

Awards XP for player actions and derives levels from the running total.

Award flow:
1. Look up the reward rule for the action
2. Ask the rate limiter (cooldown, daily cap, hourly/daily ceilings)
3. amount = floor(base_amount × multiplier)
4. Append the award as pending, atomically bump the user's total, then
   commit the award so the rate limiter and history count it

Multipliers:
- game_logged: base multiplier × games in the session, capped at 3.0
- streak_milestone: base multiplier × log10(streak length + 1), capped at 5.0
- achievement_unlocked: rarity (common 1, rare 1.5, epic 2, legendary 3)
- everything else: 1

Levels:
- Rookie: 0-100 XP
- Varsity: 101-300 XP
- All-Star: 301-600 XP
- Captain: 601+ XP
"""

import logging
import math
from typing import Any, Dict, List, Optional

from src.db import queries
from src.db.store import DocumentStore
from src.exceptions import wrap_external_exception
from src.gamification.catalog import (
    GAMES_IN_SESSION_CAP,
    LEVELS,
    RARITY_MULTIPLIERS,
    STREAK_MULTIPLIER_CAP,
    XP_REWARDS,
)
from src.gamification.rate_limiter import RateLimiter
from src.models.xp import (
    ActionEvent,
    LevelInfo,
    Rarity,
    UserXP,
    XPActionType,
    XPAward,
    XPAwardResult,
    XPReward,
)
from src.observability.metrics import (
    gamification_xp_awarded_total,
    gamification_xp_awards_rejected_total,
)
from src.utils.datetime_helpers import Clock

logger = logging.getLogger(__name__)


def calculate_level_from_xp(total_xp: int) -> LevelInfo:
    """
    Calculate level from total XP

    Returns:
        LevelInfo with progress (0.0 - 1.0) through the current level and
        the XP still needed for the next one (0 at the top level)
    """
    total_xp = max(total_xp, 0)

    index = 0
    for i, (_, _, min_xp, _, _) in enumerate(LEVELS):
        if total_xp >= min_xp:
            index = i

    level_id, level_name, min_xp, max_xp, icon = LEVELS[index]
    next_level = LEVELS[index + 1] if index + 1 < len(LEVELS) else None

    if next_level is None:
        return LevelInfo(
            level_id=level_id,
            level_name=level_name,
            icon=icon,
            min_xp=min_xp,
            max_xp=max_xp,
            progress=1.0,
            xp_to_next_level=0,
        )

    next_min = next_level[2]
    span = next_min - min_xp
    return LevelInfo(
        level_id=level_id,
        level_name=level_name,
        icon=icon,
        min_xp=min_xp,
        max_xp=max_xp,
        progress=round((total_xp - min_xp) / span, 4) if span > 0 else 1.0,
        xp_to_next_level=next_min - total_xp,
        next_level_name=next_level[1],
    )


def calculate_multiplier(
    action_type: XPActionType,
    reward: XPReward,
    metadata: Dict[str, Any]
) -> float:
    """
    Multiplier applied to the base amount for one award

    Args:
        action_type: Action being awarded
        reward: Reward rule for the action
        metadata: Award context (games_in_session, streak_length, rarity)
    """
    base = reward.multiplier or 1.0

    if action_type == XPActionType.GAME_LOGGED:
        games = metadata.get("games_in_session", 1)
        return min(base * games, GAMES_IN_SESSION_CAP)

    if action_type == XPActionType.STREAK_MILESTONE:
        streak_length = metadata.get("streak_length")
        if streak_length is None:
            streak_length = 1
        streak_length = max(streak_length, 0)
        return min(base * math.log10(streak_length + 1), STREAK_MULTIPLIER_CAP)

    if action_type == XPActionType.ACHIEVEMENT_UNLOCKED:
        try:
            rarity = Rarity(metadata.get("rarity", Rarity.COMMON))
        except ValueError:
            return 1.0
        return RARITY_MULTIPLIERS.get(rarity, 1.0)

    return 1.0


def get_xp_rewards() -> Dict[XPActionType, XPReward]:
    """Copy of the reward table"""
    return dict(XP_REWARDS)


class XPLedger:
    """Single writer of XP awards and user XP totals"""

    def __init__(
        self,
        store: DocumentStore,
        rate_limiter: RateLimiter,
        clock: Optional[Clock] = None
    ):
        self.store = store
        self.rate_limiter = rate_limiter
        self.clock = clock or rate_limiter.clock

    @property
    def session_id(self) -> str:
        return self.rate_limiter.session_id

    async def award(
        self,
        user_id: str,
        action_type: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> XPAwardResult:
        """
        Award XP for an action, subject to rate limiting

        Args:
            user_id: Player's user ID
            action_type: XPActionType or its string value
            metadata: Award context stored with the award

        Returns:
            XPAwardResult; rejections are values, not exceptions

        Raises:
            StoreUnavailableError: the award could not be persisted
        """
        metadata = dict(metadata or {})

        try:
            action = XPActionType(action_type)
        except ValueError:
            logger.warning(f"Unknown XP action type '{action_type}' for user {user_id}")
            gamification_xp_awards_rejected_total.labels(
                action_type="unknown", reason="unknown_action"
            ).inc()
            return XPAwardResult.rejected("unknown_action", f"Unknown action type: {action_type}")

        reward = XP_REWARDS[action]

        decision = await self.rate_limiter.check_and_reserve(user_id, action)
        if not decision.allowed:
            gamification_xp_awards_rejected_total.labels(
                action_type=action.value, reason=decision.check
            ).inc()
            return XPAwardResult.rejected(
                decision.check,
                decision.reason,
                action_type=action,
                retry_after_minutes=decision.retry_after_minutes,
            )

        amount = math.floor(reward.base_amount * calculate_multiplier(action, reward, metadata))
        if amount <= 0:
            logger.warning(f"Computed non-positive XP ({amount}) for {action.value}, user {user_id}")
            gamification_xp_awards_rejected_total.labels(
                action_type=action.value, reason="non_positive_amount"
            ).inc()
            return XPAwardResult.rejected(
                "non_positive_amount", "No XP to award.", action_type=action
            )

        now = self.clock.now()
        event = ActionEvent(
            user_id=user_id,
            action_type=action.value,
            timestamp=now,
            metadata=metadata,
        )
        award = XPAward.from_event(event, amount, self.session_id)

        # A pending award is invisible to the rate limiter and history, so a
        # failure before the increment leaves nothing that blocks a retry
        try:
            award_id = await queries.add_xp_action(self.store, award)
            await queries.increment_total_xp(self.store, user_id, amount)
        except Exception as e:
            raise wrap_external_exception(
                e,
                operation="award_xp",
                user_id=user_id,
                context={"action_type": action.value, "amount": amount},
            )

        # The XP is credited from here on; bookkeeping failures are logged only
        self.rate_limiter.record_award(event)

        try:
            await queries.commit_xp_action(self.store, award_id)
        except Exception as e:
            logger.error(
                f"XP award {award_id} for user {user_id} credited but not committed: {e}",
                exc_info=True,
            )

        try:
            await queries.set_last_xp_update(self.store, user_id, now)
        except Exception as e:
            logger.warning(f"Failed to update last_xp_update for user {user_id}: {e}")
        gamification_xp_awarded_total.labels(action_type=action.value).inc(amount)

        logger.info(f"Awarded {amount} XP to user {user_id} for {action.value}")

        return XPAwardResult(
            awarded=True,
            amount=amount,
            action_type=action,
            message=f"+{amount} XP",
            award_id=award_id,
        )

    async def get_user_xp(self, user_id: str) -> UserXP:
        """User's total XP and level"""
        total_xp = await queries.get_total_xp(self.store, user_id)
        return UserXP(
            user_id=user_id,
            total_xp=total_xp,
            level=calculate_level_from_xp(total_xp),
        )

    async def get_xp_history(self, user_id: str, limit: int = 50) -> List[XPAward]:
        """
        Recent XP awards, newest first

        Returns an empty list when the store cannot be read.
        """
        try:
            return await queries.get_xp_actions(self.store, user_id, limit=limit)
        except Exception as e:
            logger.error(f"Error getting XP history for user {user_id}: {e}", exc_info=True)
            return []
