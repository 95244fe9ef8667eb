"""XP ledger models"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class XPActionType(str, Enum):
    """User actions that can earn XP"""
    GAME_LOGGED = "game_logged"
    PROFILE_COMPLETED = "profile_completed"
    STREAK_MILESTONE = "streak_milestone"
    STAT_IMPROVEMENT = "stat_improvement"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    DAILY_LOGIN = "daily_login"
    SOCIAL_SHARE = "social_share"
    TUTORIAL_COMPLETED = "tutorial_completed"
    SEASON_GOAL_SET = "season_goal_set"
    SEASON_GOAL_ACHIEVED = "season_goal_achieved"


class Rarity(str, Enum):
    """Badge/achievement tier controlling the unlock XP bonus"""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class XPReward(BaseModel):
    """Reward rule for one action type"""
    model_config = ConfigDict(frozen=True)

    base_amount: int
    multiplier: Optional[float] = None
    max_per_day: Optional[int] = None
    cooldown_minutes: Optional[int] = None


class ActionEvent(BaseModel):
    """A timestamped user action; never mutated once appended"""
    model_config = ConfigDict(frozen=True)

    user_id: str
    action_type: str
    timestamp: datetime
    amount: Optional[float] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def identity(self) -> tuple[str, str, datetime]:
        return (self.user_id, self.action_type, self.timestamp)


class XPAward(BaseModel):
    """One successful XP award"""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    user_id: str
    action_type: XPActionType
    amount: int = Field(gt=0)
    timestamp: datetime
    session_id: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_event(cls, event: ActionEvent, amount: int, session_id: str) -> "XPAward":
        return cls(
            user_id=event.user_id,
            action_type=XPActionType(event.action_type),
            amount=amount,
            timestamp=event.timestamp,
            session_id=session_id,
            metadata=dict(event.metadata),
        )


class RateLimitDecision(BaseModel):
    """Outcome of a rate limiter check"""
    allowed: bool
    reason: Optional[str] = None
    check: Optional[str] = None  # cooldown, daily_action_cap, hourly, daily
    retry_after_minutes: Optional[int] = None

    @classmethod
    def allow(cls) -> "RateLimitDecision":
        return cls(allowed=True)

    @classmethod
    def deny(
        cls,
        check: str,
        reason: str,
        retry_after_minutes: Optional[int] = None
    ) -> "RateLimitDecision":
        return cls(
            allowed=False,
            check=check,
            reason=reason,
            retry_after_minutes=retry_after_minutes,
        )


class XPAwardResult(BaseModel):
    """Outcome of an award call: Awarded(amount) or Rejected(reason)"""
    awarded: bool
    amount: int = 0
    action_type: Optional[XPActionType] = None
    reason: Optional[str] = None  # machine-readable rejection code
    message: str = ""
    retry_after_minutes: Optional[int] = None
    award_id: Optional[str] = None

    @classmethod
    def rejected(
        cls,
        reason: str,
        message: str,
        action_type: Optional[XPActionType] = None,
        retry_after_minutes: Optional[int] = None
    ) -> "XPAwardResult":
        return cls(
            awarded=False,
            reason=reason,
            message=message,
            action_type=action_type,
            retry_after_minutes=retry_after_minutes,
        )


class LevelInfo(BaseModel):
    """Level derived from total XP"""
    level_id: str
    level_name: str
    icon: str
    min_xp: int
    max_xp: Optional[int] = None  # None for the top level
    progress: float  # 0.0 - 1.0 within the current level
    xp_to_next_level: int
    next_level_name: Optional[str] = None


class UserXP(BaseModel):
    """User's XP total with level information"""
    user_id: str
    total_xp: int
    level: LevelInfo
