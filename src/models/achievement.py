"""Achievement models for gamification"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Any, Literal
from datetime import datetime

from src.models.xp import Rarity


class AchievementCategory(str, Enum):
    """Achievement categories"""
    GAMES = "games"
    STATS = "stats"
    STREAKS = "streaks"
    SOCIAL = "social"
    MILESTONES = "milestones"
    SEASONAL = "seasonal"
    SPECIAL = "special"


class AchievementRequirementType(str, Enum):
    """Progress sources for achievements"""
    GAMES_LOGGED = "games_logged"
    TOTAL_XP = "total_xp"
    STREAK_DAYS = "streak_days"
    STAT_VALUE = "stat_value"
    SOCIAL_SHARES = "social_shares"
    CONSECUTIVE_GAMES = "consecutive_games"


class AchievementRequirement(BaseModel):
    """One progress source and its target"""
    model_config = ConfigDict(frozen=True)

    type: AchievementRequirementType
    target: int
    timeframe: Optional[Literal["daily", "weekly", "monthly", "seasonal", "alltime"]] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Achievement(BaseModel):
    """Achievement definition"""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    category: AchievementCategory
    rarity: Rarity
    xp_reward: int
    icon_name: str
    requirements: tuple[AchievementRequirement, ...]
    is_secret: bool = False


class AchievementProgress(BaseModel):
    """Progress toward one achievement"""
    achievement_id: str
    current: int
    maximum: int
    percentage: int = Field(ge=0, le=100)
    is_completed: bool


class UserAchievement(BaseModel):
    """User's unlocked achievement"""
    user_id: str
    achievement_id: str
    unlocked_at: datetime
    xp_awarded: int = 0
    achievement: Optional[Achievement] = None
