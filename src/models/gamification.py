"""Coordinator result models"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.models.achievement import Achievement
from src.models.badge import Badge, UserBadge
from src.models.game import ProgressSummary
from src.models.streak import StreakState


class GameLoggedResult(BaseModel):
    """What a logged game earned"""
    new_badges: list[Badge] = Field(default_factory=list)
    new_achievements: list[Achievement] = Field(default_factory=list)
    progress: ProgressSummary = Field(default_factory=ProgressSummary)
    completed_goals: list[str] = Field(default_factory=list)
    notifications: list[str] = Field(default_factory=list)
    xp_awarded: int = 0


class SkillActivityResult(BaseModel):
    """Streak after a logged skills activity"""
    streak: Optional[StreakState] = None
    notifications: list[str] = Field(default_factory=list)
    xp_awarded: int = 0


class DashboardSummary(BaseModel):
    """Headline numbers for the locker screen"""
    progress: ProgressSummary = Field(default_factory=ProgressSummary)
    total_xp: int = 0
    active_streaks: int = 0
    total_badges: int = 0
    recent_badges: list[UserBadge] = Field(default_factory=list)
    generated_at: Optional[datetime] = None
