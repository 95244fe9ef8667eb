"""Game records and season goals"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class GameRecord(BaseModel):
    """
    Stats a player logged for one game

    Owned by the game-logging flow; the gamification engine only reads it.
    Stat keys: goals, assists, ground_balls, saves, shots_against,
    goals_allowed, caused_turnovers, faceoff_wins, faceoffs_taken
    """
    id: Optional[str] = None
    user_id: str
    created_at: datetime
    position: Optional[str] = None
    opponent: Optional[str] = None
    stats: dict[str, float] = Field(default_factory=dict)

    @field_validator("stats", mode="before")
    @classmethod
    def drop_empty_stats(cls, value):
        if value is None:
            return {}
        return {k: v for k, v in value.items() if v is not None}


class SeasonGoal(BaseModel):
    """User-set numeric target for one statistic"""
    id: Optional[str] = None
    user_id: str
    title: str
    stat_type: str
    target: float


class GoalProgress(BaseModel):
    """Derived completion of a season goal; recomputed on demand"""
    goal_id: Optional[str] = None
    title: str
    stat_type: str
    current: float
    target: float
    percentage: int = Field(ge=0, le=100)
    is_completed: bool


class ProgressSummary(BaseModel):
    """All season goals with their mean completion"""
    goals: list[GoalProgress] = Field(default_factory=list)
    overall_progress: int = 0

    def completed_goal_ids(self) -> set[str]:
        return {g.goal_id for g in self.goals if g.is_completed and g.goal_id}
