"""Streak models for skills activities"""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from src.models.xp import ActionEvent


class ActivityType(str, Enum):
    """Skill activities tracked with daily streaks"""
    WALL_BALL = "wall_ball"
    DRILLS = "drills"
    SKILLS_PRACTICE = "skills_practice"

    @property
    def display_name(self) -> str:
        return {
            ActivityType.WALL_BALL: "Wall Ball",
            ActivityType.DRILLS: "Drills",
            ActivityType.SKILLS_PRACTICE: "Skills Practice",
        }[self]


class StreakState(BaseModel):
    """
    Current/longest consecutive-day streak for one activity type

    Derived from the activity log; the copy cached on the user record is
    only a fast path.
    """
    user_id: str
    activity_type: ActivityType
    current: int = Field(default=0, ge=0)
    longest: int = Field(default=0, ge=0)
    last_activity_date: Optional[date] = None
    is_active: bool = False


class StreakActivity(BaseModel):
    """One logged skills activity"""
    id: Optional[str] = None
    user_id: str
    activity_type: ActivityType
    timestamp: datetime
    day: date
    duration: int = 0  # minutes
    notes: str = ""

    @classmethod
    def from_event(cls, event: ActionEvent, day: date) -> "StreakActivity":
        """Activity for the local day an action event fell on"""
        return cls(
            user_id=event.user_id,
            activity_type=ActivityType(event.action_type),
            timestamp=event.timestamp,
            day=day,
            duration=int(event.amount or 0),
            notes=event.metadata.get("notes", ""),
        )
