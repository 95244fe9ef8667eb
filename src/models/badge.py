"""Badge models for the rule engine"""
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from src.models.game import GameRecord
from src.models.xp import Rarity


class BadgeCategory(str, Enum):
    """Badge categories"""
    MILESTONES = "milestones"
    PERFORMANCE = "performance"
    CONSISTENCY = "consistency"
    SPECIAL = "special"


class RequirementType(str, Enum):
    """How a requirement computes its scalar"""
    STAT_SINGLE_GAME = "stat_single_game"
    STAT_TOTAL = "stat_total"
    STAT_PERCENTAGE = "stat_percentage"
    CONSECUTIVE_GAMES = "consecutive_games"
    SEASON_GOALS_COMPLETED = "season_goals_completed"


class Comparison(str, Enum):
    GTE = "gte"
    LTE = "lte"


Timeframe = Literal["game", "season", "alltime"]


class _Requirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: float
    timeframe: Optional[Timeframe] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class StatSingleGameRequirement(_Requirement):
    """Stat read straight off the triggering game"""
    type: Literal[RequirementType.STAT_SINGLE_GAME] = RequirementType.STAT_SINGLE_GAME
    stat: str
    comparison: Comparison = Comparison.GTE
    timeframe: Optional[Timeframe] = "game"


class StatTotalRequirement(_Requirement):
    """Stat summed over the season lookback window"""
    type: Literal[RequirementType.STAT_TOTAL] = RequirementType.STAT_TOTAL
    stat: str
    timeframe: Optional[Timeframe] = "season"


class StatPercentageRequirement(_Requirement):
    """Ratio stat (e.g. save percentage) over the season lookback window"""
    type: Literal[RequirementType.STAT_PERCENTAGE] = RequirementType.STAT_PERCENTAGE
    stat: str
    timeframe: Optional[Timeframe] = "season"


class ConsecutiveGamesRequirement(_Requirement):
    """Games played within the lookback window"""
    type: Literal[RequirementType.CONSECUTIVE_GAMES] = RequirementType.CONSECUTIVE_GAMES


class SeasonGoalsCompletedRequirement(_Requirement):
    """Number of season goals whose progress is complete"""
    type: Literal[RequirementType.SEASON_GOALS_COMPLETED] = RequirementType.SEASON_GOALS_COMPLETED


RequirementSpec = Annotated[
    Union[
        StatSingleGameRequirement,
        StatTotalRequirement,
        StatPercentageRequirement,
        ConsecutiveGamesRequirement,
        SeasonGoalsCompletedRequirement,
    ],
    Field(discriminator="type"),
]


class Badge(BaseModel):
    """Static catalog entry; not per-user"""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    icon_name: str
    category: BadgeCategory
    position_scope: str = "all"  # all, goalie, defender, midfielder, attacker
    rarity: Rarity = Rarity.COMMON
    requirements: tuple[RequirementSpec, ...]
    is_secret: bool = False

    def applies_to(self, position: str) -> bool:
        return self.position_scope == "all" or self.position_scope == position


class UserBadge(BaseModel):
    """A badge a user unlocked; written once, never revoked"""
    user_id: str
    badge_id: str
    unlocked_at: datetime
    triggering_event_id: Optional[str] = None
    badge: Optional[Badge] = None

    @staticmethod
    def record_id(user_id: str, badge_id: str) -> str:
        """Document id that makes the row unique per (user, badge)"""
        return f"{user_id}_{badge_id}"


class TriggerContext(BaseModel):
    """What caused a badge evaluation"""
    game: Optional[GameRecord] = None
    event_id: Optional[str] = None
