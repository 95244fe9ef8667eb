"""
Season Goal Progress

Goal completion is derived from recent games on every read, using the same
stat aggregation as the badge engine.

Improvement areas picked during onboarding are listed after the season goals
as open goals at 0%, and count toward the overall mean.
"""

import logging
from typing import Iterable, List, Optional

from src import config
from src.db import queries
from src.db.store import DocumentStore
from src.gamification.catalog import IMPROVEMENT_AREA_TITLES, IMPROVEMENT_STAT_TYPE
from src.gamification.stats import aggregate_stat
from src.models.game import GameRecord, GoalProgress, ProgressSummary, SeasonGoal

logger = logging.getLogger(__name__)


def build_goal_progress(goal: SeasonGoal, games: Iterable[GameRecord]) -> GoalProgress:
    """Progress of one goal over the given games"""
    current = aggregate_stat(games, goal.stat_type)

    if goal.target > 0:
        percentage = round(min(max(current / goal.target * 100, 0), 100))
    else:
        percentage = 0

    return GoalProgress(
        goal_id=goal.id,
        title=goal.title,
        stat_type=goal.stat_type,
        current=current,
        target=goal.target,
        percentage=percentage,
        is_completed=goal.target > 0 and current >= goal.target,
    )


def build_improvement_progress(area_id: str) -> GoalProgress:
    """Onboarding improvement area as an open goal; never completed"""
    return GoalProgress(
        goal_id=area_id,
        title=IMPROVEMENT_AREA_TITLES.get(area_id, area_id),
        stat_type=IMPROVEMENT_STAT_TYPE,
        current=0,
        target=1,
        percentage=0,
        is_completed=False,
    )


def get_progress_from_games(
    goals: List[SeasonGoal],
    games: Iterable[GameRecord],
    improvement_areas: Iterable[str] = ()
) -> ProgressSummary:
    """
    Progress for a set of goals over the given games

    Pure, so callers can compute the state before or after a specific game.
    """
    games = list(games)
    goal_progress = [build_goal_progress(goal, games) for goal in goals]
    goal_progress.extend(build_improvement_progress(area) for area in improvement_areas)

    if not goal_progress:
        return ProgressSummary()

    overall = round(sum(g.percentage for g in goal_progress) / len(goal_progress))
    return ProgressSummary(goals=goal_progress, overall_progress=overall)


class ProgressAggregator:
    """Season goal progress for a user"""

    def __init__(self, store: DocumentStore, lookback: Optional[int] = None):
        self.store = store
        self.lookback = lookback or config.BADGE_GAME_LOOKBACK

    async def get_goals(self, user_id: str) -> List[SeasonGoal]:
        return await queries.get_season_goals(self.store, user_id)

    async def get_improvement_areas(self, user_id: str) -> List[str]:
        return await queries.get_improvement_areas(self.store, user_id)

    async def get_recent_games(self, user_id: str) -> List[GameRecord]:
        return await queries.get_recent_games(self.store, user_id, limit=self.lookback)

    async def get_progress(
        self,
        user_id: str,
        games: Optional[List[GameRecord]] = None
    ) -> ProgressSummary:
        """
        Progress toward every season goal and improvement area

        Args:
            user_id: Player's user ID
            games: Already-fetched recent games, to avoid a second read
        """
        goals = await self.get_goals(user_id)
        areas = await self.get_improvement_areas(user_id)
        if not goals and not areas:
            return ProgressSummary()

        if games is None and goals:
            games = await self.get_recent_games(user_id)

        summary = get_progress_from_games(goals, games or [], areas)
        logger.debug(
            f"Progress for user {user_id}: {len(goals)} goals, {len(areas)} improvement areas, "
            f"overall {summary.overall_progress}%"
        )
        return summary

    async def check_goal_completion(self, user_id: str, stat_type: str) -> bool:
        """
        Whether the user's first goal on a stat is completed

        Returns False when there is no such goal or progress cannot be read.
        """
        try:
            progress = await self.get_progress(user_id)
        except Exception as e:
            logger.error(f"Error checking {stat_type} goal for user {user_id}: {e}", exc_info=True)
            return False

        goal = next((g for g in progress.goals if g.stat_type == stat_type), None)
        return goal is not None and goal.is_completed
