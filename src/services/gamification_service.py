"""
GamificationService - Gamification Coordinator

Entry point the rest of the app calls after a game or a skills activity is
logged. Sequences the XP ledger, streak calculator, badge engine,
achievement system and progress aggregator, and turns their results into
player-facing notifications.

Gamification never breaks the flow that triggered it: every entry point
logs, reports and swallows its errors and returns an empty result.
"""

import logging
from datetime import timedelta
from typing import List, Optional

from src.db.store import DocumentStore
from src.gamification.achievement_system import AchievementSystem
from src.gamification.badge_system import BadgeEngine
from src.gamification.catalog import STREAK_MILESTONES
from src.gamification.progress import ProgressAggregator, get_progress_from_games
from src.gamification.streak_system import StreakCalculator, parse_activity_type
from src.gamification.xp_system import XPLedger
from src.models.badge import TriggerContext
from src.models.game import GameRecord, ProgressSummary
from src.models.gamification import DashboardSummary, GameLoggedResult, SkillActivityResult
from src.models.streak import ActivityType, StreakState
from src.models.xp import XPActionType
from src.observability.metrics import gamification_errors_total, gamification_event_duration_seconds
from src.observability.sentry_config import capture_gamification_error
from src.utils.datetime_helpers import Clock

logger = logging.getLogger(__name__)

RECENT_BADGE_DAYS = 7


def streak_notifications(state: StreakState) -> List[str]:
    """Messages for a streak after a logged activity"""
    name = state.activity_type.display_name
    notifications = []

    if state.current == 1:
        notifications.append(f"🔥 Started a new {name} streak!")
    elif state.current > 1:
        notifications.append(f"🔥 {state.current} day {name} streak!")
        if state.current == 7:
            notifications.append("🎉 One week streak! Keep it up!")
        elif state.current == 30:
            notifications.append("🏆 30-day streak! You're on fire!")

    return notifications


class GamificationService:
    """
    Service for gamification features.

    Responsibilities:
    - XP for logged games and reached milestones
    - Streak updates for skills activities
    - Badge and achievement unlocks
    - Season goal progress and completion notices
    """

    def __init__(
        self,
        store: DocumentStore,
        ledger: XPLedger,
        streaks: StreakCalculator,
        badges: BadgeEngine,
        achievements: AchievementSystem,
        progress: ProgressAggregator,
        clock: Optional[Clock] = None
    ):
        self.store = store
        self.ledger = ledger
        self.streaks = streaks
        self.badges = badges
        self.achievements = achievements
        self.progress = progress
        self.clock = clock or ledger.clock
        logger.debug("GamificationService initialized")

    async def on_game_logged(
        self,
        user_id: str,
        game: GameRecord,
        games_in_session: int = 1
    ) -> GameLoggedResult:
        """
        Process gamification for a newly logged game.

        Args:
            user_id: Player's user ID
            game: The game record that was just saved
            games_in_session: Games logged back to back, boosts game XP

        Returns:
            GameLoggedResult with new badges and achievements, goal progress
            and notifications; empty when anything fails
        """
        with gamification_event_duration_seconds.labels(trigger="game_logged").time():
            try:
                return await self._process_game(user_id, game, games_in_session)
            except Exception as e:
                self._degrade("game_logged", user_id, e, game_id=game.id)
                return GameLoggedResult()

    async def _process_game(self, user_id: str, game: GameRecord, games_in_session: int) -> GameLoggedResult:
        goals = await self.progress.get_goals(user_id)
        recent_games = await self.progress.get_recent_games(user_id)

        # Goal state before this game counted
        prior = get_progress_from_games(goals, [g for g in recent_games if g.id != game.id])
        already_completed = prior.completed_goal_ids()

        xp_awarded = 0
        result = await self.ledger.award(
            user_id,
            XPActionType.GAME_LOGGED,
            {"game_id": game.id, "games_in_session": games_in_session},
        )
        if result.awarded:
            xp_awarded += result.amount

        new_badges = await self.badges.evaluate(
            user_id, TriggerContext(game=game, event_id=game.id)
        )
        new_achievements = await self.achievements.check_achievements(user_id)

        areas = await self.progress.get_improvement_areas(user_id)
        if goals or areas:
            games = recent_games
            if all(g.id != game.id for g in games):
                games = [game] + games[: self.progress.lookback - 1]
            progress = get_progress_from_games(goals, games, areas)
        else:
            progress = ProgressSummary()

        newly_completed = [
            goal for goal in progress.goals
            if goal.is_completed and goal.percentage == 100 and goal.goal_id not in already_completed
        ]

        for goal in newly_completed:
            goal_xp = await self.ledger.award(
                user_id, XPActionType.SEASON_GOAL_ACHIEVED, {"goal_id": goal.goal_id}
            )
            if goal_xp.awarded:
                xp_awarded += goal_xp.amount

        notifications = [f"🏆 New badge earned: {badge.title}!" for badge in new_badges]
        notifications.extend(f"🎯 Season goal completed: {goal.title}!" for goal in newly_completed)

        logger.info(
            f"Game {game.id} for user {user_id}: +{xp_awarded} XP, "
            f"{len(new_badges)} badges, {len(new_achievements)} achievements, "
            f"{len(newly_completed)} goals completed"
        )

        return GameLoggedResult(
            new_badges=new_badges,
            new_achievements=new_achievements,
            progress=progress,
            completed_goals=[goal.goal_id for goal in newly_completed if goal.goal_id],
            notifications=notifications,
            xp_awarded=xp_awarded,
        )

    async def on_skill_activity_logged(
        self,
        user_id: str,
        activity_type: ActivityType,
        duration: Optional[int] = None
    ) -> SkillActivityResult:
        """
        Process gamification for a skills activity (wall ball, drills...).

        Returns:
            SkillActivityResult with the updated streak and notifications;
            empty when anything fails
        """
        with gamification_event_duration_seconds.labels(trigger="skill_activity_logged").time():
            try:
                return await self._process_skill_activity(
                    user_id, parse_activity_type(activity_type), duration
                )
            except Exception as e:
                self._degrade("skill_activity_logged", user_id, e, activity_type=str(activity_type))
                return SkillActivityResult()

    async def _process_skill_activity(
        self,
        user_id: str,
        activity_type: ActivityType,
        duration: Optional[int]
    ) -> SkillActivityResult:
        before = await self.streaks.get_streak(user_id, activity_type)
        state = await self.streaks.log_activity(user_id, activity_type, duration=duration)

        xp_awarded = 0
        streak_grew = (
            state.current != before.current
            or state.last_activity_date != before.last_activity_date
        )
        if streak_grew and state.current in STREAK_MILESTONES:
            result = await self.ledger.award(
                user_id,
                XPActionType.STREAK_MILESTONE,
                {"activity_type": activity_type.value, "streak_length": state.current},
            )
            if result.awarded:
                xp_awarded = result.amount

        return SkillActivityResult(
            streak=state,
            notifications=streak_notifications(state),
            xp_awarded=xp_awarded,
        )

    async def get_dashboard_summary(self, user_id: str) -> DashboardSummary:
        """
        Headline gamification numbers for the player's dashboard.

        Returns:
            DashboardSummary; zeroed when anything fails
        """
        try:
            progress = await self.progress.get_progress(user_id)
            streaks = await self.streaks.get_all_streaks(user_id)
            user_badges = await self.badges.get_user_badges(user_id)
            user_xp = await self.ledger.get_user_xp(user_id)

            now = self.clock.now()
            week_ago = now - timedelta(days=RECENT_BADGE_DAYS)

            return DashboardSummary(
                progress=progress,
                total_xp=user_xp.total_xp,
                active_streaks=sum(1 for s in streaks.values() if s.is_active),
                total_badges=len(user_badges),
                recent_badges=[b for b in user_badges if b.unlocked_at > week_ago],
                generated_at=now,
            )
        except Exception as e:
            self._degrade("dashboard_summary", user_id, e)
            return DashboardSummary()

    @staticmethod
    def _degrade(trigger: str, user_id: str, error: Exception, **extra) -> None:
        logger.error(f"Error in {trigger} for user {user_id}: {error}", exc_info=True)
        gamification_errors_total.labels(trigger=trigger).inc()
        capture_gamification_error(error, trigger, user_id=user_id, **extra)
