"""
Achievement System

Tracks and awards achievements across categories:
- Games (games logged)
- Streaks (practice streak length)
- Stats (best single-game performance)
- Milestones (total XP)
- Social (shares)
- Special (secret, time-boxed)

Unlike badges, an achievement with several requirements completes when its
best requirement reaches the largest target: progress is the maximum over
requirements, not their conjunction.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional
import logging

from src.db import queries
from src.db.store import DocumentStore
from src.exceptions import DuplicateRecordError, wrap_external_exception
from src.gamification.catalog import ACHIEVEMENTS, get_achievement
from src.gamification.stats import stat_from_game
from src.gamification.streak_system import StreakCalculator
from src.gamification.xp_system import XPLedger
from src.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementProgress,
    AchievementRequirement,
    AchievementRequirementType,
    UserAchievement,
)
from src.models.xp import XPActionType
from src.observability.metrics import gamification_achievements_unlocked_total
from src.utils.datetime_helpers import Clock, start_of_local_day

logger = logging.getLogger(__name__)

# Games scanned for best single-game stats
STAT_VALUE_LOOKBACK = 100


class AchievementSystem:
    """Computes achievement progress and unlocks completed achievements"""

    def __init__(
        self,
        store: DocumentStore,
        ledger: XPLedger,
        streaks: StreakCalculator,
        clock: Optional[Clock] = None
    ):
        self.store = store
        self.ledger = ledger
        self.streaks = streaks
        self.clock = clock or ledger.clock

    async def check_achievements(self, user_id: str) -> List[Achievement]:
        """
        Unlock every locked achievement whose progress is complete

        Returns:
            Achievements unlocked by this call

        Raises:
            StoreUnavailableError: an unlock could not be written
        """
        unlocked = {row.achievement_id for row in await queries.get_achievement_unlocks(self.store, user_id)}

        newly_unlocked = []
        for achievement in ACHIEVEMENTS:
            if achievement.id in unlocked:
                continue

            progress = await self.calculate_progress(user_id, achievement)
            if not progress.is_completed:
                continue

            if await self._unlock(user_id, achievement):
                newly_unlocked.append(achievement)

        return newly_unlocked

    async def calculate_progress(self, user_id: str, achievement: Achievement) -> AchievementProgress:
        """Progress toward one achievement: best requirement against the largest target"""
        maximum = 0
        current = 0
        for requirement in achievement.requirements:
            maximum = max(maximum, requirement.target)
            current = max(current, await self._requirement_progress(user_id, requirement))

        current = min(current, maximum)
        percentage = round(current / maximum * 100) if maximum > 0 else 0

        return AchievementProgress(
            achievement_id=achievement.id,
            current=current,
            maximum=maximum,
            percentage=min(percentage, 100),
            is_completed=maximum > 0 and current >= maximum,
        )

    async def get_achievement_progress(self, user_id: str, achievement_id: str) -> Optional[AchievementProgress]:
        achievement = get_achievement(achievement_id)
        if achievement is None:
            return None
        return await self.calculate_progress(user_id, achievement)

    async def get_user_achievements(self, user_id: str) -> List[UserAchievement]:
        """Unlocked achievements with catalog details attached"""
        rows = await queries.get_achievement_unlocks(self.store, user_id)
        rows.sort(key=lambda row: row.unlocked_at, reverse=True)
        return [row.model_copy(update={"achievement": get_achievement(row.achievement_id)}) for row in rows]

    @staticmethod
    def get_available_achievements(include_secret: bool = False) -> List[Achievement]:
        return [a for a in ACHIEVEMENTS if include_secret or not a.is_secret]

    @staticmethod
    def get_achievements_by_category(category: AchievementCategory) -> List[Achievement]:
        return [a for a in ACHIEVEMENTS if a.category == category and not a.is_secret]

    # ============================================
    # Requirement sources
    # ============================================

    async def _requirement_progress(self, user_id: str, requirement: AchievementRequirement) -> int:
        try:
            if requirement.type == AchievementRequirementType.GAMES_LOGGED:
                return await queries.count_games_since(
                    self.store, user_id, self._timeframe_start(requirement.timeframe)
                )

            if requirement.type == AchievementRequirementType.CONSECUTIVE_GAMES:
                return await queries.count_games_since(
                    self.store, user_id, self._timeframe_start(requirement.timeframe)
                )

            if requirement.type == AchievementRequirementType.TOTAL_XP:
                return await queries.get_total_xp(self.store, user_id)

            if requirement.type == AchievementRequirementType.STREAK_DAYS:
                streaks = await self.streaks.get_all_streaks(user_id)
                return max((s.current for s in streaks.values()), default=0)

            if requirement.type == AchievementRequirementType.STAT_VALUE:
                return await self._best_stat_value(user_id, requirement.metadata)

            if requirement.type == AchievementRequirementType.SOCIAL_SHARES:
                return await queries.count_xp_actions_of_type_since(
                    self.store,
                    user_id,
                    XPActionType.SOCIAL_SHARE.value,
                    self._timeframe_start(requirement.timeframe),
                )
        except Exception as e:
            logger.error(
                f"Error calculating {requirement.type.value} progress for user {user_id}: {e}",
                exc_info=True,
            )
            return 0

        logger.warning(f"Unhandled achievement requirement type: {requirement.type}")
        return 0

    async def _best_stat_value(self, user_id: str, metadata: Dict) -> int:
        stat = metadata.get("stat")
        if not stat:
            return 0

        games = await queries.get_recent_games(self.store, user_id, limit=STAT_VALUE_LOOKBACK)
        values = [stat_from_game(game, stat) for game in games]
        if not values:
            return 0
        if metadata.get("comparison") == "lte":
            return int(min(values))
        return int(max(values))

    def _timeframe_start(self, timeframe: Optional[str]) -> Optional[datetime]:
        if timeframe == "daily":
            return self.clock.start_of_today()
        if timeframe == "weekly":
            return self.clock.now() - timedelta(days=7)
        if timeframe == "monthly":
            return start_of_local_day(self.clock.today().replace(day=1), self.clock.tz)
        return None

    async def _unlock(self, user_id: str, achievement: Achievement) -> bool:
        unlock = UserAchievement(
            user_id=user_id,
            achievement_id=achievement.id,
            unlocked_at=self.clock.now(),
        )

        try:
            await queries.insert_achievement_unlock(self.store, unlock)
        except DuplicateRecordError:
            logger.info(f"Achievement {achievement.id} already unlocked for user {user_id}")
            return False
        except Exception as e:
            raise wrap_external_exception(
                e, operation="unlock_achievement", user_id=user_id,
                context={"achievement_id": achievement.id},
            )

        gamification_achievements_unlocked_total.labels(achievement_id=achievement.id).inc()
        logger.info(f"User {user_id} unlocked achievement {achievement.id}")

        try:
            result = await self.ledger.award(
                user_id,
                XPActionType.ACHIEVEMENT_UNLOCKED,
                {"achievement_id": achievement.id, "rarity": achievement.rarity.value},
            )
            if result.awarded:
                await queries.set_achievement_xp(self.store, user_id, achievement.id, result.amount)
        except Exception as e:
            logger.error(
                f"XP award for achievement {achievement.id} failed for user {user_id}: {e}",
                exc_info=True,
            )

        return True


def format_achievement_unlock_message(achievement: Achievement, xp_awarded: int = 0) -> str:
    """Celebration message for a newly unlocked achievement"""
    message = f"🏅 Achievement unlocked: {achievement.title}!\n{achievement.description}"
    if xp_awarded:
        message += f"\n+{xp_awarded} XP"
    return message
