"""
Badge Rule Engine

Evaluates the badge catalog against a player's games after a trigger
(normally a newly logged game) and unlocks every badge whose requirements
all hold.

Requirement types:
- stat_single_game: stat on the triggering game
- stat_total: stat summed over recent games
- stat_percentage: ratio stat over recent games
- consecutive_games: number of recent games
- season_goals_completed: season goals at 100%

Unlocks are write-once. The UserBadge document id is derived from
(user_id, badge_id), so two concurrent evaluations race on the store's
unique insert and only the winner awards XP.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
import logging

from src import config
from src.db import queries
from src.db.store import DocumentStore
from src.exceptions import DuplicateRecordError, wrap_external_exception
from src.gamification.catalog import BADGES, get_badge
from src.gamification.progress import ProgressAggregator, get_progress_from_games
from src.gamification.stats import season_stat_percentage, season_stat_total, stat_from_game
from src.gamification.xp_system import XPLedger
from src.models.badge import (
    Badge,
    Comparison,
    RequirementType,
    TriggerContext,
    UserBadge,
)
from src.models.game import GameRecord
from src.models.xp import XPActionType
from src.observability.metrics import gamification_badges_unlocked_total
from src.utils.datetime_helpers import Clock

logger = logging.getLogger(__name__)

DEFAULT_POSITION = "midfielder"


@dataclass
class EvaluationContext:
    """Data shared by every requirement in one evaluation"""
    trigger_game: Optional[GameRecord]
    games: List[GameRecord] = field(default_factory=list)
    goals_completed: int = 0


def _check_stat_single_game(requirement, ctx: EvaluationContext) -> bool:
    if ctx.trigger_game is None:
        return False
    value = stat_from_game(ctx.trigger_game, requirement.stat)
    if requirement.comparison == Comparison.LTE:
        return value <= requirement.target
    return value >= requirement.target


def _check_stat_total(requirement, ctx: EvaluationContext) -> bool:
    return season_stat_total(ctx.games, requirement.stat) >= requirement.target


def _check_stat_percentage(requirement, ctx: EvaluationContext) -> bool:
    return season_stat_percentage(ctx.games, requirement.stat) >= requirement.target


def _check_consecutive_games(requirement, ctx: EvaluationContext) -> bool:
    return len(ctx.games) >= requirement.target


def _check_season_goals_completed(requirement, ctx: EvaluationContext) -> bool:
    return ctx.goals_completed >= requirement.target


REQUIREMENT_CHECKS: Dict[RequirementType, Callable[..., bool]] = {
    RequirementType.STAT_SINGLE_GAME: _check_stat_single_game,
    RequirementType.STAT_TOTAL: _check_stat_total,
    RequirementType.STAT_PERCENTAGE: _check_stat_percentage,
    RequirementType.CONSECUTIVE_GAMES: _check_consecutive_games,
    RequirementType.SEASON_GOALS_COMPLETED: _check_season_goals_completed,
}

_unhandled = set(RequirementType) - set(REQUIREMENT_CHECKS)
if _unhandled:
    raise RuntimeError(f"No badge check registered for: {sorted(t.value for t in _unhandled)}")


def badge_requirements_met(badge: Badge, ctx: EvaluationContext) -> bool:
    """True only if every requirement of the badge holds"""
    return all(REQUIREMENT_CHECKS[req.type](req, ctx) for req in badge.requirements)


class BadgeEngine:
    """Unlocks badges and awards their XP"""

    def __init__(
        self,
        store: DocumentStore,
        ledger: XPLedger,
        progress: ProgressAggregator,
        clock: Optional[Clock] = None,
        lookback: Optional[int] = None
    ):
        self.store = store
        self.ledger = ledger
        self.progress = progress
        self.clock = clock or ledger.clock
        self.lookback = lookback or config.BADGE_GAME_LOOKBACK

    async def evaluate(self, user_id: str, trigger: Optional[TriggerContext] = None) -> List[Badge]:
        """
        Check every locked badge and unlock the ones now earned

        Args:
            user_id: Player's user ID
            trigger: What caused the evaluation (usually the logged game)

        Returns:
            Badges unlocked by this call, in catalog order

        Raises:
            StoreUnavailableError: an unlock could not be written
        """
        trigger = trigger or TriggerContext()

        user = await queries.get_user(self.store, user_id) or {}
        position = user.get("position") or DEFAULT_POSITION

        unlocked = {row.badge_id for row in await queries.get_user_badge_rows(self.store, user_id)}
        candidates = [
            badge for badge in BADGES
            if badge.applies_to(position) and badge.id not in unlocked
        ]
        if not candidates:
            return []

        ctx = await self._build_context(user_id, trigger, candidates)

        new_badges = []
        for badge in candidates:
            if not badge_requirements_met(badge, ctx):
                continue
            if await self._unlock(user_id, badge, trigger):
                new_badges.append(badge)

        if new_badges:
            logger.info(f"User {user_id} unlocked badges: {[b.id for b in new_badges]}")
        return new_badges

    async def _build_context(
        self,
        user_id: str,
        trigger: TriggerContext,
        candidates: List[Badge]
    ) -> EvaluationContext:
        games = await queries.get_recent_games(self.store, user_id, limit=self.lookback)

        # The triggering game may not be readable yet
        if trigger.game is not None and all(g.id != trigger.game.id for g in games):
            games = [trigger.game] + games[: self.lookback - 1]

        ctx = EvaluationContext(trigger_game=trigger.game, games=games)

        needs_goals = any(
            req.type == RequirementType.SEASON_GOALS_COMPLETED
            for badge in candidates
            for req in badge.requirements
        )
        if needs_goals:
            goals = await self.progress.get_goals(user_id)
            summary = get_progress_from_games(goals, games)
            ctx.goals_completed = sum(1 for g in summary.goals if g.is_completed)

        return ctx

    async def _unlock(self, user_id: str, badge: Badge, trigger: TriggerContext) -> bool:
        user_badge = UserBadge(
            user_id=user_id,
            badge_id=badge.id,
            unlocked_at=self.clock.now(),
            triggering_event_id=trigger.event_id or (trigger.game.id if trigger.game else None),
        )

        try:
            await queries.insert_user_badge(self.store, user_badge)
        except DuplicateRecordError:
            logger.info(f"Badge {badge.id} already unlocked for user {user_id}")
            return False
        except Exception as e:
            raise wrap_external_exception(
                e, operation="unlock_badge", user_id=user_id, context={"badge_id": badge.id}
            )

        gamification_badges_unlocked_total.labels(badge_id=badge.id).inc()

        # The unlock stands even when the XP award is rejected or fails
        try:
            result = await self.ledger.award(
                user_id,
                XPActionType.ACHIEVEMENT_UNLOCKED,
                {"badge_id": badge.id, "rarity": badge.rarity.value},
            )
            if not result.awarded:
                logger.info(f"No XP for badge {badge.id}, user {user_id}: {result.reason}")
        except Exception as e:
            logger.error(f"XP award for badge {badge.id} failed for user {user_id}: {e}", exc_info=True)

        return True

    async def get_user_badges(self, user_id: str) -> List[UserBadge]:
        """Unlocked badges, newest first, with catalog details attached"""
        rows = await queries.get_user_badge_rows(self.store, user_id)
        return [row.model_copy(update={"badge": get_badge(row.badge_id)}) for row in rows]

    @staticmethod
    def get_available_badges(
        position_scope: Optional[str] = None,
        include_secret: bool = False
    ) -> List[Badge]:
        """
        Catalog badges a player can work toward

        Args:
            position_scope: Player position; None returns every position
            include_secret: Include badges hidden until unlocked
        """
        return [
            badge for badge in BADGES
            if (include_secret or not badge.is_secret)
            and (position_scope is None or badge.applies_to(position_scope))
        ]

    @staticmethod
    def get_badge_by_id(badge_id: str) -> Optional[Badge]:
        return get_badge(badge_id)
