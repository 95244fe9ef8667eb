"""
Skills Activity Streak Tracking

Tracks consecutive-day streaks for each skills activity:
- wall_ball
- drills
- skills_practice

Streaks are always derivable from the activity log. The state cached on the
user document under streaks.<activity_type> is a fast path for reads and is
rewritten after every new activity.

Rules:
- One activity per type per local calendar day counts
- current: run of consecutive days ending at the most recent day, 0 unless
  that day is today or yesterday
- longest: longest run of consecutive days anywhere in the log
"""

from typing import Dict, Iterable, List, Optional
from datetime import date, timedelta
import logging

from src import config
from src.db import queries
from src.db.store import DocumentStore
from src.exceptions import DuplicateRecordError, ValidationError, wrap_external_exception
from src.models.streak import ActivityType, StreakActivity, StreakState
from src.models.xp import ActionEvent
from src.observability.metrics import gamification_streak_logs_total, gamification_streak_length
from src.utils.datetime_helpers import Clock

logger = logging.getLogger(__name__)


def parse_activity_type(value) -> ActivityType:
    """
    Coerce an activity type name

    Raises:
        ValidationError: not a tracked skills activity
    """
    try:
        return ActivityType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown activity type '{value}'",
            field="activity_type",
            value=value,
        )


def calculate_streak(
    user_id: str,
    activity_type: ActivityType,
    days: Iterable[date],
    today: date
) -> StreakState:
    """
    Derive streak state from the days an activity was logged

    Args:
        user_id: Player's user ID
        activity_type: Activity the days belong to
        days: Local calendar days with at least one activity (any order,
            duplicates allowed)
        today: Current local day; days after it are ignored

    Returns:
        StreakState for the activity
    """
    unique_days = sorted({d for d in days if d <= today}, reverse=True)
    if not unique_days:
        return StreakState(user_id=user_id, activity_type=activity_type)

    longest = 1
    run = 1
    current = None
    for previous, day in zip(unique_days, unique_days[1:]):
        if previous - day == timedelta(days=1):
            run += 1
        else:
            if current is None:
                current = run
            run = 1
        longest = max(longest, run)
    if current is None:
        current = run

    last_day = unique_days[0]
    is_active = last_day >= today - timedelta(days=1)

    return StreakState(
        user_id=user_id,
        activity_type=activity_type,
        current=current if is_active else 0,
        longest=longest,
        last_activity_date=last_day,
        is_active=is_active,
    )


class StreakCalculator:
    """Logs skills activities and reports their streaks"""

    def __init__(
        self,
        store: DocumentStore,
        clock: Optional[Clock] = None,
        lookback: Optional[int] = None
    ):
        self.store = store
        self.clock = clock or Clock()
        self.lookback = lookback or config.STREAK_LOOKBACK_DAYS

    async def log_activity(
        self,
        user_id: str,
        activity_type: ActivityType,
        duration: Optional[int] = None,
        notes: Optional[str] = None
    ) -> StreakState:
        """
        Log a skills activity for today and update the streak

        Logging the same activity twice in one local day is a no-op that
        returns the unchanged streak.

        Raises:
            StoreUnavailableError: the activity could not be written
        """
        activity_type = parse_activity_type(activity_type)
        today = self.clock.today()

        existing = await queries.get_streak_activity(self.store, user_id, activity_type, today)
        if existing:
            gamification_streak_logs_total.labels(
                activity_type=activity_type.value, outcome="already_logged"
            ).inc()
            return await self.get_streak(user_id, activity_type)

        now = self.clock.now()
        event = ActionEvent(
            user_id=user_id,
            action_type=activity_type.value,
            timestamp=now,
            amount=duration,
            metadata={"notes": notes or ""},
        )
        activity = StreakActivity.from_event(event, today)

        try:
            await queries.add_streak_activity(self.store, activity)
        except DuplicateRecordError:
            # Another request logged it first
            gamification_streak_logs_total.labels(
                activity_type=activity_type.value, outcome="already_logged"
            ).inc()
            return await self.get_streak(user_id, activity_type)
        except Exception as e:
            raise wrap_external_exception(
                e, operation="log_activity", user_id=user_id,
                context={"activity_type": activity_type.value},
            )

        state = await self._recompute(user_id, activity_type)

        try:
            await queries.save_user_streak(self.store, state, now)
        except Exception as e:
            # The log is authoritative; the cache is rebuilt on the next read
            logger.error(f"Failed to cache {activity_type.value} streak for user {user_id}: {e}")

        gamification_streak_logs_total.labels(activity_type=activity_type.value, outcome="logged").inc()
        gamification_streak_length.labels(activity_type=activity_type.value).observe(state.current)

        logger.info(
            f"User {user_id} logged {activity_type.value}: "
            f"current={state.current}, longest={state.longest}"
        )
        return state

    async def get_streak(self, user_id: str, activity_type: ActivityType) -> StreakState:
        """
        Current streak for one activity

        Reads the cached state; a streak whose last day is older than
        yesterday reports current 0 and inactive, keeping longest.
        """
        activity_type = parse_activity_type(activity_type)

        user = await queries.get_user(self.store, user_id)
        cached = ((user or {}).get("streaks") or {}).get(activity_type.value)
        if not cached:
            # Never cached, or the cache write failed
            return await self._recompute(user_id, activity_type)

        last = cached.get("last_activity_date")
        last_day = date.fromisoformat(last) if isinstance(last, str) else last
        is_active = last_day is not None and last_day >= self.clock.yesterday()

        return StreakState(
            user_id=user_id,
            activity_type=activity_type,
            current=int(cached.get("current") or 0) if is_active else 0,
            longest=int(cached.get("longest") or 0),
            last_activity_date=last_day,
            is_active=is_active,
        )

    async def get_all_streaks(self, user_id: str) -> Dict[ActivityType, StreakState]:
        """One streak per activity type"""
        return {
            activity_type: await self.get_streak(user_id, activity_type)
            for activity_type in ActivityType
        }

    async def get_activity_history(
        self,
        user_id: str,
        activity_type: ActivityType,
        limit: int = 30
    ) -> List[StreakActivity]:
        """Recent activities of one type, newest first"""
        return await queries.get_streak_activities(
            self.store, user_id, parse_activity_type(activity_type), limit=limit
        )

    async def _recompute(self, user_id: str, activity_type: ActivityType) -> StreakState:
        activities = await queries.get_streak_activities(
            self.store, user_id, activity_type, limit=self.lookback
        )
        return calculate_streak(
            user_id,
            activity_type,
            (a.day for a in activities),
            self.clock.today(),
        )


def format_streak_display(streaks: Dict[ActivityType, StreakState]) -> str:
    """
    Format streaks for display

    Args:
        streaks: Result of StreakCalculator.get_all_streaks()
    """
    active = [s for s in streaks.values() if s.current > 0]
    if not active:
        return "No active streaks yet. Grab your stick and get some reps in! 🥍"

    lines = ["🔥 YOUR STREAKS\n"]
    for streak in sorted(active, key=lambda s: s.current, reverse=True):
        line = f"🥍 {streak.activity_type.display_name}: {streak.current} days"
        if streak.longest > streak.current:
            line += f" (best: {streak.longest})"
        lines.append(line)

    return "\n".join(lines)
