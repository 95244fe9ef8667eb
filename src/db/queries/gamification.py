"""Gamification document store queries"""
import logging
from datetime import date, datetime
from typing import Any, Optional

from src.db.store import (
    ACHIEVEMENT_UNLOCKS,
    GAMES,
    SEASON_GOALS,
    STREAK_ACTIVITIES,
    SUSPICIOUS_ACTIVITY,
    USER_BADGES,
    USERS,
    XP_ACTIONS,
    DocumentStore,
    Filter,
)
from src.models.achievement import UserAchievement
from src.models.badge import UserBadge
from src.models.game import GameRecord, SeasonGoal
from src.models.streak import ActivityType, StreakActivity, StreakState
from src.models.xp import XPAward

logger = logging.getLogger(__name__)

# XP award lifecycle
AWARD_PENDING = "pending"
AWARD_COMMITTED = "committed"


# ==========================================
# Users
# ==========================================

async def get_user(store: DocumentStore, user_id: str) -> Optional[dict]:
    """Get the user document, None if the user has none yet"""
    return await store.get_by_id(USERS, user_id)


async def get_total_xp(store: DocumentStore, user_id: str) -> int:
    """Total XP counter on the user document (0 when absent)"""
    user = await get_user(store, user_id)
    if not user:
        return 0
    return int(user.get("total_xp") or 0)


# ==========================================
# XP Ledger
# ==========================================

async def add_xp_action(store: DocumentStore, award: XPAward, status: str = AWARD_PENDING) -> str:
    """
    Append an XP award to the action log

    Awards start out pending and only count once committed, so an award
    whose total increment failed never blocks a retry.

    Returns:
        Document id of the award
    """
    record = award.model_dump(mode="python", exclude={"id"})
    record["action_type"] = award.action_type.value
    record["status"] = status
    return await store.append(XP_ACTIONS, record)


async def commit_xp_action(store: DocumentStore, award_id: str) -> None:
    await store.update_set(XP_ACTIONS, award_id, {"status": AWARD_COMMITTED})


async def increment_total_xp(store: DocumentStore, user_id: str, amount: int) -> None:
    """Atomically add to the user's XP counter"""
    await store.update_increment(USERS, user_id, "total_xp", amount)


async def set_last_xp_update(store: DocumentStore, user_id: str, at: datetime) -> None:
    await store.update_set(USERS, user_id, {"last_xp_update": at})


async def count_xp_actions_since(
    store: DocumentStore,
    user_id: str,
    since: datetime,
    limit: int
) -> int:
    """Number of XP actions at or after `since`, capped at `limit`"""
    rows = await store.query(
        XP_ACTIONS,
        [
            Filter("user_id", "==", user_id),
            Filter("status", "==", AWARD_COMMITTED),
            Filter("timestamp", ">=", since),
        ],
        order_by="timestamp",
        descending=True,
        limit=limit,
    )
    return len(rows)


async def sum_xp_since(
    store: DocumentStore,
    user_id: str,
    action_type: str,
    since: datetime,
    limit: int
) -> int:
    """XP awarded for one action type at or after `since`"""
    rows = await store.query(
        XP_ACTIONS,
        [
            Filter("user_id", "==", user_id),
            Filter("action_type", "==", action_type),
            Filter("status", "==", AWARD_COMMITTED),
            Filter("timestamp", ">=", since),
        ],
        order_by="timestamp",
        descending=True,
        limit=limit,
    )
    return sum(int(row.get("amount") or 0) for row in rows)


async def get_last_xp_action(
    store: DocumentStore,
    user_id: str,
    action_type: str,
    since: datetime
) -> Optional[dict]:
    """Most recent XP action of a type at or after `since`"""
    rows = await store.query(
        XP_ACTIONS,
        [
            Filter("user_id", "==", user_id),
            Filter("action_type", "==", action_type),
            Filter("status", "==", AWARD_COMMITTED),
            Filter("timestamp", ">=", since),
        ],
        order_by="timestamp",
        descending=True,
        limit=1,
    )
    return rows[0] if rows else None


async def get_xp_actions(store: DocumentStore, user_id: str, limit: int = 50) -> list[XPAward]:
    """Recent XP awards, newest first"""
    rows = await store.query(
        XP_ACTIONS,
        [Filter("user_id", "==", user_id), Filter("status", "==", AWARD_COMMITTED)],
        order_by="timestamp",
        descending=True,
        limit=limit,
    )
    return [XPAward(**row) for row in rows]


async def count_xp_actions_of_type_since(
    store: DocumentStore,
    user_id: str,
    action_type: str,
    since: Optional[datetime] = None
) -> int:
    filters = [
        Filter("user_id", "==", user_id),
        Filter("action_type", "==", action_type),
        Filter("status", "==", AWARD_COMMITTED),
    ]
    if since is not None:
        filters.append(Filter("timestamp", ">=", since))
    return len(await store.query(XP_ACTIONS, filters))


async def log_suspicious_activity(
    store: DocumentStore,
    user_id: str,
    kind: str,
    details: dict[str, Any],
    session_id: str,
    at: datetime
) -> str:
    """Record activity that looks automated, for later review"""
    return await store.append(
        SUSPICIOUS_ACTIVITY,
        {
            "user_id": user_id,
            "type": kind,
            "details": details,
            "timestamp": at,
            "session_id": session_id,
        },
    )


# ==========================================
# Streak System
# ==========================================

def streak_activity_id(user_id: str, activity_type: ActivityType, day: date) -> str:
    """One activity document per user, type and local day"""
    return f"{user_id}_{activity_type.value}_{day.isoformat()}"


async def get_streak_activity(
    store: DocumentStore,
    user_id: str,
    activity_type: ActivityType,
    day: date
) -> Optional[dict]:
    return await store.get_by_id(STREAK_ACTIVITIES, streak_activity_id(user_id, activity_type, day))


async def add_streak_activity(store: DocumentStore, activity: StreakActivity) -> str:
    """
    Append a skills activity, unique per local day

    Raises:
        DuplicateRecordError: an activity was already logged that day
    """
    record = activity.model_dump(mode="python", exclude={"id"})
    record["activity_type"] = activity.activity_type.value
    record["day"] = activity.day.isoformat()
    return await store.append(
        STREAK_ACTIVITIES,
        record,
        record_id=streak_activity_id(activity.user_id, activity.activity_type, activity.day),
    )


async def get_streak_activities(
    store: DocumentStore,
    user_id: str,
    activity_type: ActivityType,
    limit: int = 365
) -> list[StreakActivity]:
    """Activities of one type, newest first"""
    rows = await store.query(
        STREAK_ACTIVITIES,
        [Filter("user_id", "==", user_id), Filter("activity_type", "==", activity_type.value)],
        order_by="timestamp",
        descending=True,
        limit=limit,
    )
    return [StreakActivity(**row) for row in rows]


async def save_user_streak(store: DocumentStore, state: StreakState, at: datetime) -> None:
    """Cache a recomputed streak on the user document"""
    await store.update_set(
        USERS,
        state.user_id,
        {
            f"streaks.{state.activity_type.value}": {
                "current": state.current,
                "longest": state.longest,
                "last_activity_date": (
                    state.last_activity_date.isoformat() if state.last_activity_date else None
                ),
                "updated_at": at,
            }
        },
    )


# ==========================================
# Badges
# ==========================================

async def get_user_badge_rows(store: DocumentStore, user_id: str) -> list[UserBadge]:
    rows = await store.query(
        USER_BADGES,
        [Filter("user_id", "==", user_id)],
        order_by="unlocked_at",
        descending=True,
    )
    return [UserBadge(**row) for row in rows]


async def insert_user_badge(store: DocumentStore, user_badge: UserBadge) -> str:
    """
    Write-once insert of an unlocked badge

    Raises:
        DuplicateRecordError: the badge is already unlocked for this user
    """
    record = user_badge.model_dump(mode="python", exclude={"badge"})
    doc_id = await store.append(
        USER_BADGES,
        record,
        record_id=UserBadge.record_id(user_badge.user_id, user_badge.badge_id),
    )
    await store.update_set(USERS, user_badge.user_id, {"last_badge_unlocked": user_badge.unlocked_at})
    return doc_id


# ==========================================
# Achievements
# ==========================================

async def get_achievement_unlocks(store: DocumentStore, user_id: str) -> list[UserAchievement]:
    rows = await store.query(ACHIEVEMENT_UNLOCKS, [Filter("user_id", "==", user_id)])
    return [UserAchievement(**row) for row in rows]


async def insert_achievement_unlock(store: DocumentStore, unlock: UserAchievement) -> str:
    """
    Write-once insert of an unlocked achievement

    Raises:
        DuplicateRecordError: already unlocked
    """
    record = unlock.model_dump(mode="python", exclude={"achievement"})
    return await store.append(
        ACHIEVEMENT_UNLOCKS,
        record,
        record_id=f"{unlock.user_id}_{unlock.achievement_id}",
    )


async def set_achievement_xp(store: DocumentStore, user_id: str, achievement_id: str, amount: int) -> None:
    """Record the XP an unlocked achievement earned"""
    await store.update_set(ACHIEVEMENT_UNLOCKS, f"{user_id}_{achievement_id}", {"xp_awarded": amount})


# ==========================================
# Games and Season Goals
# ==========================================

async def get_recent_games(store: DocumentStore, user_id: str, limit: int = 50) -> list[GameRecord]:
    """Most recent games, newest first"""
    rows = await store.query(
        GAMES,
        [Filter("user_id", "==", user_id)],
        order_by="created_at",
        descending=True,
        limit=limit,
    )
    return [GameRecord(**row) for row in rows]


async def count_games_since(store: DocumentStore, user_id: str, since: Optional[datetime] = None) -> int:
    filters = [Filter("user_id", "==", user_id)]
    if since is not None:
        filters.append(Filter("created_at", ">=", since))
    return len(await store.query(GAMES, filters))


async def add_game(store: DocumentStore, game: GameRecord) -> str:
    """Save a game record (owned by the game-logging flow)"""
    return await store.append(GAMES, game.model_dump(mode="python", exclude={"id"}), record_id=game.id)


async def get_season_goals(store: DocumentStore, user_id: str) -> list[SeasonGoal]:
    rows = await store.query(SEASON_GOALS, [Filter("user_id", "==", user_id)])
    return [SeasonGoal(**row) for row in rows]


async def get_improvement_areas(store: DocumentStore, user_id: str) -> list[str]:
    """Improvement area ids picked during onboarding (goals.improvement_areas)"""
    user = await get_user(store, user_id)
    areas = ((user or {}).get("goals") or {}).get("improvement_areas") or []
    return [str(area) for area in areas]


async def add_season_goal(store: DocumentStore, goal: SeasonGoal) -> str:
    """Save a user-authored season goal"""
    return await store.append(SEASON_GOALS, goal.model_dump(mode="python", exclude={"id"}), record_id=goal.id)
