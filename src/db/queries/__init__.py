"""
Document store queries - re-exported so callers can write
'from src.db import queries' and 'queries.get_recent_games(store, ...)'.

Module organization:
- gamification.py: XP actions, streak activities, badges, achievements,
  games and season goals
"""

from src.db.queries.gamification import (
    get_user,
    get_total_xp,
    add_xp_action,
    commit_xp_action,
    increment_total_xp,
    set_last_xp_update,
    count_xp_actions_since,
    sum_xp_since,
    get_last_xp_action,
    get_xp_actions,
    count_xp_actions_of_type_since,
    log_suspicious_activity,
    streak_activity_id,
    get_streak_activity,
    add_streak_activity,
    get_streak_activities,
    save_user_streak,
    get_user_badge_rows,
    insert_user_badge,
    get_achievement_unlocks,
    insert_achievement_unlock,
    set_achievement_xp,
    get_recent_games,
    count_games_since,
    add_game,
    get_season_goals,
    get_improvement_areas,
    add_season_goal,
)

__all__ = [
    "get_user",
    "get_total_xp",
    "add_xp_action",
    "commit_xp_action",
    "increment_total_xp",
    "set_last_xp_update",
    "count_xp_actions_since",
    "sum_xp_since",
    "get_last_xp_action",
    "get_xp_actions",
    "count_xp_actions_of_type_since",
    "log_suspicious_activity",
    "streak_activity_id",
    "get_streak_activity",
    "add_streak_activity",
    "get_streak_activities",
    "save_user_streak",
    "get_user_badge_rows",
    "insert_user_badge",
    "get_achievement_unlocks",
    "insert_achievement_unlock",
    "set_achievement_xp",
    "get_recent_games",
    "count_games_since",
    "add_game",
    "get_season_goals",
    "get_improvement_areas",
    "add_season_goal",
]
