"""
Gamification engine for the lacrosse tracker

This package implements the reward layer on top of logged games and skills
activities:
- XP ledger with rate limiting and levels
- Daily skills streaks
- Badge rule engine
- Achievements
- Season goal progress
"""

from src.gamification.rate_limiter import RateLimiter, RateLimitConfig
from src.gamification.xp_system import XPLedger, calculate_level_from_xp, get_xp_rewards
from src.gamification.streak_system import StreakCalculator, calculate_streak
from src.gamification.progress import ProgressAggregator, get_progress_from_games
from src.gamification.badge_system import BadgeEngine
from src.gamification.achievement_system import AchievementSystem

__all__ = [
    "RateLimiter",
    "RateLimitConfig",
    "XPLedger",
    "calculate_level_from_xp",
    "get_xp_rewards",
    "StreakCalculator",
    "calculate_streak",
    "ProgressAggregator",
    "get_progress_from_games",
    "BadgeEngine",
    "AchievementSystem",
]
