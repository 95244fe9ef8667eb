"""
Static gamification catalog

XP reward rules, the level ladder, badges and achievements ship with the
app and change with releases, not with user data. Everything here is
read-only input to the engine.
"""

from types import MappingProxyType

from src.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementRequirement,
    AchievementRequirementType,
)
from src.models.badge import (
    Badge,
    BadgeCategory,
    Comparison,
    ConsecutiveGamesRequirement,
    SeasonGoalsCompletedRequirement,
    StatPercentageRequirement,
    StatSingleGameRequirement,
    StatTotalRequirement,
)
from src.models.xp import Rarity, XPActionType, XPReward

# ============================================
# XP Rewards
# ============================================

XP_REWARDS = MappingProxyType({
    XPActionType.GAME_LOGGED: XPReward(
        base_amount=50,
        multiplier=1.2,  # consecutive games in one session
        max_per_day=500,
        cooldown_minutes=30,
    ),
    XPActionType.PROFILE_COMPLETED: XPReward(base_amount=100, max_per_day=100),
    XPActionType.STREAK_MILESTONE: XPReward(
        base_amount=25,
        multiplier=1.5,  # scaled by log10 of streak length
        max_per_day=200,
    ),
    XPActionType.STAT_IMPROVEMENT: XPReward(
        base_amount=30,
        multiplier=1.1,
        max_per_day=300,
        cooldown_minutes=60,
    ),
    XPActionType.ACHIEVEMENT_UNLOCKED: XPReward(
        base_amount=75,
        multiplier=2.0,  # rarity table applies
        max_per_day=1000,
    ),
    XPActionType.DAILY_LOGIN: XPReward(base_amount=20, max_per_day=20, cooldown_minutes=1440),
    XPActionType.SOCIAL_SHARE: XPReward(base_amount=15, max_per_day=60, cooldown_minutes=360),
    XPActionType.TUTORIAL_COMPLETED: XPReward(base_amount=40, max_per_day=200),
    XPActionType.SEASON_GOAL_SET: XPReward(base_amount=25, max_per_day=100),
    XPActionType.SEASON_GOAL_ACHIEVED: XPReward(base_amount=100, multiplier=1.5, max_per_day=500),
})

GAMES_IN_SESSION_CAP = 3.0
STREAK_MULTIPLIER_CAP = 5.0

RARITY_MULTIPLIERS = MappingProxyType({
    Rarity.COMMON: 1.0,
    Rarity.RARE: 1.5,
    Rarity.EPIC: 2.0,
    Rarity.LEGENDARY: 3.0,
})

# Streak lengths that earn a streak_milestone award
STREAK_MILESTONES = (7, 30, 100)

# ============================================
# Onboarding Improvement Areas
# ============================================

# Shown on the progress card as open goals at 0%; unknown ids show as-is
IMPROVEMENT_STAT_TYPE = "improvement"

IMPROVEMENT_AREA_TITLES = MappingProxyType({
    # Attack
    "score_15_goals_season": "Score 15+ Goals This Season",
    "shooting_accuracy_65": "Maintain 65%+ Shooting Accuracy",
    "assists_per_game_1_5": "Average 1.5+ Assists Per Game",
    "ground_balls_3_per_game": "Win 3+ Ground Balls Per Game",
    "limit_turnovers_1_5": "Keep Turnovers Under 1.5 Per Game",
    # Midfield
    "points_per_game_2": "Average 2+ Points Per Game",
    "faceoff_wins_55_percent": "Win 55%+ of Face-offs",
    "ground_balls_4_per_game": "Secure 4+ Ground Balls Per Game",
    "clear_success_80_percent": "Clear Ball Successfully 80%+ of Time",
    "caused_turnovers_1_per_game": "Force 1+ Turnover Per Game",
    # Defense
    "hold_opponent_under_2_goals": "Hold Matchup to Under 2 Goals Per Game",
    "ground_balls_5_per_game": "Win 5+ Ground Balls Per Game",
    "caused_turnovers_1_5_per_game": "Force 1.5+ Turnovers Per Game",
    "clear_success_85_percent": "Clear Successfully 85%+ of Time",
    "slides_communication_90": "Communicate on 90%+ of Slides",
    # Goalie
    "save_percentage_60_plus": "Maintain 60%+ Save Percentage",
    "goals_against_under_8": "Allow Under 8 Goals Per Game",
    "saves_10_plus_5_games": "Record 10+ Saves in 5+ Games",
    "clear_assists_15_season": "Record 15+ Clear Assists This Season",
    "ground_balls_2_per_game": "Secure 2+ Ground Balls Per Game",
    # Recruiting
    "create_highlight_video": "Create Professional Highlight Video",
    "contact_20_college_coaches": "Contact 20+ College Coaches",
    "attend_3_college_camps": "Attend 3+ College Camps/Showcases",
    "maintain_3_5_gpa": "Maintain 3.5+ GPA",
    "complete_sat_act_prep": "Complete SAT/ACT Prep Course",
    # Personal
    "leadership_captain_role": "Earn Team Leadership Role",
    "mentor_younger_players": "Mentor 2+ Younger Players",
    "perfect_attendance_practice": "Perfect Practice Attendance",
    "community_service_20_hours": "Complete 20+ Hours Community Service",
    "improve_fitness_benchmarks": "Improve All Fitness Benchmarks by 10%",
})

# ============================================
# Levels
# ============================================

# (id, name, min_xp, max_xp or None, icon)
LEVELS = (
    ("rookie", "Rookie", 0, 100, "⚡"),
    ("varsity", "Varsity", 101, 300, "🏃"),
    ("allstar", "All-Star", 301, 600, "⭐"),
    ("captain", "Captain", 601, None, "👑"),
)

# ============================================
# Badges
# ============================================

BADGES = (
    # Goalie
    Badge(
        id="first_shutout",
        title="First Shutout",
        description="Record your first shutout",
        icon_name="shield-check",
        category=BadgeCategory.MILESTONES,
        position_scope="goalie",
        rarity=Rarity.RARE,
        requirements=(
            StatSingleGameRequirement(stat="goals_allowed", target=0, comparison=Comparison.LTE),
            # A shutout needs at least one shot faced
            StatSingleGameRequirement(stat="shots_against", target=1),
        ),
    ),
    Badge(
        id="century_saves",
        title="100 Saves Club",
        description="Make 100 saves in a season",
        icon_name="target",
        category=BadgeCategory.MILESTONES,
        position_scope="goalie",
        rarity=Rarity.EPIC,
        requirements=(StatTotalRequirement(stat="saves", target=100),),
    ),
    Badge(
        id="elite_save_percentage",
        title=".700 Save % Club",
        description="Maintain a .700+ save percentage over at least 5 games",
        icon_name="award",
        category=BadgeCategory.PERFORMANCE,
        position_scope="goalie",
        rarity=Rarity.EPIC,
        requirements=(
            StatPercentageRequirement(stat="save_percentage", target=70),
            ConsecutiveGamesRequirement(target=5),
        ),
    ),
    Badge(
        id="wall_of_saves",
        title="Wall of Saves",
        description="Make 20+ saves in a single game",
        icon_name="shield",
        category=BadgeCategory.PERFORMANCE,
        position_scope="goalie",
        rarity=Rarity.RARE,
        requirements=(StatSingleGameRequirement(stat="saves", target=20),),
    ),

    # Field players
    Badge(
        id="first_hat_trick",
        title="First Hat Trick",
        description="Score 3+ goals in a single game",
        icon_name="flame",
        category=BadgeCategory.MILESTONES,
        requirements=(StatSingleGameRequirement(stat="goals", target=3),),
    ),
    Badge(
        id="ground_ball_machine",
        title="50 Ground Balls",
        description="Collect 50 ground balls in a season",
        icon_name="circle-dot",
        category=BadgeCategory.MILESTONES,
        requirements=(StatTotalRequirement(stat="ground_balls", target=50),),
    ),
    Badge(
        id="playmaker",
        title="Playmaker",
        description="Record 25+ assists in a season",
        icon_name="users",
        category=BadgeCategory.PERFORMANCE,
        rarity=Rarity.RARE,
        requirements=(StatTotalRequirement(stat="assists", target=25),),
    ),
    Badge(
        id="scorer",
        title="Scorer",
        description="Score 30+ goals in a season",
        icon_name="zap",
        category=BadgeCategory.PERFORMANCE,
        rarity=Rarity.RARE,
        requirements=(StatTotalRequirement(stat="goals", target=30),),
    ),
    Badge(
        id="point_machine",
        title="Point Machine",
        description="Record 50+ points in a season",
        icon_name="trending-up",
        category=BadgeCategory.PERFORMANCE,
        rarity=Rarity.EPIC,
        requirements=(StatTotalRequirement(stat="points", target=50),),
    ),
    Badge(
        id="faceoff_specialist",
        title="Faceoff Specialist",
        description="Win 55%+ of faceoffs with 100+ faceoff wins in a season",
        icon_name="repeat",
        category=BadgeCategory.PERFORMANCE,
        position_scope="midfielder",
        rarity=Rarity.EPIC,
        requirements=(
            StatPercentageRequirement(stat="faceoff_percentage", target=55),
            StatTotalRequirement(stat="faceoff_wins", target=100),
        ),
    ),
    Badge(
        id="lockdown_defender",
        title="Lockdown Defender",
        description="Cause 20+ turnovers in a season",
        icon_name="lock",
        category=BadgeCategory.PERFORMANCE,
        position_scope="defender",
        rarity=Rarity.RARE,
        requirements=(StatTotalRequirement(stat="caused_turnovers", target=20),),
    ),

    # Consistency
    Badge(
        id="iron_man",
        title="Iron Man",
        description="Play in 15 consecutive games",
        icon_name="calendar-check",
        category=BadgeCategory.CONSISTENCY,
        rarity=Rarity.RARE,
        requirements=(ConsecutiveGamesRequirement(target=15),),
    ),
    Badge(
        id="goal_achiever",
        title="Goal Achiever",
        description="Complete all 3 season goals",
        icon_name="check-circle",
        category=BadgeCategory.SPECIAL,
        rarity=Rarity.LEGENDARY,
        requirements=(SeasonGoalsCompletedRequirement(target=3),),
    ),
)

# ============================================
# Achievements
# ============================================

ACHIEVEMENTS = (
    # Games
    Achievement(
        id="first_game",
        title="First Steps",
        description="Log your first game",
        category=AchievementCategory.GAMES,
        rarity=Rarity.COMMON,
        xp_reward=50,
        icon_name="trophy",
        requirements=(AchievementRequirement(type=AchievementRequirementType.GAMES_LOGGED, target=1),),
    ),
    Achievement(
        id="game_veteran",
        title="Game Veteran",
        description="Log 100 games",
        category=AchievementCategory.GAMES,
        rarity=Rarity.RARE,
        xp_reward=200,
        icon_name="medal",
        requirements=(AchievementRequirement(type=AchievementRequirementType.GAMES_LOGGED, target=100),),
    ),
    Achievement(
        id="game_master",
        title="Game Master",
        description="Log 500 games",
        category=AchievementCategory.GAMES,
        rarity=Rarity.EPIC,
        xp_reward=500,
        icon_name="crown",
        requirements=(AchievementRequirement(type=AchievementRequirementType.GAMES_LOGGED, target=500),),
    ),

    # Streaks
    Achievement(
        id="streak_starter",
        title="Streak Starter",
        description="Maintain a 7-day practice streak",
        category=AchievementCategory.STREAKS,
        rarity=Rarity.COMMON,
        xp_reward=75,
        icon_name="fire",
        requirements=(AchievementRequirement(type=AchievementRequirementType.STREAK_DAYS, target=7),),
    ),
    Achievement(
        id="streak_legend",
        title="Streak Legend",
        description="Maintain a 30-day practice streak",
        category=AchievementCategory.STREAKS,
        rarity=Rarity.EPIC,
        xp_reward=300,
        icon_name="flame",
        requirements=(AchievementRequirement(type=AchievementRequirementType.STREAK_DAYS, target=30),),
    ),
    Achievement(
        id="streak_immortal",
        title="Streak Immortal",
        description="Maintain a 100-day practice streak",
        category=AchievementCategory.STREAKS,
        rarity=Rarity.LEGENDARY,
        xp_reward=1000,
        icon_name="star",
        requirements=(AchievementRequirement(type=AchievementRequirementType.STREAK_DAYS, target=100),),
    ),

    # Stats
    Achievement(
        id="sharpshooter",
        title="Sharpshooter",
        description="Score 6 goals in a single game",
        category=AchievementCategory.STATS,
        rarity=Rarity.RARE,
        xp_reward=150,
        icon_name="target",
        requirements=(
            AchievementRequirement(
                type=AchievementRequirementType.STAT_VALUE,
                target=6,
                metadata={"stat": "goals", "comparison": "gte"},
            ),
        ),
    ),
    Achievement(
        id="quarterback",
        title="Quarterback",
        description="Record 5 assists in a single game",
        category=AchievementCategory.STATS,
        rarity=Rarity.EPIC,
        xp_reward=250,
        icon_name="diamond",
        requirements=(
            AchievementRequirement(
                type=AchievementRequirementType.STAT_VALUE,
                target=5,
                metadata={"stat": "assists", "comparison": "gte"},
            ),
        ),
    ),

    # Milestones
    Achievement(
        id="xp_collector",
        title="XP Collector",
        description="Earn 1,000 total XP",
        category=AchievementCategory.MILESTONES,
        rarity=Rarity.COMMON,
        xp_reward=100,
        icon_name="gem",
        requirements=(AchievementRequirement(type=AchievementRequirementType.TOTAL_XP, target=1000),),
    ),
    Achievement(
        id="xp_master",
        title="XP Master",
        description="Earn 10,000 total XP",
        category=AchievementCategory.MILESTONES,
        rarity=Rarity.RARE,
        xp_reward=500,
        icon_name="trophy-star",
        requirements=(AchievementRequirement(type=AchievementRequirementType.TOTAL_XP, target=10000),),
    ),

    # Social
    Achievement(
        id="social_butterfly",
        title="Social Butterfly",
        description="Share 10 achievements or stats",
        category=AchievementCategory.SOCIAL,
        rarity=Rarity.COMMON,
        xp_reward=75,
        icon_name="share",
        requirements=(AchievementRequirement(type=AchievementRequirementType.SOCIAL_SHARES, target=10),),
    ),

    # Special
    Achievement(
        id="perfect_month",
        title="Perfect Month",
        description="Log 30 games in a month",
        category=AchievementCategory.SPECIAL,
        rarity=Rarity.LEGENDARY,
        xp_reward=750,
        icon_name="calendar-star",
        is_secret=True,
        requirements=(
            AchievementRequirement(
                type=AchievementRequirementType.CONSECUTIVE_GAMES,
                target=30,
                timeframe="monthly",
            ),
        ),
    ),
)


def get_badge(badge_id: str):
    """Catalog lookup; None for unknown ids"""
    return next((b for b in BADGES if b.id == badge_id), None)


def get_achievement(achievement_id: str):
    return next((a for a in ACHIEVEMENTS if a.id == achievement_id), None)
