"""
Prometheus metrics definitions for the gamification engine.

Metrics are organized by category:
- XP ledger: awards, rejections
- Rate limiting: suspicious activity, fail-open reads
- Streaks and badges: logs, unlocks
- Coordinator: latency, degraded calls

Metrics are exposed on PROMETHEUS_PORT for scraping when enabled.
"""

import logging
from prometheus_client import Counter, Histogram, Info

logger = logging.getLogger(__name__)

# =============================================================================
# XP Ledger Metrics
# =============================================================================

gamification_xp_awarded_total = Counter(
    "gamification_xp_awarded_total",
    "Total XP awarded",
    ["action_type"],
)

gamification_xp_awards_rejected_total = Counter(
    "gamification_xp_awards_rejected_total",
    "XP award attempts that were rejected",
    ["action_type", "reason"],  # reason: cooldown/daily_action_cap/hourly/daily/...
)

# =============================================================================
# Rate Limiter Metrics
# =============================================================================

gamification_suspicious_activity_total = Counter(
    "gamification_suspicious_activity_total",
    "Users flagged for unusually frequent XP actions",
)

gamification_rate_limit_fail_open_total = Counter(
    "gamification_rate_limit_fail_open_total",
    "Rate limit checks skipped because the store read failed",
    ["check"],
)

# =============================================================================
# Streak and Badge Metrics
# =============================================================================

gamification_streak_logs_total = Counter(
    "gamification_streak_logs_total",
    "Skills activities logged",
    ["activity_type", "outcome"],  # outcome: logged/already_logged
)

gamification_streak_length = Histogram(
    "gamification_streak_length",
    "Current streak length after a new skills activity",
    ["activity_type"],
    buckets=[1, 2, 3, 5, 7, 14, 30, 60, 100],
)

gamification_badges_unlocked_total = Counter(
    "gamification_badges_unlocked_total",
    "Total badges unlocked",
    ["badge_id"],
)

gamification_achievements_unlocked_total = Counter(
    "gamification_achievements_unlocked_total",
    "Total achievements unlocked",
    ["achievement_id"],
)

# =============================================================================
# Coordinator Metrics
# =============================================================================

gamification_event_duration_seconds = Histogram(
    "gamification_event_duration_seconds",
    "Time to process a gamification trigger",
    ["trigger"],  # trigger: game_logged/skill_activity_logged
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

gamification_errors_total = Counter(
    "gamification_errors_total",
    "Gamification triggers that degraded to an empty result",
    ["trigger"],
)

# =============================================================================
# Application Info
# =============================================================================

app_info = Info(
    "app_info",
    "Application information",
)


def init_metrics():
    """
    Initialize metrics with application information.

    This should be called once at application startup to set
    static metadata about the application.
    """
    import os
    import sys
    from src.config import SENTRY_ENVIRONMENT

    app_info.info(
        {
            "version": os.getenv("GIT_COMMIT_SHA", "dev")[:7],
            "environment": SENTRY_ENVIRONMENT,
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}",
        }
    )

    logger.info("Prometheus metrics initialized")
