"""Configuration management"""
import os
from dotenv import load_dotenv

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Calendar days (streaks, daily caps) are cut at local midnight in this zone
TRACKER_TIMEZONE: str = os.getenv("TRACKER_TIMEZONE", "UTC")

# Rate limiting
RATE_LIMIT_MAX_PER_HOUR: int = int(os.getenv("RATE_LIMIT_MAX_PER_HOUR", "50"))
RATE_LIMIT_MAX_PER_DAY: int = int(os.getenv("RATE_LIMIT_MAX_PER_DAY", "200"))
RATE_LIMIT_SUSPICIOUS_THRESHOLD: int = int(os.getenv("RATE_LIMIT_SUSPICIOUS_THRESHOLD", "100"))
RATE_LIMIT_QUERY_LIMIT: int = int(os.getenv("RATE_LIMIT_QUERY_LIMIT", "365"))

# Lookback windows
BADGE_GAME_LOOKBACK: int = int(os.getenv("BADGE_GAME_LOOKBACK", "50"))
STREAK_LOOKBACK_DAYS: int = int(os.getenv("STREAK_LOOKBACK_DAYS", "365"))

# Sentry
ENABLE_SENTRY: bool = os.getenv("ENABLE_SENTRY", "false").lower() == "true"
SENTRY_DSN: str = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT: str = os.getenv("SENTRY_ENVIRONMENT", "development")
SENTRY_TRACES_SAMPLE_RATE: float = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))

# Prometheus
ENABLE_PROMETHEUS: bool = os.getenv("ENABLE_PROMETHEUS", "true").lower() == "true"
PROMETHEUS_PORT: int = int(os.getenv("PROMETHEUS_PORT", "9090"))


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
    from src.exceptions import ConfigurationError

    if RATE_LIMIT_MAX_PER_HOUR <= 0:
        raise ConfigurationError("RATE_LIMIT_MAX_PER_HOUR must be positive", config_key="RATE_LIMIT_MAX_PER_HOUR")
    if RATE_LIMIT_MAX_PER_DAY < RATE_LIMIT_MAX_PER_HOUR:
        raise ConfigurationError(
            "RATE_LIMIT_MAX_PER_DAY must be at least RATE_LIMIT_MAX_PER_HOUR",
            config_key="RATE_LIMIT_MAX_PER_DAY",
        )
    if RATE_LIMIT_QUERY_LIMIT <= 0:
        raise ConfigurationError("RATE_LIMIT_QUERY_LIMIT must be positive", config_key="RATE_LIMIT_QUERY_LIMIT")
    if BADGE_GAME_LOOKBACK <= 0:
        raise ConfigurationError("BADGE_GAME_LOOKBACK must be positive", config_key="BADGE_GAME_LOOKBACK")
    if ENABLE_SENTRY and not SENTRY_DSN:
        raise ConfigurationError("SENTRY_DSN is required when ENABLE_SENTRY=true", config_key="SENTRY_DSN")
    try:
        ZoneInfo(TRACKER_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(
            f"Unknown timezone '{TRACKER_TIMEZONE}'", config_key="TRACKER_TIMEZONE", cause=e
        )
