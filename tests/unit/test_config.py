"""Tests for configuration validation"""
import pytest

from src import config
from src.exceptions import ConfigurationError


def test_defaults_are_valid():
    config.validate_config()


def test_default_limits():
    assert config.RATE_LIMIT_MAX_PER_HOUR == 50
    assert config.RATE_LIMIT_MAX_PER_DAY == 200
    assert config.RATE_LIMIT_SUSPICIOUS_THRESHOLD == 100


def test_non_positive_hourly_limit(monkeypatch):
    monkeypatch.setattr(config, "RATE_LIMIT_MAX_PER_HOUR", 0)

    with pytest.raises(ConfigurationError) as exc_info:
        config.validate_config()

    assert exc_info.value.config_key == "RATE_LIMIT_MAX_PER_HOUR"


def test_daily_limit_below_hourly(monkeypatch):
    monkeypatch.setattr(config, "RATE_LIMIT_MAX_PER_HOUR", 50)
    monkeypatch.setattr(config, "RATE_LIMIT_MAX_PER_DAY", 10)

    with pytest.raises(ConfigurationError) as exc_info:
        config.validate_config()

    assert exc_info.value.config_key == "RATE_LIMIT_MAX_PER_DAY"


def test_non_positive_lookback(monkeypatch):
    monkeypatch.setattr(config, "BADGE_GAME_LOOKBACK", 0)

    with pytest.raises(ConfigurationError):
        config.validate_config()


def test_sentry_requires_dsn(monkeypatch):
    monkeypatch.setattr(config, "ENABLE_SENTRY", True)
    monkeypatch.setattr(config, "SENTRY_DSN", "")

    with pytest.raises(ConfigurationError) as exc_info:
        config.validate_config()

    assert exc_info.value.config_key == "SENTRY_DSN"


def test_unknown_timezone(monkeypatch):
    monkeypatch.setattr(config, "TRACKER_TIMEZONE", "Mars/Olympus_Mons")

    with pytest.raises(ConfigurationError) as exc_info:
        config.validate_config()

    assert exc_info.value.config_key == "TRACKER_TIMEZONE"
