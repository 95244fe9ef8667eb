"""Sentry configuration and initialization for error tracking."""

import logging
import os
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)


def init_sentry() -> None:
    """
    Initialize Sentry SDK for error tracking.

    Configures Sentry with:
    - Logging integration for breadcrumbs
    - Environment-specific configuration
    - Release tracking

    Environment variables:
        SENTRY_DSN: Sentry project DSN (required)
        SENTRY_ENVIRONMENT: Environment name (development, staging, production)
        SENTRY_TRACES_SAMPLE_RATE: Percentage of transactions to sample (0.0-1.0)
        ENABLE_SENTRY: Feature flag to enable/disable Sentry
        GIT_COMMIT_SHA: Git commit SHA for release tracking (optional)
    """
    from src.config import (
        SENTRY_DSN,
        SENTRY_ENVIRONMENT,
        SENTRY_TRACES_SAMPLE_RATE,
        ENABLE_SENTRY,
    )

    if not ENABLE_SENTRY:
        logger.info("Sentry is disabled (ENABLE_SENTRY=false)")
        return

    if not SENTRY_DSN:
        logger.warning("Sentry DSN not configured - error tracking disabled")
        return

    release = os.getenv("GIT_COMMIT_SHA")
    if release:
        release = f"lacrosse-tracker@{release[:7]}"
    else:
        release = "lacrosse-tracker@dev"

    logging_integration = LoggingIntegration(
        level=logging.INFO,  # Capture info and above as breadcrumbs
        event_level=logging.ERROR,  # Send errors and above as events
    )

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        release=release,
        integrations=[logging_integration],
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        attach_stacktrace=True,
        # Players are minors: never ship IPs or cookies
        send_default_pii=False,
        before_send=_before_send,
    )

    logger.info(
        f"Sentry initialized: environment={SENTRY_ENVIRONMENT}, "
        f"release={release}, traces_sample_rate={SENTRY_TRACES_SAMPLE_RATE}"
    )


def _before_send(event, hint):
    """
    Filter events before sending to Sentry.

    Unknown activity types and duplicate unlocks are expected outcomes,
    not errors.
    """
    if "exc_info" in hint:
        exc_type, exc_value, tb = hint["exc_info"]
        if exc_type.__name__ in ("ValidationError", "DuplicateRecordError"):
            return None

    return event


def capture_gamification_error(
    error: Exception,
    trigger: str,
    user_id: Optional[str] = None,
    **extra: Any
) -> None:
    """Report an error that the coordinator absorbed"""
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("component", "gamification")
        scope.set_tag("trigger", trigger)
        if user_id:
            scope.set_user({"id": user_id})
        for key, value in extra.items():
            scope.set_extra(key, value)
        sentry_sdk.capture_exception(error)


def shutdown_sentry() -> None:
    """
    Gracefully shutdown Sentry client.

    Flushes any pending events to Sentry before shutting down.
    """
    client = sentry_sdk.get_client()
    if client.is_active():
        logger.info("Flushing Sentry events before shutdown...")
        client.close(timeout=2.0)
        logger.info("Sentry shutdown complete")
