"""
Standardized exception hierarchy for the performance tracker
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class TrackerError(Exception):
    """
    Base exception for all tracker errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise TrackerError(
            message="Failed to save XP award",
            user_id="player-1",
            operation="award_xp",
            context={"action_type": "game_logged"}
        )
    """

    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(
                self.log_level,
                f"{self.__class__.__name__}: {self.message}",
                extra=log_data,
                exc_info=self.cause,
            )
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(TrackerError):
    """
    Raised when input fails validation

    Example:
        raise ValidationError(
            message="Unknown activity type 'yoga'",
            field="activity_type",
            value="yoga"
        )
    """

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(TrackerError):
    """
    Base class for document store errors
    """
    pass


class StoreUnavailableError(DatabaseError):
    """Document store could not be reached or failed transiently"""

    def __init__(self, message: str = "Document store unavailable", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble saving your progress. Please try again in a moment.",
            **kwargs
        )


class QueryError(DatabaseError):
    """Document store query failed"""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        **kwargs
    ):
        self.collection = collection
        super().__init__(
            message=message,
            user_message="We encountered an issue loading your data. Please try again.",
            context={"collection": collection},
            **kwargs
        )


class DuplicateRecordError(DatabaseError):
    """A document with the same unique id already exists"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.collection = collection
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message="This was already recorded.",
            context={"collection": collection, "record_id": record_id},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(TrackerError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> TrackerError:
    """
    Wrap store client exceptions into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate TrackerError subclass

    Example:
        try:
            await store.update_increment("users", user_id, "total_xp", 50)
        except Exception as e:
            raise wrap_external_exception(e, operation="award_xp", user_id=user_id)
    """
    if isinstance(error, TrackerError):
        return error

    # Malformed query or document
    if isinstance(error, (KeyError, TypeError, ValueError)):
        return QueryError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Connection, timeout and anything else the client raises
    return StoreUnavailableError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
