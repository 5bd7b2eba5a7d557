"""
Standardized exception hierarchy for goalmate
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class GoalMateError(Exception):
    """
    Base exception for all goalmate errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise GoalMateError(
            message="Failed to record check-in",
            user_id="local-user",
            operation="daily_check_in",
            context={"habit_id": "h1"}
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
                exc_info=self.cause
            )
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for the view layer"""
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

class ValidationError(GoalMateError):
    """
    Raised when a user action is rejected before any state changes

    Examples:
    - Check-in without the required screenshot or link
    - Second check-in for the same habit on the same day
    - Finalizing a goal whose modules are not all completed

    Example:
        raise ValidationError(
            message="A link is required for this check-in",
            field="proof",
            value="link"
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
        kwargs.setdefault("user_message", message)
        super().__init__(
            message=message,
            context={"field": field, "value": value},
            **kwargs
        )


class RecordNotFoundError(GoalMateError):
    """Requested goal, module or habit does not exist in the session"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


# ==========================================
# Concurrency Errors
# ==========================================

class OperationInProgressError(GoalMateError):
    """A second request arrived while the first one for the same entity is outstanding"""

    log_level = logging.WARNING

    def __init__(self, entity_key: str, **kwargs):
        self.entity_key = entity_key
        super().__init__(
            message=f"Operation already in progress for {entity_key}",
            user_message="Hang on, we're still working on your last request.",
            context={"entity_key": entity_key},
            **kwargs
        )


class StaleOperationError(GoalMateError):
    """A result arrived for a cancelled or superseded operation"""

    log_level = logging.WARNING

    def __init__(self, entity_key: str, **kwargs):
        self.entity_key = entity_key
        super().__init__(
            message=f"Discarding stale result for {entity_key}",
            user_message="That request was cancelled.",
            context={"entity_key": entity_key},
            **kwargs
        )


# ==========================================
# External Provider Errors
# ==========================================

class ExternalAPIError(GoalMateError):
    """
    Base class for external service failures
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        kwargs.setdefault(
            "user_message",
            f"We're having trouble connecting to {service or 'an external service'}. Please try again later."
        )
        super().__init__(
            message=message,
            context={"service": service, "status_code": status_code},
            **kwargs
        )


class ProviderUnavailableError(ExternalAPIError):
    """Insight provider is not configured or its circuit is open"""

    log_level = logging.WARNING

    def __init__(self, message: str = "Insight provider unavailable", **kwargs):
        super().__init__(message=message, service="Insight provider", **kwargs)


class ProviderError(ExternalAPIError):
    """Insight provider call failed or returned an unusable response"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message=message, service="Insight provider", **kwargs)


# ==========================================
# Persistence Errors
# ==========================================

class PersistenceError(GoalMateError):
    """Check-in persistence collaborator reported a failure (retryable)"""

    retryable = True

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            user_message="Sorry, there was a problem saving your check-in. Please try again later.",
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(GoalMateError):
    """System configuration is invalid"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The app is not properly configured. Please contact support.",
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
) -> GoalMateError:
    """
    Wrap external exceptions (psycopg, httpx, openai) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate GoalMateError subclass

    Example:
        try:
            await cur.execute(query, params)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="record_check_in")
    """
    # Import here to keep the drivers out of module import time
    import httpx
    import openai
    import psycopg

    if isinstance(error, GoalMateError):
        return error

    # Persistence errors
    if isinstance(error, psycopg.Error):
        return PersistenceError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    # Provider errors
    if isinstance(error, openai.APIStatusError):
        return ProviderError(
            message=f"Provider returned error: {error.status_code}",
            status_code=error.status_code,
            user_id=user_id,
            operation=operation,
            cause=error
        )
    if isinstance(error, openai.OpenAIError):
        return ProviderError(
            message=f"Provider call failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )
    if isinstance(error, httpx.TimeoutException):
        return ProviderError(
            message=f"Provider request timed out: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )
    if isinstance(error, httpx.HTTPStatusError):
        return ProviderError(
            message=f"Provider returned error: {error.response.status_code}",
            status_code=error.response.status_code,
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Generic fallback
    return GoalMateError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
