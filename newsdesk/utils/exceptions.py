"""
Newsdesk Exceptions
===================

Every error raised by newsdesk code carries an ``ErrorCode``, a context
dict for the logs and a ``user_message`` that API handlers may return
to the caller as is.

Subclasses only declare their defaults and which keyword arguments end
up in the context; construction is shared in ``NewsdeskError``.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ErrorCode(str, Enum):
    """Stable error codes returned in API error bodies."""

    # Configuration
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"

    # Database
    DATABASE_CONNECTION = "D001"
    DATABASE_ERROR = "D006"

    # Article content and prompts
    CONTENT_INVALID = "P001"
    CONTENT_EXTRACTION_FAILED = "P003"
    PROMPT_MISSING = "P005"

    # Azure OpenAI
    AI_API_ERROR = "A001"
    AI_INVALID_RESPONSE = "A003"
    AI_TIMEOUT = "A004"
    AI_RATE_LIMIT = "A006"
    AI_NOT_CONFIGURED = "A008"
    AI_INVALID_CREDENTIALS = "A009"
    AI_CONNECTION_ERROR = "A010"

    # Telegram
    TELEGRAM_API_ERROR = "T001"
    TELEGRAM_NOT_CONFIGURED = "T002"
    TELEGRAM_NETWORK_ERROR = "T005"

    # Input validation
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"

    # Records and request limits
    RESOURCE_NOT_FOUND = "R002"
    RATE_LIMITED = "R004"

    # Third-party services (social platforms, email, feeds)
    EXTERNAL_SERVICE_ERROR = "E001"
    EXTERNAL_SERVICE_UNAVAILABLE = "E002"
    EXTERNAL_SERVICE_TIMEOUT = "E003"

    SYSTEM_PERMISSION_DENIED = "S002"


class NewsdeskError(Exception):
    """Base class for newsdesk errors.

    Args:
        message: Technical message for the logs
        error_code: Defaults to the class' ``default_code``
        context: Extra details for the logs
        user_message: Text safe to show API callers; defaults to ``message``
        recoverable: Defaults to the class' ``default_recoverable``
        **fields: Keyword arguments named in ``context_fields``, copied into the context
    """

    default_code: Optional[ErrorCode] = None
    default_recoverable: bool = False
    context_fields: Tuple[str, ...] = ()

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: Optional[bool] = None,
        **fields: Any,
    ):
        unknown = set(fields) - set(self.context_fields)
        if unknown:
            raise TypeError(f"{type(self).__name__} got unexpected arguments: {sorted(unknown)}")

        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.context = dict(context or {})
        self.context.update({name: value for name, value in fields.items() if value is not None})
        self.user_message = user_message or self._default_user_message()
        self.recoverable = self.default_recoverable if recoverable is None else recoverable

    def _default_user_message(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form used for log records."""
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": self.message,
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        if self.error_code is None:
            return self.message
        return f"[{self.error_code.value}] {self.message}"


class ConfigurationError(NewsdeskError):
    """Settings are missing or inconsistent."""

    default_code = ErrorCode.CONFIG_INVALID
    context_fields = ("config_key",)

    def _default_user_message(self) -> str:
        return f"Configuration error: {self.message}"


class DatabaseError(NewsdeskError):
    """SQLite query or connection failure."""

    default_code = ErrorCode.DATABASE_CONNECTION
    default_recoverable = True
    context_fields = ("query",)

    def _default_user_message(self) -> str:
        return "Database operation failed"


class ProcessingError(NewsdeskError):
    """A news record could not be analysed or rewritten."""

    default_code = ErrorCode.CONTENT_INVALID
    default_recoverable = True
    context_fields = ("news_id",)


class ContentExtractionError(ProcessingError):
    """Article page could not be fetched or yielded no usable text."""

    default_code = ErrorCode.CONTENT_EXTRACTION_FAILED
    context_fields = ("news_id", "url")


class ResourceNotFound(NewsdeskError):
    default_code = ErrorCode.RESOURCE_NOT_FOUND
    context_fields = ("resource_id",)


class AIError(NewsdeskError):
    """Azure OpenAI call failed or returned something unusable.

    ``retryable`` marks failures where repeating the call may succeed
    (timeouts, rate limits, 5xx) and is the default for ``recoverable``.
    """

    default_code = ErrorCode.AI_API_ERROR
    context_fields = ("deployment",)

    def __init__(self, message: str, retryable: bool = False, **kwargs: Any):
        kwargs.setdefault("recoverable", retryable)
        super().__init__(message, **kwargs)
        self.retryable = retryable


class TelegramError(NewsdeskError):
    default_code = ErrorCode.TELEGRAM_API_ERROR
    default_recoverable = True
    context_fields = ("chat_id",)


class SocialPublishError(NewsdeskError):
    """Upload or post to a social platform failed.

    Recoverable unless the platform answered with a 4xx status.
    """

    default_code = ErrorCode.EXTERNAL_SERVICE_ERROR
    context_fields = ("platform", "status_code")

    def __init__(
        self,
        message: str,
        platform: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("recoverable", status_code is None or status_code >= 500)
        super().__init__(message, platform=platform, status_code=status_code, **kwargs)
        self.platform = platform
        self.status_code = status_code


class ValidationError(NewsdeskError):
    """Caller supplied a missing or malformed value."""

    default_code = ErrorCode.VALIDATION_INVALID_FORMAT
    context_fields = ("field_name",)


class RateLimitExceeded(NewsdeskError):
    """Caller exceeded an in-memory request limit."""

    default_code = ErrorCode.RATE_LIMITED
    default_recoverable = True
    context_fields = ("key",)


def _wrap_builtin(exception: Exception, operation: str, context: Dict[str, Any]) -> NewsdeskError:
    if isinstance(exception, (ConnectionError, TimeoutError)):
        return NewsdeskError(
            f"Network error during {operation}: {exception}",
            error_code=ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE,
            context=context,
            user_message="Network connection failed",
            recoverable=True,
        )
    if isinstance(exception, PermissionError):
        return NewsdeskError(
            f"Permission denied during {operation}: {exception}",
            error_code=ErrorCode.SYSTEM_PERMISSION_DENIED,
            context=context,
            user_message="Access denied",
        )
    return NewsdeskError(
        f"Unexpected error during {operation}: {exception}",
        context=context,
        user_message="An unexpected error occurred",
        recoverable=True,
    )


def handle_exception(
    exception: Exception,
    logger,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> NewsdeskError:
    """Log ``exception`` and return it as a NewsdeskError.

    Newsdesk errors are returned unchanged; anything else is wrapped with
    the operation name and original exception type in its context.
    """
    if isinstance(exception, NewsdeskError):
        error = exception
    else:
        details = dict(context or {})
        details["operation"] = operation
        details["original_exception_type"] = type(exception).__name__
        error = _wrap_builtin(exception, operation, details)

    logger.error(f"Operation '{operation}' failed", extra=error.to_dict())
    return error
