"""
Unified Exception Hierarchy for Photo Search.

Exception Hierarchy:
    PhotoSearchError (base)
    ├── APIError
    │   └── NetworkError
    │       ├── RateLimitError
    │       └── ServiceUnavailableError
    ├── ValidationError
    │   ├── InvalidQueryError
    │   └── InvalidParameterError
    ├── DataError
    │   ├── MalformedResponseError
    │   └── StorageCorruptionError
    └── ConfigurationError
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = auto()      # Recoverable, can continue
    ERROR = auto()        # Failed but can retry
    CRITICAL = auto()     # Cannot continue
    TRANSIENT = auto()    # Temporary, should retry automatically


class ErrorCategory(Enum):
    """Categories for error classification."""
    API = "api"
    VALIDATION = "validation"
    DATA = "data"
    CONFIGURATION = "config"
    NETWORK = "network"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Rich context attached to an error."""
    operation: str | None = None
    input_value: Any = None
    suggestion: str | None = None
    retry_after: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def with_changes(self, **changes: Any) -> ErrorContext:
        """Return a copy with the given fields replaced."""
        values = {
            "operation": self.operation,
            "input_value": self.input_value,
            "suggestion": self.suggestion,
            "retry_after": self.retry_after,
            "metadata": self.metadata,
        }
        values.update(changes)
        return ErrorContext(**values)


class PhotoSearchError(Exception):
    """
    Base exception for all Photo Search errors.

    Provides:
    - Structured error context
    - Severity classification
    - Retry guidance
    """

    __slots__ = ('context', 'severity', 'category', 'retryable')

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.API,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "error": str(self),
            "category": self.category.value,
            "severity": self.severity.name.lower(),
            "retryable": self.retryable,
        }
        if self.context.operation:
            result["operation"] = self.context.operation
        if self.context.suggestion:
            result["suggestion"] = self.context.suggestion
        if self.context.retry_after:
            result["retry_after_seconds"] = self.context.retry_after
        return result


# =============================================================================
# API Errors
# =============================================================================

class APIError(PhotoSearchError):
    """Base class for API-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.API,
            retryable=retryable,
        )


class NetworkError(APIError):
    """Raised for transport failures and non-2xx responses."""

    def __init__(
        self,
        message: str = "Network connection failed",
        *,
        status: int | None = None,
        context: ErrorContext | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message, context=context, retryable=retryable)
        self.category = ErrorCategory.NETWORK
        self.status = status


class RateLimitError(NetworkError):
    """Raised when the API rate limit is exceeded (HTTP 429)."""

    def __init__(
        self,
        message: str = "API rate limit exceeded",
        *,
        retry_after: float = 1.0,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_changes(retry_after=retry_after)
        if not ctx.suggestion:
            ctx = ctx.with_changes(suggestion="Wait and retry the request")
        super().__init__(message, status=429, context=ctx, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT


class ServiceUnavailableError(NetworkError):
    """Raised when the photo service answers with a 5xx status."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        *,
        status: int = 503,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message, status=status, context=context, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(PhotoSearchError):
    """Base class for validation errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.VALIDATION,
            retryable=False,
        )


class InvalidQueryError(ValidationError):
    """Raised when search query is invalid."""

    def __init__(
        self,
        query: str | None,
        reason: str = "Query cannot be empty",
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_changes(input_value=query)
        if not ctx.suggestion:
            ctx = ctx.with_changes(suggestion="Provide a valid search query")
        super().__init__(f"Invalid query: {reason}", context=ctx)


class InvalidParameterError(ValidationError):
    """Raised when a parameter value is invalid."""

    def __init__(
        self,
        param_name: str,
        value: Any,
        expected: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_changes(
            input_value=value,
            suggestion=f"Expected {expected}",
        )
        super().__init__(
            f"Invalid parameter '{param_name}': {value!r} (expected {expected})",
            context=ctx
        )
        self.param_name = param_name


# =============================================================================
# Data Errors
# =============================================================================

class DataError(PhotoSearchError):
    """Base class for data-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.DATA,
            retryable=False,
        )


class MalformedResponseError(DataError):
    """Raised when a response body is not the JSON document we expect."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        full_msg = f"Malformed response: {message}"
        if source:
            full_msg = f"Malformed response ({source}): {message}"
        super().__init__(full_msg, context=context)


class StorageCorruptionError(DataError):
    """Raised when a persisted value cannot be decoded."""

    def __init__(
        self,
        key: str,
        raw_value: str | None,
        reason: str,
    ) -> None:
        super().__init__(
            f"Corrupt stored value for '{key}': {reason}",
            context=ErrorContext(operation="load", input_value=raw_value),
        )
        self.severity = ErrorSeverity.WARNING
        self.key = key


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(PhotoSearchError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )


def is_retryable_error(error: BaseException) -> bool:
    """Check if an error should be retried."""
    if isinstance(error, PhotoSearchError):
        return error.retryable

    # Check for common transient error messages
    error_str = str(error).lower()
    transient_patterns = [
        "rate limit",
        "too many requests",
        "temporarily unavailable",
        "service unavailable",
        "connection reset",
        "timeout",
    ]
    return any(pattern in error_str for pattern in transient_patterns)
