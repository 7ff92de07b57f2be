"""
Shared module for Photo Search.

Provides:
- Unified exception hierarchy
- Async utilities (debouncing)
"""

from .async_utils import Debouncer
from .exceptions import (
    # API errors
    APIError,
    # Configuration errors
    ConfigurationError,
    # Data errors
    DataError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    InvalidParameterError,
    InvalidQueryError,
    MalformedResponseError,
    NetworkError,
    # Base
    PhotoSearchError,
    RateLimitError,
    ServiceUnavailableError,
    StorageCorruptionError,
    # Validation errors
    ValidationError,
    # Utilities
    is_retryable_error,
)

__all__ = [
    # Exceptions
    "PhotoSearchError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "APIError",
    "NetworkError",
    "RateLimitError",
    "ServiceUnavailableError",
    "ValidationError",
    "InvalidQueryError",
    "InvalidParameterError",
    "DataError",
    "MalformedResponseError",
    "StorageCorruptionError",
    "ConfigurationError",
    "is_retryable_error",
    # Async utilities
    "Debouncer",
]
