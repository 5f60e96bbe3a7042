"""
Shared module for Repo Popularity.

Provides:
- Unified exception hierarchy
- Async utilities (parallel execution, circuit breaker)
"""

from .async_utils import (
    # Fault tolerance
    CircuitBreaker,
    CircuitState,
    # Parallel execution
    gather_with_errors,
)
from .exceptions import (
    # API errors
    APIError,
    CircuitOpenError,
    # Configuration errors
    ConfigurationError,
    # Data errors
    DataError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    InvalidParameterError,
    MissingParameterError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitError,
    # Base
    RepoPopularityError,
    ServiceUnavailableError,
    # Validation errors
    ValidationError,
)

__all__ = [
    # Exceptions
    "RepoPopularityError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "APIError",
    "RateLimitError",
    "NetworkError",
    "ServiceUnavailableError",
    "CircuitOpenError",
    "ValidationError",
    "InvalidParameterError",
    "MissingParameterError",
    "DataError",
    "NotFoundError",
    "ParseError",
    "ConfigurationError",
    # Async utilities
    "gather_with_errors",
    "CircuitBreaker",
    "CircuitState",
]
