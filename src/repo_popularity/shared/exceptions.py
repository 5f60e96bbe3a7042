"""
Unified Exception Hierarchy for Repo Popularity.

Exception Hierarchy:
    RepoPopularityError (base)
    ├── APIError
    │   ├── RateLimitError
    │   ├── NetworkError
    │   ├── ServiceUnavailableError
    │   └── CircuitOpenError
    ├── ValidationError
    │   ├── InvalidParameterError
    │   └── MissingParameterError
    ├── DataError
    │   ├── NotFoundError
    │   └── ParseError
    └── ConfigurationError

Upstream errors (APIError, DataError) are raised by the GitHub transport and
absorbed by the search gateway. ValidationError is raised at the HTTP edge.
ConfigurationError is raised once, at startup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    WARNING = auto()  # Recoverable, can continue
    ERROR = auto()  # Failed but can retry
    CRITICAL = auto()  # Cannot continue
    TRANSIENT = auto()  # Temporary, upstream may recover


class ErrorCategory(Enum):
    """Categories for error classification."""

    API = "api"
    VALIDATION = "validation"
    DATA = "data"
    CONFIGURATION = "config"
    NETWORK = "network"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Rich context for error messages."""

    operation: str | None = None
    input_value: Any = None
    suggestion: str | None = None
    status_code: int | None = None
    retry_after: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class RepoPopularityError(Exception):
    """
    Base exception for all Repo Popularity errors.

    Provides:
    - Structured error context
    - Severity classification
    - Retry guidance
    """

    __slots__ = ("context", "severity", "category", "retryable")

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
        if self.context.status_code is not None:
            result["status_code"] = self.context.status_code
        if self.context.retry_after:
            result["retry_after_seconds"] = self.context.retry_after
        return result


def _merge_context(context: ErrorContext | None, **overrides: Any) -> ErrorContext:
    ctx = context or ErrorContext()
    values = {
        "operation": ctx.operation,
        "input_value": ctx.input_value,
        "suggestion": ctx.suggestion,
        "status_code": ctx.status_code,
        "retry_after": ctx.retry_after,
        "metadata": ctx.metadata,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ErrorContext(**values)


# =============================================================================
# API Errors
# =============================================================================


class APIError(RepoPopularityError):
    """Base class for upstream API errors."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        context: ErrorContext | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message,
            context=_merge_context(context, status_code=status_code),
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.API,
            retryable=retryable,
        )

    @property
    def status_code(self) -> int | None:
        return self.context.status_code


class RateLimitError(APIError):
    """Raised when the GitHub API rate limit is exceeded."""

    def __init__(
        self,
        message: str = "API rate limit exceeded",
        *,
        retry_after: float = 1.0,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = _merge_context(
            context,
            suggestion=(context.suggestion if context else None) or "Wait for the rate limit window to reset",
            retry_after=retry_after,
        )
        super().__init__(message, status_code=status_code, context=ctx, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT


class NetworkError(APIError):
    """Raised for network connectivity issues and transport timeouts."""

    def __init__(
        self,
        message: str = "Network connection failed",
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message, context=context, retryable=True)
        self.category = ErrorCategory.NETWORK


class ServiceUnavailableError(APIError):
    """Raised when the external service answers with a server error."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        *,
        service: str = "GitHub",
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(f"{service}: {message}", status_code=status_code, context=context, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT


class CircuitOpenError(APIError):
    """Raised by the circuit breaker when calls are being short-circuited."""

    def __init__(
        self,
        name: str,
        *,
        retry_after: float,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            f"Circuit breaker '{name}' is open",
            context=_merge_context(context, retry_after=retry_after),
            retryable=True,
        )
        self.severity = ErrorSeverity.TRANSIENT


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(RepoPopularityError):
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
        ctx = _merge_context(context, input_value=value, suggestion=f"Expected {expected}")
        super().__init__(
            f"Invalid value ('{value}') for parameter '{param_name}'. Expected type: {expected}.",
            context=ctx,
        )
        self.param_name = param_name


class MissingParameterError(ValidationError):
    """Raised when a required parameter is absent or blank."""

    def __init__(
        self,
        param_name: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(f"Missing required parameter: '{param_name}'.", context=context)
        self.param_name = param_name


# =============================================================================
# Data Errors
# =============================================================================


class DataError(RepoPopularityError):
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


class NotFoundError(DataError):
    """Raised when the upstream resource does not exist."""

    def __init__(
        self,
        resource: str,
        identifier: str | None = None,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        msg = f"{resource} not found"
        if identifier:
            msg = f"{resource} not found: {identifier}"
        ctx = _merge_context(
            context,
            input_value=identifier,
            suggestion=(context.suggestion if context else None) or "Check the endpoint and query",
            status_code=404,
        )
        super().__init__(msg, context=ctx)


class ParseError(DataError):
    """Raised when an upstream payload cannot be deserialized."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        full_msg = f"Parse error: {message}"
        if source:
            full_msg = f"Parse error ({source}): {message}"
        super().__init__(full_msg, context=context)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(RepoPopularityError):
    """Raised for invalid configuration, at startup."""

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
