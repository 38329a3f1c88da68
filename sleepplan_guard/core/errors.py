"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent across the codebase
    without forcing every error to fill every field.
    """

    code: str
    message: str
    hint: str
    limiter: str
    limit: int
    remaining: int
    reset_at_ms: int
    retry_after_ms: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class InvalidCredentialsAppError(AppError):
    """Raised when a presented secret (e.g. the maintenance bypass token) is wrong."""


class NotFoundAppError(AppError):
    """Raised when a named resource (e.g. a limiter) does not exist."""


class RateLimitedAppError(AppError):
    """Raised when a caller exceeded a limiter's quota.

    ``details`` carries ``retry_after_ms`` and the limiter metadata used to
    build ``Retry-After`` and ``X-RateLimit-*`` headers.
    """


class ServiceUnavailableAppError(AppError):
    """Raised when a feature is disabled or not configured."""
