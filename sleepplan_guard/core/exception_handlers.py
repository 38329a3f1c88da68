"""Maps domain errors onto HTTP responses.

Every error body has the same envelope and carries the request id. Unknown
exceptions become a bare 500 so internals never reach the client.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sleepplan_guard.core.config import settings
from sleepplan_guard.core.errors import (
    AppError,
    AuthenticationAppError,
    InvalidCredentialsAppError,
    NotFoundAppError,
    RateLimitedAppError,
    ServiceUnavailableAppError,
    ValidationAppError,
)
from sleepplan_guard.core.logging import get_request_id
from sleepplan_guard.core.rate_limit import retry_after_seconds

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (AuthenticationAppError, 403),
    (InvalidCredentialsAppError, 401),
    (NotFoundAppError, 404),
    (RateLimitedAppError, 429),
    (ServiceUnavailableAppError, 503),
)


def status_for(exc: AppError) -> int:
    """HTTP status for a domain error; unmapped errors are client faults (400)."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def rate_limit_headers(exc: RateLimitedAppError) -> dict[str, str]:
    """Build throttling headers from the error details."""

    details = exc.details or {}
    headers = {"Retry-After": str(retry_after_seconds(details.get("retry_after_ms", 0)))}
    if settings.rate_limit.include_headers:
        headers["X-RateLimit-Limit"] = str(details.get("limit", 0))
        headers["X-RateLimit-Remaining"] = str(details.get("remaining", 0))
        headers["X-RateLimit-Reset"] = str(details.get("reset_at_ms", 0) // 1000)
    return headers


def _envelope(code: str, message: str, details=None) -> dict:
    body = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        body["details"] = details
    return {"error": body}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an ``AppError`` as ``{"error": {code, message, request_id[, details]}}``.

    Denials raised by a limiter additionally get throttling headers.
    """
    status_code = status_for(exc)
    logger.warning(
        "request.rejected",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "path": request.url.path,
            "limiter": (exc.details or {}).get("limiter"),
        },
    )

    headers = rate_limit_headers(exc) if isinstance(exc, RateLimitedAppError) else None
    return JSONResponse(
        status_code=status_code,
        content=_envelope(exc.code, exc.message, exc.details),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI's schema errors in the same envelope as domain errors."""
    problems = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": str(error.get("msg", ""))}
        for error in exc.errors()
    ]
    return await app_error_handler(
        request,
        ValidationAppError(
            code="invalid_request",
            message="Request body or parameters are invalid.",
            details={"context": {"errors": problems}},
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort 500; the exception text stays in the logs only."""
    logger.error(
        "request.crashed",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content=_envelope(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, general_exception_handler)
