"""Tests for global exception handlers.

Validates that every domain error maps to its HTTP status with the same
error envelope, and that unexpected errors never leak details.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from pydantic import BaseModel

from sleepplan_guard.core.errors import (
    AppError,
    AuthenticationAppError,
    InvalidCredentialsAppError,
    NotFoundAppError,
    RateLimitedAppError,
    ServiceUnavailableAppError,
    ValidationAppError,
)
from sleepplan_guard.core.exception_handlers import (
    general_exception_handler,
    setup_exception_handlers,
    status_for,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (ValidationAppError(code="v", message="v"), 400),
        (AuthenticationAppError(code="a", message="a"), 403),
        (InvalidCredentialsAppError(code="i", message="i"), 401),
        (NotFoundAppError(code="n", message="n"), 404),
        (RateLimitedAppError(code="r", message="r"), 429),
        (ServiceUnavailableAppError(code="s", message="s"), 503),
        (AppError(code="base", message="base"), 400),
    ],
)
def test_status_mapping(error: AppError, status_code: int) -> None:
    assert status_for(error) == status_code


def test_error_envelope_is_consistent(client: TestClient, app_with_handlers: FastAPI) -> None:
    @app_with_handlers.get("/not-found")
    async def endpoint():
        raise NotFoundAppError(
            code="limiter_not_found",
            message="Unknown rate limiter: 'x'",
            details={"limiter": "x"},
        )

    response = client.get("/not-found")

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "limiter_not_found"
    assert error["message"] == "Unknown rate limiter: 'x'"
    assert error["details"] == {"limiter": "x"}
    assert "request_id" in error


def test_details_omitted_when_absent(client: TestClient, app_with_handlers: FastAPI) -> None:
    @app_with_handlers.get("/plain")
    async def endpoint():
        raise ValidationAppError(code="bad_input", message="Bad input")

    assert "details" not in client.get("/plain").json()["error"]


def test_rate_limited_error_sets_headers(client: TestClient, app_with_handlers: FastAPI) -> None:
    @app_with_handlers.get("/limited")
    async def endpoint():
        raise RateLimitedAppError(
            code="rate_limited",
            message="Too many requests. Please try again later.",
            details={
                "limiter": "contact",
                "retry_after_ms": 50_000,
                "limit": 3,
                "remaining": 0,
                "reset_at_ms": 1_700_000_050_000,
            },
        )

    response = client.get("/limited")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "50"
    assert response.headers["X-RateLimit-Limit"] == "3"
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert response.headers["X-RateLimit-Reset"] == "1700000050"


class _Payload(BaseModel):
    count: int


def test_request_validation_uses_error_envelope(client: TestClient, app_with_handlers: FastAPI) -> None:
    @app_with_handlers.post("/typed")
    async def endpoint(payload: _Payload):
        return {"count": payload.count}

    response = client.post("/typed", json={"count": "many"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "invalid_request"
    assert error["details"]["context"]["errors"][0]["loc"] == ["body", "count"]
    assert "detail" not in response.json()


def test_general_exception_handler_does_not_leak() -> None:
    request = AsyncMock()
    request.url.path = "/v1/limits"
    request.method = "GET"

    response = asyncio.run(general_exception_handler(request, ValueError("database password=hunter2")))

    data = json.loads(bytes(response.body).decode())
    assert response.status_code == 500
    assert data["error"]["code"] == "internal_server_error"
    assert "hunter2" not in data["error"]["message"]
    assert "ValueError" not in bytes(response.body).decode()


def test_handlers_registered(app_with_handlers: FastAPI) -> None:
    assert AppError in app_with_handlers.exception_handlers
    assert RequestValidationError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
