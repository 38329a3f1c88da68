"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from sleepplan_guard.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def log_stream() -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_redacts_identities_and_tokens(log_stream) -> None:
    logger, stream = log_stream

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "identity": "user-42",
            "email": "parent@example.com",
            "bypass_token": "let-me-in",
            "api_key": "sk-secret-123",
            "limiter": "contact",
        },
    )

    output = stream.getvalue()
    assert "user-42" not in output
    assert "parent@example.com" not in output
    assert "let-me-in" not in output
    assert "sk-secret-123" not in output
    assert "[REDACTED]" in output
    assert "contact" in output


def test_redacts_nested_mappings(log_stream) -> None:
    logger, stream = log_stream

    logger.info(
        "request.headers",
        extra={"headers": {"X-API-Key": "secret-key", "user-agent": "pytest"}},
    )

    output = stream.getvalue()
    assert "secret-key" not in output
    assert "pytest" in output


def test_safe_fields_pass_through(log_stream) -> None:
    logger, stream = log_stream

    logger.info(
        "rate_limit.allowed",
        extra={"limiter": "generate-plan", "key_hash": "abc123", "remaining": 4},
    )

    record = json.loads(stream.getvalue())
    assert record["message"] == "rate_limit.allowed"
    assert record["level"] == "info"
    assert record["limiter"] == "generate-plan"
    assert record["key_hash"] == "abc123"
    assert record["remaining"] == 4
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context(log_stream) -> None:
    logger, stream = log_stream

    set_request_id("req-123")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-123"
