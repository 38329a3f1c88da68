"""Caller identity helpers used to key rate limiters."""

from __future__ import annotations

from hashlib import sha256
from typing import Mapping

UNKNOWN_CLIENT = "unknown"


def get_client_ip(headers: Mapping[str, str]) -> str:
    """Best-effort client IP from proxy headers.

    Takes the first entry of ``X-Forwarded-For``, falls back to
    ``X-Real-IP`` and finally to ``"unknown"``. The values are not
    validated; behind an untrusted proxy they are caller-controlled.

    Args:
        headers: Request headers (case-insensitive mapping, e.g. Starlette's).

    Examples:
        >>> get_client_ip({"x-forwarded-for": "203.0.113.7, 10.0.0.1"})
        '203.0.113.7'
        >>> get_client_ip({"x-real-ip": "198.51.100.2"})
        '198.51.100.2'
        >>> get_client_ip({})
        'unknown'
    """

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT


def hash_value(value: str, *, salt: str | None = None) -> str:
    """Hex SHA-256 of ``value`` so raw IPs and emails are never stored as keys."""

    hasher = sha256()
    if salt:
        hasher.update(salt.encode())
    hasher.update(value.encode())
    return hasher.hexdigest()


def short_hash(value: str) -> str:
    """16-char digest prefix for log lines."""

    return sha256(value.encode()).hexdigest()[:16]
