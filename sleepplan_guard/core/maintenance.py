"""Maintenance-mode decisions shared by the middleware and the unlock route."""

from __future__ import annotations

import secrets

from fastapi import Request, Response

from sleepplan_guard.adapters.runtime_flags.base import AbstractRuntimeFlagSource
from sleepplan_guard.core.config import MaintenanceSettings, settings

MAINTENANCE_FLAG_KEY = "maintenance_mode"
MAINTENANCE_PATH = "/maintenance"

_ALLOWED_PREFIXES = (f"{MAINTENANCE_PATH}/", "/v1/", "/auth/callback")
_ALLOWED_EXACT = frozenset({MAINTENANCE_PATH, "/health", "/v1"})


async def is_maintenance_enabled(flags: AbstractRuntimeFlagSource) -> bool:
    """Env override first, then the (cached) runtime flag."""

    if settings.maintenance.mode:
        return True
    return await flags.is_enabled(MAINTENANCE_FLAG_KEY)


def is_allowed_during_maintenance(path: str) -> bool:
    """Paths that keep working while maintenance mode is on."""

    return path in _ALLOWED_EXACT or path.startswith(_ALLOWED_PREFIXES)


def tokens_match(provided: str | None, expected: str | None) -> bool:
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided, expected)


def has_valid_bypass_cookie(request: Request, cfg: MaintenanceSettings) -> bool:
    return tokens_match(request.cookies.get(cfg.cookie_name), cfg.bypass_token)


def set_bypass_cookie(
    response: Response,
    cfg: MaintenanceSettings,
    *,
    max_age: int | None = None,
) -> None:
    """Attach the bypass cookie; ``max_age=None`` makes it a session cookie."""

    response.set_cookie(
        cfg.cookie_name,
        cfg.bypass_token or "",
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=cfg.secure_cookie,
    )


def safe_redirect_path(value: object) -> str:
    """Only same-site absolute paths are honoured as redirect targets.

    Examples:
        >>> safe_redirect_path("/dashboard")
        '/dashboard'
        >>> safe_redirect_path("//evil.example")
        '/'
        >>> safe_redirect_path("https://evil.example")
        '/'
        >>> safe_redirect_path(None)
        '/'
    """

    if not isinstance(value, str):
        return "/"
    if not value.startswith("/") or value.startswith("//"):
        return "/"
    return value
