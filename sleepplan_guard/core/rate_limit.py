"""Rate limiting wiring for FastAPI.

- ``build_registry`` turns configured policies into a registry at startup.
- ``get_registry`` hands that registry to routes via ``Depends``.
- ``enforce_rate_limit`` builds a per-route dependency that checks a named
  limiter and raises ``RateLimitedAppError`` when the caller is over quota.

Identities default to the hashed client IP. Routes that know the caller
(e.g. an authenticated user id) pass their own identity resolver.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import Request

from sleepplan_guard.adapters.rate_limit.base import LimiterConfig
from sleepplan_guard.adapters.rate_limit.registry import RateLimiterRegistry
from sleepplan_guard.core.config import RateLimitSettings, settings
from sleepplan_guard.core.errors import RateLimitedAppError
from sleepplan_guard.utils.identity import get_client_ip, hash_value, short_hash

logger = logging.getLogger(__name__)

IdentityResolver = Callable[[Request], str | Awaitable[str]]


def build_registry(
    rate_limit_settings: RateLimitSettings | None = None,
    *,
    registry: RateLimiterRegistry | None = None,
) -> RateLimiterRegistry:
    """Register every configured policy on a (new) registry.

    Args:
        rate_limit_settings: Source of policies; defaults to global settings.
        registry: Existing registry to populate, mainly for injecting a clock.

    Returns:
        Registry with one limiter per policy name.
    """

    cfg = rate_limit_settings or settings.rate_limit
    registry = registry or RateLimiterRegistry()
    for name, policy in cfg.resolved_policies().items():
        registry.create_limiter(name, LimiterConfig(max=policy.max, window_ms=policy.window_ms))
    return registry


def get_registry(request: Request) -> RateLimiterRegistry:
    """FastAPI dependency returning the app's limiter registry."""

    return request.app.state.rate_limiters


def client_ip_identity(request: Request) -> str:
    """Identity resolver: salted hash of the client IP."""

    ip = get_client_ip(request.headers)
    return hash_value(ip, salt=settings.rate_limit.identity_salt)


def retry_after_seconds(retry_after_ms: int) -> int:
    """Round a millisecond hint up to whole seconds for ``Retry-After``."""

    return max(0, -(-retry_after_ms // 1000))


def enforce_rate_limit(
    limiter_name: str,
    identity: IdentityResolver = client_ip_identity,
) -> Callable[[Request], Awaitable[None]]:
    """Build a dependency that consumes one event from ``limiter_name``.

    Usage:
        @router.post("/unlock", dependencies=[Depends(enforce_rate_limit("maintenance-unlock"))])

    Args:
        limiter_name: Registered limiter to check.
        identity: Callable deriving the caller identity from the request.

    Returns:
        Async dependency raising RateLimitedAppError when over quota.
    """

    async def dependency(request: Request) -> None:
        if not settings.rate_limit.enabled:
            return

        limiter = get_registry(request).get(limiter_name)
        key = identity(request)
        if not isinstance(key, str):
            key = await key

        decision = limiter.check(key)
        log_extra = {
            "limiter": limiter_name,
            "key_hash": short_hash(key),
            "limit": decision.limit,
            "remaining": decision.remaining,
            "window_ms": limiter.config.window_ms,
        }

        if not decision.limited:
            logger.info("rate_limit.allowed", extra=log_extra)
            return

        retry_after_ms = decision.retry_after_ms or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={**log_extra, "retry_after_ms": retry_after_ms},
        )
        raise RateLimitedAppError(
            code="rate_limited",
            message="Too many requests. Please try again later.",
            details={
                "limiter": limiter_name,
                "retry_after_ms": retry_after_ms,
                "limit": decision.limit,
                "remaining": decision.remaining,
                "reset_at_ms": decision.reset_at_ms,
            },
        )

    return dependency
