"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class LimiterConfig:
    """Quota policy for a limiter.

    Attributes:
        max: Maximum events permitted per window.
        window_ms: Window length in milliseconds.
    """

    max: int
    window_ms: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single ``check`` call.

    Only ``limited`` and ``retry_after_ms`` decide anything. The remaining
    fields are informational and feed the ``X-RateLimit-*`` headers.

    Attributes:
        limited: True when the caller exceeded the quota.
        retry_after_ms: Milliseconds until the window resets (None when allowed).
        limit: Max events per window.
        remaining: Events left in the current window (0 when limited).
        reset_at_ms: Epoch milliseconds at which the current window ends.
    """

    limited: bool
    retry_after_ms: int | None = None
    limit: int = 0
    remaining: int = 0
    reset_at_ms: int = 0

    def as_dict(self) -> dict[str, int | bool]:
        """Return the contractual shape: ``limited`` plus ``retry_after_ms`` when denied."""

        if self.limited:
            return {"limited": True, "retry_after_ms": self.retry_after_ms or 0}
        return {"limited": False}


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    name: str
    config: LimiterConfig

    @abstractmethod
    def check(self, identity: str) -> RateLimitDecision:
        """Record one event for ``identity`` and decide whether it may proceed.

        Args:
            identity: Opaque caller identity (user id, hashed IP, ...).

        Returns:
            RateLimitDecision describing whether it was allowed.
        """
        raise NotImplementedError
