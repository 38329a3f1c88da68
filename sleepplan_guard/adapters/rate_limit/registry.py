"""Registry of named limiters.

The application builds one registry at startup and keeps it on
``app.state``. Tests build their own, so no counter state leaks between
them.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from sleepplan_guard.adapters.rate_limit.base import LimiterConfig
from sleepplan_guard.adapters.rate_limit.in_memory import (
    CounterStore,
    InMemoryFixedWindowRateLimiter,
    epoch_ms,
)
from sleepplan_guard.core.errors import NotFoundAppError

logger = logging.getLogger(__name__)


class RateLimiterRegistry:
    """Owns one counter store per limiter name.

    Registering a name twice returns a handle bound to the existing store,
    so re-registration can never be used to reset or split a quota.
    """

    def __init__(self, *, clock: Callable[[], int] = epoch_ms) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._stores: dict[str, CounterStore] = {}
        self._limiters: dict[str, InMemoryFixedWindowRateLimiter] = {}

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._limiters

    def create_limiter(self, name: str, config: LimiterConfig) -> InMemoryFixedWindowRateLimiter:
        """Return a limiter for ``name``, creating its store on first use.

        Args:
            name: Unique limiter name.
            config: Quota policy bound to the returned handle.

        Returns:
            Limiter handle sharing the store registered under ``name``.

        Raises:
            ValueError: If the policy is invalid.
        """

        if config.max < 1 or config.window_ms < 1:
            raise ValueError(
                f"invalid policy for limiter '{name}': max and window_ms must be >= 1"
            )

        with self._lock:
            store = self._stores.get(name)
            if store is None:
                store = CounterStore()
                self._stores[name] = store
            else:
                existing = self._limiters[name]
                if existing.config != config:
                    logger.warning(
                        "rate_limit.reregistered",
                        extra={
                            "limiter": name,
                            "previous_max": existing.config.max,
                            "previous_window_ms": existing.config.window_ms,
                            "max": config.max,
                            "window_ms": config.window_ms,
                        },
                    )

            limiter = InMemoryFixedWindowRateLimiter(
                name, config, store=store, clock=self._clock
            )
            self._limiters[name] = limiter

        logger.debug(
            "rate_limit.registered",
            extra={"limiter": name, "max": config.max, "window_ms": config.window_ms},
        )
        return limiter

    def get(self, name: str) -> InMemoryFixedWindowRateLimiter:
        """Return the most recently registered handle for ``name``.

        Raises:
            NotFoundAppError: If no limiter was registered under ``name``.
        """

        with self._lock:
            limiter = self._limiters.get(name)
        if limiter is None:
            raise NotFoundAppError(
                code="limiter_not_found",
                message=f"Unknown rate limiter: '{name}'",
                details={"limiter": name},
            )
        return limiter

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._limiters)

    def stats(self) -> list[dict[str, int | str]]:
        """Return policy and current entry count for every limiter."""

        with self._lock:
            limiters = list(self._limiters.values())
        return [
            {
                "name": limiter.name,
                "max": limiter.config.max,
                "window_ms": limiter.config.window_ms,
                "entries": len(limiter.store),
            }
            for limiter in sorted(limiters, key=lambda item: item.name)
        ]

    def sweep_expired(self) -> int:
        """Remove expired counter entries from every store.

        Returns:
            Total number of entries removed.
        """

        now = int(self._clock())
        with self._lock:
            stores = list(self._stores.items())

        removed = 0
        for name, store in stores:
            count = store.sweep_expired(now)
            if count:
                logger.info("rate_limit.swept", extra={"limiter": name, "removed": count})
            removed += count
        return removed
