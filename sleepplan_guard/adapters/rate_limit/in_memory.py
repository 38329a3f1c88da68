"""In-memory fixed-window rate limiter with lazy reset.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: each store serializes its read-modify-write behind a lock.
- Windows start at the first event for an identity, not on a clock grid.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from sleepplan_guard.adapters.rate_limit.base import (
    AbstractRateLimiter,
    LimiterConfig,
    RateLimitDecision,
)


def epoch_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return time.time_ns() // 1_000_000


@dataclass
class _CounterEntry:
    count: int
    reset_at: int


class CounterStore:
    """Per-identity counters for one limiter name.

    Entries are created on first use and replaced once their window has
    expired. Nothing is removed unless ``sweep_expired`` is called.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _CounterEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def observe(self, identity: str, *, now: int, window_ms: int) -> _CounterEntry:
        """Record one event and return a snapshot of the resulting entry."""

        with self._lock:
            entry = self._entries.get(identity)
            # Strict ">" keeps now == reset_at inside the old window.
            if entry is None or now > entry.reset_at:
                entry = _CounterEntry(count=1, reset_at=now + window_ms)
                self._entries[identity] = entry
            else:
                entry.count += 1
            return _CounterEntry(count=entry.count, reset_at=entry.reset_at)

    def peek(self, identity: str) -> _CounterEntry | None:
        """Return a copy of the stored entry without recording an event."""

        with self._lock:
            entry = self._entries.get(identity)
            if entry is None:
                return None
            return _CounterEntry(count=entry.count, reset_at=entry.reset_at)

    def sweep_expired(self, now: int) -> int:
        """Drop entries whose window has ended.

        A swept entry would have been replaced on its next observation
        anyway, so decisions are unaffected.

        Returns:
            Number of entries removed.
        """

        with self._lock:
            expired = [key for key, entry in self._entries.items() if now > entry.reset_at]
            for key in expired:
                del self._entries[key]
            return len(expired)


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed window per identity.

    The first event for an identity opens a window of ``window_ms``; every
    event inside it increments the count and events beyond ``max`` are
    denied until the window ends.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        name: str,
        config: LimiterConfig,
        *,
        store: CounterStore | None = None,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        """Initialize the limiter.

        Args:
            name: Limiter name, used for logging and registry lookups.
            config: Quota policy.
            store: Counter store to bind to; a private one is created if omitted.
            clock: Time source returning epoch milliseconds.

        Raises:
            ValueError: If max or window_ms are invalid.
        """
        if config.max < 1:
            raise ValueError("max must be >= 1")
        if config.window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        self.name = name
        self.config = config
        self._store = store if store is not None else CounterStore()
        self._clock = clock

    @property
    def store(self) -> CounterStore:
        return self._store

    def check(self, identity: str) -> RateLimitDecision:
        """Record one event for ``identity`` and decide whether it may proceed.

        Args:
            identity: Opaque caller identity; compared by exact equality.

        Returns:
            RateLimitDecision with ``limited`` and, when denied, ``retry_after_ms``.
        """
        now = int(self._clock())
        entry = self._store.observe(identity, now=now, window_ms=self.config.window_ms)
        remaining = max(0, self.config.max - entry.count)

        if entry.count > self.config.max:
            return RateLimitDecision(
                limited=True,
                retry_after_ms=max(0, entry.reset_at - now),
                limit=self.config.max,
                remaining=0,
                reset_at_ms=entry.reset_at,
            )

        return RateLimitDecision(
            limited=False,
            limit=self.config.max,
            remaining=remaining,
            reset_at_ms=entry.reset_at,
        )
