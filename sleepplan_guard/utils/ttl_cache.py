"""Expiring key/value cache for runtime flag lookups.

Flags are read on every gated request, so results are kept for a short TTL.
Least recently read keys are evicted first once ``max_entries`` is reached.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Generic, NamedTuple, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class _Slot(NamedTuple):
    value: object
    deadline: float


class SimpleTTLCache(Generic[V]):
    """Lock-guarded TTL cache; a value is served while ``clock() < deadline``.

    Attributes:
        ttl_seconds: Lifetime of each stored value.
        max_entries: Capacity before eviction, or None for no cap.
    """

    def __init__(
        self,
        ttl_seconds: float = 10.0,
        max_entries: int | None = 128,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._slots: OrderedDict[str, _Slot] = OrderedDict()
        self._mutex = threading.Lock()
        self._counters = {"hits": 0, "misses": 0}

    def get(self, key: str) -> V | None:
        """Look up ``key``; expired slots are dropped and count as misses."""

        with self._mutex:
            slot = self._slots.pop(key, None)
            if slot is not None and self._clock() >= slot.deadline:
                logger.debug("cache.expired", extra={"cache_key": key})
                slot = None
            if slot is None:
                self._counters["misses"] += 1
                return None

            # Re-insert at the most recently used end
            self._slots[key] = slot
            self._counters["hits"] += 1
            return slot.value  # type: ignore[return-value]

    def set(self, key: str, value: V) -> None:
        with self._mutex:
            self._slots.pop(key, None)
            self._slots[key] = _Slot(value, self._clock() + self.ttl_seconds)
            while self.max_entries is not None and len(self._slots) > self.max_entries:
                self._slots.popitem(last=False)

    def clear(self) -> None:
        with self._mutex:
            self._slots.clear()
            self._counters = {"hits": 0, "misses": 0}

    def stats(self) -> dict[str, int | float | None]:
        with self._mutex:
            return {
                "ttl_seconds": self.ttl_seconds,
                "max_entries": self.max_entries,
                "entries": len(self._slots),
                **self._counters,
            }
