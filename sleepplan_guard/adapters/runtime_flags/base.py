"""Runtime flag source interface.

Runtime flags are boolean switches (e.g. ``maintenance_mode``) that can be
flipped without a redeploy. Sources must never raise: an unreadable flag
reads as disabled.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


def parse_flag_enabled(payload: Any) -> bool:
    """Interpret a flag's ``value_json`` payload.

    Examples:
        >>> parse_flag_enabled({"enabled": True})
        True
        >>> parse_flag_enabled({"enabled": "true"})
        True
        >>> parse_flag_enabled({"enabled": 1})
        False
        >>> parse_flag_enabled(None)
        False
    """

    if not isinstance(payload, dict) or "enabled" not in payload:
        return False

    enabled = payload["enabled"]
    if isinstance(enabled, bool):
        return enabled
    if isinstance(enabled, str):
        return enabled == "true"
    return False


class AbstractRuntimeFlagSource(ABC):
    """Interface for runtime flag lookups."""

    @abstractmethod
    async def is_enabled(self, key: str) -> bool:
        """Return whether flag ``key`` is currently on."""
        raise NotImplementedError


class StaticRuntimeFlagSource(AbstractRuntimeFlagSource):
    """Flags fixed at construction; used when no flags API is configured."""

    def __init__(self, flags: dict[str, bool] | None = None) -> None:
        self._flags = dict(flags or {})

    async def is_enabled(self, key: str) -> bool:
        return self._flags.get(key, False)
