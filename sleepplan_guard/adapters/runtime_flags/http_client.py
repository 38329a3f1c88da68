"""Runtime flags read from a PostgREST-style ``runtime_flags`` table over HTTP."""

from __future__ import annotations

import logging

import httpx

from sleepplan_guard.adapters.runtime_flags.base import (
    AbstractRuntimeFlagSource,
    parse_flag_enabled,
)
from sleepplan_guard.utils.ttl_cache import SimpleTTLCache

logger = logging.getLogger(__name__)


class HttpRuntimeFlagSource(AbstractRuntimeFlagSource):
    """Fetch flags with httpx and cache each result (hit or failure) for a TTL.

    Failures of any kind (non-2xx, network error, malformed body) are
    logged and read as disabled so a flags outage never locks users out.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        cache: SimpleTTLCache[bool],
        timeout_seconds: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._cache = cache
        self._timeout = timeout_seconds
        self._transport = transport

    def _build_url(self, key: str) -> str:
        return (
            f"{self._base_url}/rest/v1/runtime_flags"
            f"?key=eq.{key}&select=value_json&limit=1"
        )

    async def is_enabled(self, key: str) -> bool:
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        enabled = await self._fetch(key)
        self._cache.set(key, enabled)
        return enabled

    async def _fetch(self, key: str) -> bool:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(self._build_url(key), headers=headers)
            if response.status_code >= 400:
                logger.warning(
                    "runtime_flags.http_error",
                    extra={"flag": key, "status_code": response.status_code},
                )
                return False
            rows = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "runtime_flags.fetch_failed",
                extra={"flag": key, "error_type": type(exc).__name__},
            )
            return False

        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            return False
        return parse_flag_enabled(rows[0].get("value_json"))
