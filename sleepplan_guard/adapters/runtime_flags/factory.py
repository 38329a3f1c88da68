"""Factory for the runtime flag source."""

from sleepplan_guard.adapters.runtime_flags.base import (
    AbstractRuntimeFlagSource,
    StaticRuntimeFlagSource,
)
from sleepplan_guard.adapters.runtime_flags.http_client import HttpRuntimeFlagSource
from sleepplan_guard.core.config import MaintenanceSettings
from sleepplan_guard.utils.ttl_cache import SimpleTTLCache


def create_runtime_flag_source(cfg: MaintenanceSettings) -> AbstractRuntimeFlagSource:
    """Build the flag source described by maintenance settings.

    Without both a flags URL and an API key there is nothing to query, so
    every flag reads as disabled.
    """
    if not cfg.flags_url or not cfg.flags_api_key:
        return StaticRuntimeFlagSource()

    return HttpRuntimeFlagSource(
        base_url=cfg.flags_url,
        api_key=cfg.flags_api_key,
        cache=SimpleTTLCache(ttl_seconds=cfg.cache_ttl_seconds, max_entries=16),
        timeout_seconds=cfg.timeout_seconds,
    )
