"""Rate limiting adapters.

This package holds the per-process limiter store and the registry that
owns one store per limiter name. The HTTP layer depends on the abstract
interface so a shared backend can replace the in-memory one later.
"""

from sleepplan_guard.adapters.rate_limit.base import (
    AbstractRateLimiter,
    LimiterConfig,
    RateLimitDecision,
)
from sleepplan_guard.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from sleepplan_guard.adapters.rate_limit.registry import RateLimiterRegistry

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "LimiterConfig",
    "RateLimitDecision",
    "RateLimiterRegistry",
]
