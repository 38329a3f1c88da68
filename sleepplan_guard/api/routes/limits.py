from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from sleepplan_guard.adapters.rate_limit.registry import RateLimiterRegistry
from sleepplan_guard.core.auth import verify_api_key
from sleepplan_guard.core.config import settings
from sleepplan_guard.core.rate_limit import client_ip_identity, get_registry
from sleepplan_guard.schemas.limits import (
    LimitCheckRequest,
    LimitDecisionResponse,
    LimiterInfo,
    LimitersResponse,
    SweepResponse,
)
from sleepplan_guard.utils.identity import hash_value, short_hash

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Limits"], dependencies=[Depends(verify_api_key)])


@router.get("/limits", response_model=LimitersResponse)
def list_limiters(registry: RateLimiterRegistry = Depends(get_registry)) -> LimitersResponse:
    """List registered limiters with their policy and current entry count."""

    return LimitersResponse(limiters=[LimiterInfo(**item) for item in registry.stats()])


@router.post("/limits/sweep", response_model=SweepResponse)
def sweep_limiters(registry: RateLimiterRegistry = Depends(get_registry)) -> SweepResponse:
    """Drop expired counter entries. Decisions are unaffected."""

    return SweepResponse(removed=registry.sweep_expired())


@router.post("/limits/{name}/check", response_model=LimitDecisionResponse)
def check_limit(
    name: str,
    request: Request,
    body: LimitCheckRequest | None = None,
    registry: RateLimiterRegistry = Depends(get_registry),
) -> LimitDecisionResponse:
    """Record one event for an identity under limiter ``name``.

    Always answers 200 with the decision; the caller decides how to reject.
    Unknown limiter names are answered with 404.
    """

    body = body or LimitCheckRequest()
    limiter = registry.get(name)

    if body.identity is None:
        identity = client_ip_identity(request)
    elif body.hash_identity:
        identity = hash_value(body.identity, salt=settings.rate_limit.identity_salt)
    else:
        identity = body.identity

    decision = limiter.check(identity)
    logger.info(
        "rate_limit.decision",
        extra={
            "limiter": name,
            "key_hash": short_hash(identity),
            "limited": decision.limited,
            "remaining": decision.remaining,
        },
    )

    return LimitDecisionResponse(
        limiter=name,
        limit=decision.limit,
        remaining=decision.remaining,
        reset_at_ms=decision.reset_at_ms,
        **decision.as_dict(),
    )
