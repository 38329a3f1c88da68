"""Pydantic schemas for the rate limit decision endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LimitCheckRequest(BaseModel):
    """Ask whether one more event is allowed for an identity."""

    identity: str | None = Field(
        default=None,
        description=(
            "Caller identity (user id, hashed email, ...). When omitted, the "
            "hashed client IP of the calling request is used."
        ),
    )
    hash_identity: bool = Field(
        default=False,
        description="Hash the supplied identity before use so raw values are never stored.",
    )


class LimitDecisionResponse(BaseModel):
    """Decision for a single event."""

    limiter: str = Field(..., description="Limiter that made the decision.")
    limited: bool = Field(..., description="True when the identity is over quota.")
    retry_after_ms: int | None = Field(
        default=None,
        description="Milliseconds until the identity's window resets (only when limited).",
    )
    limit: int = Field(..., description="Max events per window.")
    remaining: int = Field(..., description="Events left in the current window.")
    reset_at_ms: int = Field(..., description="Epoch milliseconds at which the window ends.")


class LimiterInfo(BaseModel):
    name: str
    max: int
    window_ms: int
    entries: int = Field(..., description="Identities currently holding a counter entry.")


class LimitersResponse(BaseModel):
    limiters: list[LimiterInfo]


class SweepResponse(BaseModel):
    removed: int = Field(..., description="Expired counter entries removed.")
