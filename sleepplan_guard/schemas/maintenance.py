"""Pydantic schemas for maintenance-mode endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class UnlockRequest(BaseModel):
    """Body of POST /maintenance/unlock.

    Fields are loosely typed and the route parses the body itself, so a
    malformed body is answered with the same "invalid token" error as a
    wrong token.
    """

    token: Any = Field(default=None, description="Maintenance bypass token.")
    next_path: Any = Field(default=None, description="Where to send the user after unlocking.")


class UnlockResponse(BaseModel):
    success: bool
    redirect_to: str = Field(..., description="Safe, same-site path to continue to.")


class MaintenanceStatusResponse(BaseModel):
    maintenance: bool = Field(..., description="Whether maintenance mode is currently on.")
    message: str
