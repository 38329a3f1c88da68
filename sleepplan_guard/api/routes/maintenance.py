from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from sleepplan_guard.core.config import settings
from sleepplan_guard.core.errors import InvalidCredentialsAppError, ServiceUnavailableAppError
from sleepplan_guard.core.maintenance import (
    MAINTENANCE_PATH,
    is_maintenance_enabled,
    safe_redirect_path,
    set_bypass_cookie,
    tokens_match,
)
from sleepplan_guard.core.rate_limit import enforce_rate_limit
from sleepplan_guard.schemas.maintenance import (
    MaintenanceStatusResponse,
    UnlockRequest,
    UnlockResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Maintenance"])


@router.get(MAINTENANCE_PATH, response_model=MaintenanceStatusResponse)
async def maintenance_status(request: Request) -> MaintenanceStatusResponse:
    """Landing target for redirected traffic while maintenance mode is on."""

    enabled = await is_maintenance_enabled(request.app.state.runtime_flags)
    message = (
        "We're making some improvements. Please check back shortly."
        if enabled
        else "All systems operational."
    )
    return MaintenanceStatusResponse(maintenance=enabled, message=message)


async def _read_unlock_body(request: Request) -> UnlockRequest:
    """Parse the unlock body leniently; anything but a JSON object reads as empty."""

    try:
        payload = await request.json()
    except ValueError:
        payload = None
    return UnlockRequest.model_validate(payload if isinstance(payload, dict) else {})


@router.post(
    f"{MAINTENANCE_PATH}/unlock",
    response_model=UnlockResponse,
    dependencies=[Depends(enforce_rate_limit("maintenance-unlock"))],
    openapi_extra={
        "requestBody": {"content": {"application/json": {"schema": UnlockRequest.model_json_schema()}}}
    },
)
async def unlock(request: Request, response: Response) -> UnlockResponse:
    """Exchange the bypass token for a long-lived bypass cookie.

    Raises:
        ServiceUnavailableAppError: No bypass token configured (503).
        InvalidCredentialsAppError: Token missing, wrong, or body malformed (401).
    """

    body = await _read_unlock_body(request)
    cfg = settings.maintenance

    if not cfg.bypass_token:
        raise ServiceUnavailableAppError(
            code="maintenance_bypass_not_configured",
            message="Maintenance bypass is not configured.",
        )

    token = body.token if isinstance(body.token, str) else None
    if not tokens_match(token, cfg.bypass_token):
        logger.warning("maintenance.unlock_rejected")
        raise InvalidCredentialsAppError(
            code="invalid_bypass_token",
            message="Invalid access token.",
        )

    set_bypass_cookie(response, cfg, max_age=cfg.cookie_max_age_seconds)
    logger.info("maintenance.unlocked")
    return UnlockResponse(success=True, redirect_to=safe_redirect_path(body.next_path))
