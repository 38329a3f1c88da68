"""HTTP middleware: request correlation and maintenance-mode gating.

Usage:
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(maintenance_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response
from fastapi.responses import RedirectResponse

from sleepplan_guard.core.config import settings
from sleepplan_guard.core.logging import clear_request_id, set_request_id
from sleepplan_guard.core.maintenance import (
    MAINTENANCE_PATH,
    has_valid_bypass_cookie,
    is_allowed_during_maintenance,
    is_maintenance_enabled,
    set_bypass_cookie,
)

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a correlation id for the request and report how long it took.

    The id comes from the configured header (``X-Request-ID`` by default) or
    is generated. It is echoed back with ``X-Request-Duration-ms``.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or uuid.uuid4().hex
    started_ns = time.monotonic_ns()

    set_request_id(request_id)
    try:
        response: Response = await call_next(request)
        elapsed_ms = (time.monotonic_ns() - started_ns) / 1_000_000
        logger.debug(
            "request.completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers["X-Request-Duration-ms"] = f"{elapsed_ms:.2f}"
    return response


async def maintenance_middleware(request: Request, call_next) -> Response:
    """Redirect page traffic to /maintenance while maintenance mode is on.

    - ``?bypass=<token>`` with the configured token sets the bypass cookie
      and redirects to the same URL without the query parameter.
    - A valid bypass cookie, or an allowed path (API, health, auth
      callback, the maintenance page itself), passes through.
    - Everything else is redirected to /maintenance.
    """

    if not await is_maintenance_enabled(request.app.state.runtime_flags):
        return await call_next(request)

    cfg = settings.maintenance
    bypass_from_query = request.query_params.get("bypass")
    if cfg.bypass_token and bypass_from_query == cfg.bypass_token:
        clean_url = request.url.remove_query_params("bypass")
        response = RedirectResponse(str(clean_url), status_code=307)
        set_bypass_cookie(response, cfg)
        logger.info("maintenance.bypass_granted", extra={"request_path": request.url.path})
        return response

    if has_valid_bypass_cookie(request, cfg) or is_allowed_during_maintenance(request.url.path):
        return await call_next(request)

    logger.info("maintenance.redirect", extra={"request_path": request.url.path})
    return RedirectResponse(str(request.url.replace(path=MAINTENANCE_PATH, query="")), status_code=307)
