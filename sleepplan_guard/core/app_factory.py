"""Application factory for the FastAPI app.

Centralizes app construction (state, middleware, handlers, routers) so
every test can build an isolated app with its own limiter registry.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from sleepplan_guard import __version__
from sleepplan_guard.adapters.rate_limit.registry import RateLimiterRegistry
from sleepplan_guard.adapters.runtime_flags.base import AbstractRuntimeFlagSource
from sleepplan_guard.adapters.runtime_flags.factory import create_runtime_flag_source
from sleepplan_guard.api.routes import health_router, limits_router, maintenance_router
from sleepplan_guard.core.config import settings
from sleepplan_guard.core.exception_handlers import setup_exception_handlers
from sleepplan_guard.core.logging import configure_logging
from sleepplan_guard.core.middleware import maintenance_middleware, request_id_middleware
from sleepplan_guard.core.openapi import apply_openapi_customizations
from sleepplan_guard.core.rate_limit import build_registry

logger = logging.getLogger(__name__)


def create_app(
    *,
    registry: RateLimiterRegistry | None = None,
    runtime_flags: AbstractRuntimeFlagSource | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        registry: Pre-built limiter registry (e.g. with a fake clock).
            Configured policies are registered on it either way.
        runtime_flags: Flag source for maintenance mode; built from
            settings when omitted.

    Returns:
        Configured FastAPI app.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Sleep Plan Guard",
        description=(
            "Rate limiting and abuse control for the sleep plan web app: named "
            "fixed-window limiters keyed by caller identity, allow/deny decisions "
            "with a retry hint, and maintenance-mode gating."
        ),
        version=__version__,
    )

    app.state.rate_limiters = build_registry(settings.rate_limit, registry=registry)
    app.state.runtime_flags = runtime_flags or create_runtime_flag_source(settings.maintenance)

    # Registered last runs first: request ids wrap the maintenance gate
    app.middleware("http")(maintenance_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(limits_router, prefix="/v1")
    app.include_router(maintenance_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={"app_env": settings.app_env, "limiters": app.state.rate_limiters.names()},
    )
    return app
