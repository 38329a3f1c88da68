from __future__ import annotations

from sleepplan_guard.api.routes.health import router as health_router
from sleepplan_guard.api.routes.limits import router as limits_router
from sleepplan_guard.api.routes.maintenance import router as maintenance_router

__all__ = ["health_router", "limits_router", "maintenance_router"]
