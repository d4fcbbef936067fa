from __future__ import annotations

from throttle_api.api.routes.demo import router as demo_router
from throttle_api.api.routes.health import router as health_router
from throttle_api.api.routes.rate_limits import router as rate_limits_router

__all__ = ["demo_router", "health_router", "rate_limits_router"]
