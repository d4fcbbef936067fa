"""Application factory for the FastAPI app.

Builds one self-contained application: its own settings, record store,
limiter, identity resolver and janitor, all hung off ``app.state``. Tests
create a fresh app per case instead of sharing process-wide state.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from throttle_api.adapters.rate_limit.in_memory import (
    InMemorySlidingWindowRateLimiter,
    RateLimitStore,
    epoch_ms,
)
from throttle_api.adapters.rate_limit.janitor import StoreJanitor
from throttle_api.api.routes import demo_router, health_router, rate_limits_router
from throttle_api.core.config import APP_VERSION, Settings, settings as default_settings
from throttle_api.core.exception_handlers import setup_exception_handlers
from throttle_api.core.identity import IdentityResolver
from throttle_api.core.logging import configure_logging
from throttle_api.core.middleware import request_id_middleware
from throttle_api.core.rate_limit import rate_limit_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the janitor for as long as the application serves requests."""
    janitor: StoreJanitor = app.state.janitor
    cfg: Settings = app.state.settings
    janitor.start()
    logger.info(
        "app.started",
        extra={
            "limit": cfg.limiter.limit,
            "window_s": cfg.limiter.window_sec,
            "app_env": cfg.app_env,
        },
    )
    try:
        yield
    finally:
        await janitor.stop()


def create_app(
    config: Settings | None = None,
    *,
    clock: Callable[[], int] = epoch_ms,
    store: RateLimitStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        config: Settings to use; defaults to the environment-loaded settings.
        clock: Epoch-millisecond time source shared by limiter and janitor.
        store: Record store to use; a fresh one is created when omitted.

    Returns:
        Configured app with middleware, handlers and routers.
    """
    cfg = config or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    store = store if store is not None else RateLimitStore()

    app = FastAPI(
        title="Throttle API",
        description=(
            "Per-identity sliding-window rate limiting. Every response carries "
            "X-RateLimit-Limit, X-RateLimit-Remaining and X-RateLimit-Reset; "
            "callers without an identity receive one via the userId cookie "
            "and the X-User-ID header."
        ),
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = cfg
    app.state.rate_limit_store = store
    app.state.rate_limiter = InMemorySlidingWindowRateLimiter(
        limit=cfg.limiter.limit,
        window_ms=cfg.limiter.window_ms,
        store=store,
        clock=clock,
    )
    app.state.identity_resolver = IdentityResolver()
    app.state.janitor = StoreJanitor(
        store,
        window_ms=cfg.limiter.window_ms,
        interval_seconds=cfg.limiter.cleanup_interval_sec,
        clock=clock,
    )

    # Middleware: the last one added is the outermost, so request ids are
    # bound before the limiter logs anything.
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(demo_router)
    app.include_router(rate_limits_router)
    app.include_router(health_router)

    return app
