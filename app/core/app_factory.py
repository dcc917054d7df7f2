"""Application factory for the FastAPI app.

Centralizes app construction (services, middleware, handlers, routers and
background tasks) so tests can build an isolated app per case.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.api.routes import auth_router, health_router, posts_router, protected_posts_router
from app.core.config import Settings, parse_csv, settings as default_settings
from app.core.container import ServiceContainer, build_container
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import (
    rate_limit_headers_middleware,
    request_id_middleware,
    security_headers_middleware,
    unhandled_error_middleware,
)
from app.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


async def sweep_rate_limits(limiter: AbstractRateLimiter, interval_seconds: float) -> None:
    """Drop expired rate limit windows every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = limiter.sweep()
        if removed:
            logger.info("rate_limit.swept", extra={"removed": removed})


def create_app(
    settings: Settings | None = None,
    container: ServiceContainer | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings to build from; defaults to the environment.
        container: Pre-built services (tests inject fakes or clocks here).

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    services = container or build_container(cfg)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(
            sweep_rate_limits(services.rate_limiter, cfg.app.rate_limit_sweep_seconds)
        )
        logger.info("app.started", extra={"env": cfg.app_env, "posts": services.posts.count()})
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(
        title="Blog API",
        description=(
            "In-memory blog CRUD service: paginated and cursor-based post "
            "listings with ETag/gzip support, API-key protected management "
            "routes, token login and per-client rate limiting."
        ),
        version="0.1.0",
        debug=cfg.app.debug,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.container = services

    # Middleware (last added runs outermost)
    # GZip sits innermost so it sees whole bodies; it compresses at or above
    # minimum_size, so only bodies over the limit qualify
    app.add_middleware(GZipMiddleware, minimum_size=cfg.app.gzip_minimum_size + 1)
    app.middleware("http")(unhandled_error_middleware)
    app.middleware("http")(rate_limit_headers_middleware)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_csv(cfg.app.allowed_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key", "If-None-Match"],
        expose_headers=[
            "ETag",
            "X-Cache",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
        max_age=86400,
    )

    setup_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(posts_router)
    app.include_router(protected_posts_router)
    app.include_router(health_router)

    # OpenAPI customizations (security schemes, tags)
    apply_openapi_customizations(app)

    return app
