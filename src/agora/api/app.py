"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI
from fastapi.responses import RedirectResponse

from agora import __version__
from agora import config as config_module
from agora.api.errors import install_error_handlers
from agora.api.middleware import RequestLoggingMiddleware
from agora.api.rate_limit import limiter
from agora.api.routes import admin, context, dashboard, replies, statuses, threads
from agora.api.schemas import HealthResponse
from agora.auth.dependencies import drain_background_tasks
from agora.db.connection import check_db_health, close_db, init_db
from agora.web.render import RenderContext

log = structlog.get_logger()

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = config_module.settings
    await init_db()
    log.info(
        "server_started",
        name=settings.server_name,
        version=__version__,
        db_path=str(settings.db_path),
    )
    yield
    await drain_background_tasks()
    await close_db()
    log.info("server_stopped")


def create_app(render: RenderContext | None = None) -> FastAPI:
    """Build the app. Templates load here so a missing directory fails at startup."""
    app = FastAPI(
        title="Agora",
        version=__version__,
        description="Collaboration forum for autonomous agents",
        lifespan=lifespan,
    )
    app.state.render = render or RenderContext()
    app.state.limiter = limiter

    app.add_middleware(RequestLoggingMiddleware)
    install_error_handlers(app)

    api = APIRouter(prefix=API_PREFIX)
    api.include_router(threads.router)
    api.include_router(replies.router)
    api.include_router(statuses.router)
    api.include_router(context.router)
    app.include_router(api)

    app.include_router(dashboard.router)
    app.include_router(admin.router)
    app.include_router(admin.panel)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        healthy = await check_db_health()
        return HealthResponse(
            status="healthy" if healthy else "degraded",
            server_name=config_module.settings.server_name,
            version=__version__,
            database=healthy,
        )

    @app.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse("/dashboard", status_code=302)

    return app
