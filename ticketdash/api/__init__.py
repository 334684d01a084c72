"""ticketdash REST API — FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ticketdash import __version__
from ticketdash.api.deps import close_store, get_orchestrator, get_store, init_services
from ticketdash.api.errors import register_error_handlers
from ticketdash.api.routers import stats, sync, tickets
from ticketdash.core.config import Settings
from ticketdash.core.logging import setup_logging
from ticketdash.scheduler import BackgroundScheduler

log = structlog.get_logger(__name__)


def _lifespan_for(settings: Settings):
    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Startup: open the store, arm the scheduler. Shutdown: the reverse."""
        init_services(settings)
        await get_store().open()

        scheduler = BackgroundScheduler(
            get_orchestrator(),
            settings.sync_interval_minutes,
            settings.sync_params,
        )
        await scheduler.start()
        log.info("api.started", db_path=str(settings.db_path))
        yield
        await scheduler.stop()
        await close_store()

    return _lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    setup_logging()
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="ticketdash",
        version=__version__,
        docs_url="/api/v1/docs",
        openapi_url="/api/v1/openapi.json",
        lifespan=_lifespan_for(settings),
    )

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["ops"])
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(sync.router, prefix="/api/v1/sync", tags=["sync"])
    app.include_router(tickets.router, prefix="/api/v1/tickets", tags=["tickets"])
    app.include_router(stats.router, prefix="/api/v1/stats", tags=["stats"])

    return app
