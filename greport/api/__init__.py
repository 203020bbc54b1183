"""greport REST API — FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from greport.api import deps
from greport.api.errors import register_error_handlers
from greport.api.middleware.request_id import RequestIDMiddleware
from greport.api.routers import aggregate, contributors, issues, pulls, releases, repos, sla, sync
from greport.core.config import Config, load_config
from greport.core.database import create_all
from greport.core.logging import setup_logging
from greport.scheduler import create_scheduler

log = structlog.get_logger("greport.api")


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: session factory, tables, client registry, scheduler. Shutdown: reverse."""
    config = deps.get_config()
    factory = deps.init_session_factory()
    await create_all(deps.get_engine())
    registry = deps.get_registry()

    scheduler = None
    if config.sync.interval_seconds > 0:
        scheduler = create_scheduler(
            factory,
            runner=deps.get_sync_runner(),
            registry=registry,
            interval=config.sync.interval_seconds,
            extra_repos=deps.tracked_extra_repos(),
        )
        await scheduler.start()
    log.info("api.started", organizations=registry.organizations)
    yield
    if scheduler is not None:
        await scheduler.stop()
    await registry.close()
    deps.set_registry(None)
    await deps.dispose_engine()


def create_app(config: Config | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    config = config or load_config()
    setup_logging(config.logging.level, config.logging.format)
    deps.set_config(config)

    app = FastAPI(
        title="greport",
        docs_url="/api/v1/docs",
        openapi_url="/api/v1/openapi.json",
        lifespan=_lifespan,
    )

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/api/v1/health", tags=["ops"])
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(sync.router, prefix="/api/v1/sync", tags=["sync"])
    app.include_router(repos.router, prefix="/api/v1/repos", tags=["repos"])
    app.include_router(issues.router, prefix="/api/v1/repos", tags=["issues"])
    app.include_router(pulls.router, prefix="/api/v1/repos", tags=["pulls"])
    app.include_router(sla.router, prefix="/api/v1/repos", tags=["sla"])
    app.include_router(releases.router, prefix="/api/v1/repos", tags=["releases"])
    app.include_router(contributors.router, prefix="/api/v1/repos", tags=["contributors"])
    app.include_router(aggregate.router, prefix="/api/v1/aggregate", tags=["aggregate"])

    return app
