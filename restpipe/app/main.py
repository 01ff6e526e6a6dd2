"""
restpipe - CRUD request pipelines over pluggable storage

FastAPI application entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from restpipe import __version__
from restpipe.app.dependencies import (
    get_service,
    get_settings,
    initialize_services,
    shutdown_services,
)
from restpipe.app.resources import widget_resource
from restpipe.config import AppSettings
from restpipe.observability import InMemoryMetrics
from restpipe.routing import build_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting restpipe services...")
    try:
        await initialize_services()
        logger.info("restpipe services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise

    yield

    # Shutdown
    logger.info("Shutting down restpipe services...")
    try:
        await shutdown_services()
        logger.info("restpipe services shut down successfully")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Build the application and mount every resource."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title=settings.service_name,
        description="CRUD endpoints served by the restpipe request pipeline",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    service = get_service()
    app.include_router(
        build_router(service, widget_resource(settings), prefix="/api/v1/widgets")
    )

    @app.get("/", tags=["root"])
    async def root() -> dict[str, str]:
        """Root endpoint with service info."""
        return {
            "service": settings.service_name,
            "version": __version__,
            "status": "running",
        }

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "storage": settings.storage_backend,
            "broker": settings.broker_backend,
        }

    @app.get("/metrics", tags=["health"])
    async def metrics() -> dict[str, Any]:
        """Counters and mean timings per event, when in-memory metrics are on."""
        current = service.metrics
        if isinstance(current, InMemoryMetrics):
            return current.get_stats()
        return {"counters": {}, "timings_ms": {}}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "restpipe.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().debug,
    )
