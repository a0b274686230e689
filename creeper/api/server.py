# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""FastAPI application factory for the snapshot service."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from creeper import __version__
from creeper.api.routes import health, metadata, snapshot, status
from creeper.composite.pipeline import SnapshotPipeline
from creeper.config import Settings
from creeper.scheduler import SnapshotScheduler

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings,
    scheduler: Optional[SnapshotScheduler] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Service settings, built once at startup
        scheduler: Snapshot scheduler (built from settings if not provided)
        start_scheduler: Start the scheduler during application startup

    Returns:
        Configured FastAPI app
    """
    if scheduler is None:
        pipeline = SnapshotPipeline(settings)
        scheduler = SnapshotScheduler(pipeline, settings.schedule.interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown."""
        logger.info("Snapshot service starting...")
        if start_scheduler:
            scheduler.start()

        logger.info(
            f"Snapshot service ready on {settings.server.host}:{settings.server.port}, "
            f"serving {settings.output.published_path}"
        )

        yield

        logger.info("Snapshot service shutting down...")
        if start_scheduler:
            scheduler.stop()
        logger.info("Snapshot service stopped")

    app = FastAPI(
        title="Creeper Snapshot Service",
        description=(
            "Publishes a periodically refreshed 2x2 grid of public camera "
            "snapshots as a single image."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.scheduler = scheduler

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(status.router, tags=["Status"])
    app.include_router(snapshot.router, tags=["Snapshot"])
    app.include_router(metadata.router, tags=["Metadata"])

    return app
