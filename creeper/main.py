# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Snapshot service entry point.

Starts the FastAPI server with uvicorn and the snapshot scheduler, or
renders a single snapshot and exits.

Usage:
    python -m creeper.main
    python -m creeper.main --host 0.0.0.0 --port 3000
    python -m creeper.main --once
"""

import argparse
import logging
import sys

import uvicorn
from pydantic import ValidationError

from creeper.api.server import create_app
from creeper.composite.pipeline import SnapshotPipeline
from creeper.config import load_settings
from creeper.scheduler import SnapshotScheduler


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the snapshot service."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def main():
    """Main entry point for the snapshot service."""
    parser = argparse.ArgumentParser(
        description="Creeper - four-camera grid snapshot service"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind to (default: from settings)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (default: from settings)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from settings)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Render and publish a single snapshot, then exit",
    )

    args = parser.parse_args()

    try:
        settings = load_settings()
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return 2

    log_level = args.log_level or settings.server.log_level
    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    pipeline = SnapshotPipeline(settings)
    scheduler = SnapshotScheduler(pipeline, settings.schedule.interval_seconds)

    logger.info("=" * 60)
    logger.info("Creeper Snapshot Service")
    logger.info("=" * 60)
    logger.info(
        f"{sum(1 for s in pipeline.sources if s)} camera(s), "
        f"{settings.canvas.size}px canvas, publishing {settings.output.published_path}"
    )
    logger.info(f"Worst-case fetch time per run: {pipeline.fetcher.worst_case_seconds:.0f}s")

    if args.once:
        result = scheduler.run_now()
        return 0 if result and result.published else 1

    host = args.host or settings.server.host
    port = args.port or settings.server.port
    logger.info(f"Starting server on {host}:{port}")

    # Run server
    uvicorn.run(
        create_app(settings, scheduler=scheduler),
        host=host,
        port=port,
        log_level=log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
