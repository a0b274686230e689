# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Status endpoints - last run outcome and manual trigger."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/status")
async def get_status(request: Request):
    """Get scheduler state, the configured sources and the most recent run.

    Returns:
        - state: idle or running
        - interval_seconds: time between scheduled runs
        - runs_completed / runs_failed / triggers_skipped: counters
        - sources: configured cameras (URLs masked), in slot order
        - last_run: per-slot outcomes, duration and publish status
    """
    scheduler = request.app.state.scheduler
    status = scheduler.get_status()
    status["sources"] = [
        source.to_dict() for source in scheduler.pipeline.sources if source is not None
    ]
    return status


@router.post("/status/run")
async def trigger_run(request: Request):
    """Start a snapshot run now unless one is already in progress."""
    started = request.app.state.scheduler.fire()
    return {"started": started}
