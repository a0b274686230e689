# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Health check endpoints."""

from fastapi import APIRouter, Request

from creeper.models.snapshot import SourceProbe

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint.

    Returns simple OK response for load balancers and monitoring.
    """
    return {"status": "ok", "service": "creeper"}


@router.get("/health/sources")
def probe_sources(request: Request):
    """Re-probe every configured camera with a short timeout.

    Diagnostic only: probes never touch the canvas or the published
    snapshot. Runs in the threadpool since probes block on the network.

    Returns:
        Per-slot reachability, HTTP status and latency
    """
    pipeline = request.app.state.scheduler.pipeline
    probes = []
    for index, source in enumerate(pipeline.sources):
        if source is None:
            probes.append(
                SourceProbe(slot_index=index, configured=False, error="No source configured")
            )
            continue
        probes.append(pipeline.fetcher.probe(source))

    return {
        "reachable": sum(1 for probe in probes if probe.reachable),
        "sources": [probe.to_dict() for probe in probes],
    }
