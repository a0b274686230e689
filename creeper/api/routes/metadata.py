# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Static metadata document endpoint."""

from fastapi import APIRouter, HTTPException, Request, Response

router = APIRouter()


@router.get("/metadata.json")
def get_metadata(request: Request):
    """Serve the configured metadata document verbatim."""
    path = request.app.state.settings.server.metadata_file
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Metadata not found")

    return Response(content=data, media_type="application/json")
