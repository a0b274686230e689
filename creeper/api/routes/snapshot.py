# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Published snapshot endpoint."""

from fastapi import APIRouter, HTTPException, Request, Response

router = APIRouter()

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
}


@router.get("/snapshot")
def get_snapshot(request: Request):
    """Get the most recently published grid snapshot.

    The file is read in one go; publication replaces it atomically, so the
    bytes are always one complete snapshot.

    Returns:
        PNG or JPEG image, never cached
    """
    output = request.app.state.settings.output
    try:
        data = output.published_path.read_bytes()
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="No snapshot published yet")

    return Response(content=data, media_type=output.media_type, headers=NO_STORE_HEADERS)
