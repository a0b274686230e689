# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""API route handlers for the snapshot service."""

from creeper.api.routes import health, metadata, snapshot, status

__all__ = ["health", "metadata", "snapshot", "status"]
