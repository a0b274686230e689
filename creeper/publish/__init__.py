# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Snapshot publication."""

from creeper.publish.snapshot_writer import SnapshotWriter

__all__ = ["SnapshotWriter"]
