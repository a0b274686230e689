# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Data models for the snapshot service."""

from creeper.models.snapshot import (
    CameraSource,
    RunResult,
    SchedulerState,
    SlotResult,
    SlotStatus,
    SourceProbe,
    build_sources,
)

__all__ = [
    "CameraSource",
    "RunResult",
    "SchedulerState",
    "SlotResult",
    "SlotStatus",
    "SourceProbe",
    "build_sources",
]
