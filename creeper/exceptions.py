# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Exceptions raised by the snapshot pipeline.

Slot-level errors (everything deriving from SnapshotSourceError) are
recovered by the compositor into placeholder tiles. WriteFailure aborts only
the current run.
"""


class CreeperError(Exception):
    """Base exception for all snapshot service errors."""

    pass


class SnapshotSourceError(CreeperError):
    """A single slot could not produce a live image this cycle."""

    kind = "source_error"


class SourceUnavailable(SnapshotSourceError):
    """Network failure, non-2xx status or timeout fetching a source."""

    kind = "source_unavailable"


class InvalidImage(SnapshotSourceError):
    """Response body failed size, signature or decode validation."""

    kind = "invalid_image"


class ConfigurationGap(SnapshotSourceError):
    """No camera is configured for the slot."""

    kind = "configuration_gap"


class WriteFailure(CreeperError):
    """The snapshot could not be published to its canonical path."""

    pass
