# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Grid compositing, post-processing and the snapshot pipeline."""

from creeper.composite.compositor import Compositor
from creeper.composite.pipeline import SnapshotPipeline
from creeper.composite.postprocess import PostProcessor
from creeper.composite.tiles import TileRenderer

__all__ = ["Compositor", "PostProcessor", "SnapshotPipeline", "TileRenderer"]
