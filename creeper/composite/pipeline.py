# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Snapshot pipeline orchestrator.

Runs one cycle end to end and reports it as a RunResult.

Pipeline stages:
1. Fetch + composite four tiles (placeholders for any failed slot)
2. Post-process (grayscale, tint, watermark)
3. Publish atomically

Slot failures never abort a run. A publish failure aborts only the current
run and leaves the previous snapshot in place.
"""

import logging
import time
from datetime import datetime
from typing import List, Optional

from creeper.capture.http_snapshot import SourceFetcher
from creeper.composite.compositor import Compositor
from creeper.composite.postprocess import PostProcessor
from creeper.config import Settings
from creeper.exceptions import WriteFailure
from creeper.models.snapshot import CameraSource, RunResult, build_sources
from creeper.publish.snapshot_writer import SnapshotWriter

logger = logging.getLogger(__name__)


class SnapshotPipeline:
    """Orchestrates fetch -> composite -> post-process -> publish."""

    def __init__(
        self,
        settings: Settings,
        fetcher: Optional[SourceFetcher] = None,
        writer: Optional[SnapshotWriter] = None,
    ):
        """Initialize pipeline.

        Args:
            settings: Service settings
            fetcher: Source fetcher (built from settings if not provided)
            writer: Snapshot writer (built from settings if not provided)
        """
        self.settings = settings
        self.sources: List[Optional[CameraSource]] = build_sources(settings.cameras)
        self.fetcher = fetcher or SourceFetcher(settings.fetch)
        self.compositor = Compositor(settings.canvas, self.fetcher)
        self.post_processor = PostProcessor(settings.canvas)
        self.writer = writer or SnapshotWriter(settings.output)

        configured = sum(1 for source in self.sources if source is not None)
        if configured < len(self.sources):
            logger.warning(
                f"{configured} of {len(self.sources)} slots configured; "
                f"the rest will show placeholders"
            )

    def run(self) -> RunResult:
        """Run one snapshot cycle.

        Returns:
            RunResult with per-slot outcomes and publish status
        """
        started_at = datetime.now()
        start_time = time.monotonic()
        logger.info("Snapshot run starting")

        canvas, slots = self.compositor.compose(self.sources)
        self.post_processor.process(canvas)

        result = RunResult(started_at=started_at, slots=slots)
        try:
            path = self.writer.publish(canvas)
            result.published = True
            result.published_path = str(path)
        except WriteFailure as e:
            logger.error(f"Snapshot not published: {e}")
            result.error = str(e)

        result.duration_ms = (time.monotonic() - start_time) * 1000
        logger.info(f"Snapshot run finished: {result.summary()}")
        return result
