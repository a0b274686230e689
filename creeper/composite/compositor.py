# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Grid compositor.

Owns the canvas and slot geometry. Fetches every slot through the
SourceFetcher, then renders the four tiles in slot order. Each tile writes
only inside its own cell, so the result does not depend on which fetch
finished first.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from creeper.capture.http_snapshot import SourceFetcher
from creeper.composite.geometry import grid_cells
from creeper.composite.tiles import TileRenderer
from creeper.config import GRID_SLOTS, CanvasSettings, parse_hex_color
from creeper.models.snapshot import CameraSource, SlotResult

logger = logging.getLogger(__name__)


class Compositor:
    """Lays out four camera tiles on a fixed-size canvas."""

    def __init__(
        self,
        settings: CanvasSettings,
        fetcher: SourceFetcher,
        renderer: Optional[TileRenderer] = None,
    ):
        """Initialize compositor.

        Args:
            settings: Canvas settings
            fetcher: Source fetcher used for every slot
            renderer: Tile renderer (built from settings if not provided)
        """
        self.settings = settings
        self.fetcher = fetcher
        self.renderer = renderer or TileRenderer(settings)
        self.cells = grid_cells(settings.size, settings.border)

    def new_canvas(self) -> np.ndarray:
        """Create an opaque canvas filled with the background color."""
        canvas = np.empty((self.settings.size, self.settings.size, 3), dtype=np.uint8)
        canvas[:] = parse_hex_color(self.settings.background_color)
        return canvas

    def compose(
        self,
        sources: Sequence[Optional[CameraSource]],
    ) -> Tuple[np.ndarray, List[SlotResult]]:
        """Fetch all slots and paint them onto a fresh canvas.

        Args:
            sources: One entry per slot (None for unconfigured slots)

        Returns:
            Tuple of (canvas, per-slot results in slot order)
        """
        if len(sources) != GRID_SLOTS:
            raise ValueError(f"Expected {GRID_SLOTS} slots, got {len(sources)}")

        canvas = self.new_canvas()
        fetches = self.fetcher.fetch_all(sources)

        slots = []
        for cell, source, fetch in zip(self.cells, sources, fetches):
            location = source.label if source else f"CAM {cell.slot_index + 1}"
            result = self.renderer.render(canvas, cell, fetch, location)

            if result.ok:
                logger.info(
                    f"[slot {cell.slot_index}] {location}: drawn "
                    f"({fetch.width}x{fetch.height}, {fetch.attempts} attempt(s))"
                )
            else:
                logger.warning(
                    f"[slot {cell.slot_index}] {location}: placeholder "
                    f"({result.error_kind}: {result.error})"
                )
            slots.append(result)

        return canvas, slots
