# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Tile rendering for a single grid cell.

A tile is either a center-cropped, scaled live frame or a placeholder (flat
fill plus OFFLINE status text). Either way the cell's location label is drawn
over a translucent box in the bottom-left corner of the inner region.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from creeper.capture.http_snapshot import FetchResult
from creeper.composite.geometry import CellGeometry, Rect, label_box
from creeper.composite.text import (
    TextStyle,
    blend_rect,
    draw_centered_text,
    draw_text,
    fit_text,
    measure_text,
)
from creeper.config import CanvasSettings, parse_hex_color
from creeper.exceptions import InvalidImage, SnapshotSourceError
from creeper.models.snapshot import SlotResult, SlotStatus

logger = logging.getLogger(__name__)

STATUS_HEADING = "OFFLINE"
LABEL_BOX_COLOR = (0, 0, 0)


def center_crop_square(frame: np.ndarray) -> np.ndarray:
    """Crop the largest centered square from a frame."""
    height, width = frame.shape[:2]
    side = min(width, height)
    sx = (width - side) // 2
    sy = (height - side) // 2
    return frame[sy:sy + side, sx:sx + side]


class TileRenderer:
    """Draws one slot's tile into its cell on the canvas."""

    def __init__(self, settings: CanvasSettings):
        """Initialize renderer.

        Args:
            settings: Canvas settings (colors, fonts, opacity)
        """
        self.settings = settings
        self._placeholder_color = parse_hex_color(settings.placeholder_color)
        self._status_style = TextStyle(
            settings.status_font_px, parse_hex_color(settings.status_color)
        )
        self._reason_style = TextStyle(
            max(1, settings.status_font_px // 2), parse_hex_color(settings.status_color)
        )
        self._label_style = TextStyle(
            settings.label_font_px, parse_hex_color(settings.label_color)
        )

    def render(
        self,
        canvas: np.ndarray,
        cell: CellGeometry,
        fetch: FetchResult,
        location: str,
    ) -> SlotResult:
        """Draw a live tile or placeholder, then the location label.

        Returns:
            SlotResult describing what was drawn
        """
        error: Optional[SnapshotSourceError] = fetch.error

        if fetch.success:
            try:
                self.draw_live(canvas, cell, fetch.frame)
            except cv2.error as e:
                logger.error(f"[slot {cell.slot_index}] failed to scale frame: {e}")
                error = InvalidImage(f"Failed to scale frame: {e}")
        elif error is None:
            error = InvalidImage("No frame")

        if error is not None:
            self.draw_placeholder(canvas, cell, str(error))

        self.draw_label(canvas, cell, location)

        return SlotResult(
            slot_index=cell.slot_index,
            location=location,
            status=SlotStatus.PLACEHOLDER if error else SlotStatus.OK,
            error_kind=error.kind if error else None,
            error=str(error) if error else None,
            attempts=fetch.attempts,
            fetch_time_ms=fetch.fetch_time_ms,
        )

    def draw_live(self, canvas: np.ndarray, cell: CellGeometry, frame: np.ndarray) -> None:
        """Center-crop the frame to a square and scale it into the inner region."""
        inner = cell.inner
        square = center_crop_square(frame)
        side = square.shape[0]
        interpolation = cv2.INTER_AREA if side > inner.width else cv2.INTER_LINEAR
        scaled = cv2.resize(square, (inner.width, inner.height), interpolation=interpolation)
        rows, cols = inner.slices()
        canvas[rows, cols] = scaled

    def draw_placeholder(self, canvas: np.ndarray, cell: CellGeometry, reason: str) -> None:
        """Flat fill with OFFLINE heading and a short reason below it."""
        inner = cell.inner
        rows, cols = inner.slices()
        canvas[rows, cols] = self._placeholder_color

        _, center_y = inner.center
        status_px = self.settings.status_font_px
        heading_box = Rect(inner.x, center_y - 2 * status_px, inner.width, 2 * status_px)
        reason_box = Rect(inner.x, center_y, inner.width, status_px + status_px // 2)

        draw_centered_text(canvas, STATUS_HEADING, heading_box, self._status_style)

        reason = reason[: self.settings.status_reason_length]
        reason = fit_text(reason, inner.width - 2 * self.settings.border, self._reason_style)
        if reason:
            draw_centered_text(canvas, reason, reason_box, self._reason_style)

    def draw_label(self, canvas: np.ndarray, cell: CellGeometry, text: str) -> None:
        """Location label over a translucent box at the inner bottom-left."""
        padding = max(4, self.settings.label_font_px // 2)
        text = fit_text(text, cell.inner.width - 2 * padding, self._label_style)
        if not text:
            return

        text_size, baseline = measure_text(text, self._label_style)
        box, origin = label_box(text_size, baseline, cell, padding)
        blend_rect(canvas, box, LABEL_BOX_COLOR, self.settings.label_opacity)
        draw_text(canvas, text, origin, self._label_style)
