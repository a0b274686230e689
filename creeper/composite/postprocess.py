# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Whole-canvas post-processing.

Applied once all four tiles are drawn, always in this order:
1. Luma grayscale (labels and placeholder text included)
2. Solid tint overlay at low opacity
3. Centered watermark caption, drawn last so it is unaffected by content
"""

import logging

import numpy as np

from creeper.composite.geometry import Rect
from creeper.composite.text import TextStyle, draw_centered_text
from creeper.config import CanvasSettings, parse_hex_color

logger = logging.getLogger(__name__)

# Rec. 601 luma weights in OpenCV channel order (B, G, R)
LUMA_WEIGHTS_BGR = np.array([0.114, 0.587, 0.299], dtype=np.float32)


def to_grayscale(canvas: np.ndarray) -> np.ndarray:
    """Replace every pixel with (L, L, L), L = 0.299r + 0.587g + 0.114b."""
    luma = canvas[..., :3].astype(np.float32) @ LUMA_WEIGHTS_BGR
    luma = np.clip(np.rint(luma), 0, 255).astype(np.uint8)
    canvas[..., 0] = luma
    canvas[..., 1] = luma
    canvas[..., 2] = luma
    return canvas


def apply_tint(canvas: np.ndarray, color, opacity: float) -> np.ndarray:
    """Blend a solid color over the canvas: out = color*a + dst*(1-a)."""
    if opacity <= 0:
        return canvas
    tint = np.asarray(color, dtype=np.float32)
    blended = tint * opacity + canvas[..., :3].astype(np.float32) * (1.0 - opacity)
    canvas[..., :3] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)
    return canvas


def draw_watermark(canvas: np.ndarray, text: str, style: TextStyle) -> None:
    """Draw the caption centered on the whole canvas."""
    if not text:
        return
    height, width = canvas.shape[:2]
    draw_centered_text(canvas, text, Rect(0, 0, width, height), style)


class PostProcessor:
    """Applies grayscale, tint and watermark to a composited canvas."""

    def __init__(self, settings: CanvasSettings):
        self.settings = settings
        self._tint_color = parse_hex_color(settings.tint_color)
        self._watermark_style = TextStyle(
            settings.watermark_font_px, parse_hex_color(settings.watermark_color)
        )

    def process(self, canvas: np.ndarray) -> np.ndarray:
        """Run all transforms in place and return the canvas."""
        to_grayscale(canvas)
        apply_tint(canvas, self._tint_color, self.settings.tint_opacity)
        draw_watermark(canvas, self.settings.watermark_text, self._watermark_style)
        logger.debug("Applied grayscale, tint and watermark")
        return canvas
