# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Text and translucent box drawing on OpenCV canvases.

Hershey fonts only carry ASCII glyphs, so text is folded to ASCII before it
is measured or drawn: accents are stripped ("Zürich" becomes "Zurich") and
anything else without an ASCII form is drawn as "?".
"""

import unicodedata
from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from creeper.composite.geometry import Rect, centered_text_origin

FONT = cv2.FONT_HERSHEY_SIMPLEX
ELLIPSIS = "..."


@dataclass(frozen=True)
class TextStyle:
    """Font size in pixels (cap height) and BGR color."""

    font_px: int
    color: Tuple[int, int, int]

    @property
    def thickness(self) -> int:
        return max(1, self.font_px // 12)

    @property
    def scale(self) -> float:
        return cv2.getFontScaleFromHeight(FONT, self.font_px, self.thickness)


def to_ascii(text: str) -> str:
    """Fold text to the ASCII subset the Hershey fonts can render."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.encode("ascii", "replace").decode("ascii")


def measure_text(text: str, style: TextStyle) -> Tuple[Tuple[int, int], int]:
    """Return ((width, height), baseline) as cv2.getTextSize does."""
    return cv2.getTextSize(to_ascii(text), FONT, style.scale, style.thickness)


def fit_text(text: str, max_width: int, style: TextStyle) -> str:
    """Shorten text with an ellipsis until it fits max_width."""
    (width, _), _ = measure_text(text, style)
    if width <= max_width:
        return text
    while text:
        text = text[:-1]
        candidate = text.rstrip() + ELLIPSIS
        (width, _), _ = measure_text(candidate, style)
        if width <= max_width:
            return candidate
    return ""


def draw_text(
    canvas: np.ndarray,
    text: str,
    origin: Tuple[int, int],
    style: TextStyle,
) -> None:
    """Draw anti-aliased text with its baseline starting at origin."""
    cv2.putText(
        canvas,
        to_ascii(text),
        origin,
        FONT,
        style.scale,
        style.color,
        style.thickness,
        cv2.LINE_AA,
    )


def draw_centered_text(
    canvas: np.ndarray,
    text: str,
    box: Rect,
    style: TextStyle,
) -> Tuple[int, int]:
    """Draw text centered in box; returns the origin used."""
    text_size, _ = measure_text(text, style)
    origin = centered_text_origin(text_size, box)
    draw_text(canvas, text, origin, style)
    return origin


def blend_rect(
    canvas: np.ndarray,
    rect: Rect,
    color: Tuple[int, int, int],
    opacity: float,
) -> None:
    """Alpha-blend a solid color over one rectangle of the canvas in place."""
    rows, cols = rect.slices()
    roi = canvas[rows, cols]
    overlay = np.empty_like(roi)
    overlay[:] = color
    canvas[rows, cols] = cv2.addWeighted(overlay, opacity, roi, 1 - opacity, 0)
