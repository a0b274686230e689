# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Grid and text placement geometry.

Pure functions of canvas size, border width and measured text extents. All
text on the canvas is positioned through these helpers so there is exactly
one centering convention: horizontal center, vertical middle of the glyph
box, expressed as the baseline origin cv2.putText expects.
"""

from dataclasses import dataclass
from typing import List, Tuple

from creeper.config import GRID_SLOTS


@dataclass(frozen=True)
class Rect:
    """Axis-aligned pixel rectangle; right and bottom are exclusive."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def center(self) -> Tuple[int, int]:
        return (self.x + self.width // 2, self.y + self.height // 2)

    def contains(self, other: "Rect") -> bool:
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def intersects(self, other: "Rect") -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def slices(self) -> Tuple[slice, slice]:
        """Row and column slices for indexing a numpy image."""
        return slice(self.y, self.bottom), slice(self.x, self.right)


@dataclass(frozen=True)
class CellGeometry:
    """Outer cell and inset drawable region for one grid slot."""

    slot_index: int
    outer: Rect
    inner: Rect


def cell_geometry(slot_index: int, canvas_size: int, border: int) -> CellGeometry:
    """Compute a slot's rectangles in a 2x2 grid.

    col = slot mod 2, row = slot div 2; the inner region is inset by
    ``border`` on all four sides.
    """
    if not 0 <= slot_index < GRID_SLOTS:
        raise ValueError(f"slot_index must be in 0..{GRID_SLOTS - 1}, got {slot_index}")

    cell = canvas_size // 2
    inner = cell - 2 * border
    if inner <= 0:
        raise ValueError(f"Border {border} leaves no drawable region in a {cell}px cell")

    col = slot_index % 2
    row = slot_index // 2
    origin_x = col * cell
    origin_y = row * cell

    return CellGeometry(
        slot_index=slot_index,
        outer=Rect(origin_x, origin_y, cell, cell),
        inner=Rect(origin_x + border, origin_y + border, inner, inner),
    )


def grid_cells(canvas_size: int, border: int) -> List[CellGeometry]:
    """Geometry for all four slots, in slot order."""
    return [cell_geometry(i, canvas_size, border) for i in range(GRID_SLOTS)]


def centered_text_origin(
    text_size: Tuple[int, int],
    box: Rect,
) -> Tuple[int, int]:
    """Baseline origin that centers text in a box.

    Args:
        text_size: (width, height) of the glyphs above the baseline, as
            returned by cv2.getTextSize
        box: Region to center in

    Returns:
        (x, y) for cv2.putText
    """
    text_width, text_height = text_size
    x = box.x + (box.width - text_width) // 2
    y = box.y + (box.height + text_height) // 2
    return (x, y)


def label_box(
    text_size: Tuple[int, int],
    baseline: int,
    cell: CellGeometry,
    padding: int,
) -> Tuple[Rect, Tuple[int, int]]:
    """Background box and text origin for a cell's location label.

    The label is anchored to the bottom-left corner of the cell's inner
    region and clipped to its width.

    Returns:
        (box, text origin)
    """
    text_width, text_height = text_size
    inner = cell.inner
    width = min(text_width + 2 * padding, inner.width)
    height = min(text_height + baseline + 2 * padding, inner.height)
    box = Rect(inner.x, inner.bottom - height, width, height)
    origin = (box.x + padding, box.bottom - padding - baseline)
    return box, origin
