"""
Geometry helpers for the diagram canvas.

Pure functions over shapes and settings:
- Grid snapping with round-half-away-from-zero
- Hit-testing against axis-aligned bounding boxes
- Bounding box of a set of shapes

Rotation is ignored everywhere: a shape's box is always
[x, x + width] x [y, y + height].
"""

import math
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

if TYPE_CHECKING:
    from .models import DiagramSettings, Shape


def round_half_away_from_zero(value: float) -> float:
    """
    Round to the nearest integer, ties going away from zero.

    Python's round() sends ties to the even neighbour (round(2.5) == 2),
    which would make 50 snap to 40 on a 20px grid.
    """
    if not math.isfinite(value):
        return value
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return math.copysign(whole, value)


def snap_point(x: float, y: float, settings: "DiagramSettings") -> tuple[float, float]:
    """
    Snap a point to the nearest grid intersection.

    Args:
        x: X coordinate in diagram space
        y: Y coordinate in diagram space
        settings: Diagram settings (snap_to_grid, grid_size)

    Returns:
        The snapped point, or (x, y) unchanged when snapping is off
    """
    if not settings.snap_to_grid:
        return (x, y)

    grid = settings.grid_size
    return (
        round_half_away_from_zero(x / grid) * grid,
        round_half_away_from_zero(y / grid) * grid,
    )


def contains_point(shape: "Shape", x: float, y: float) -> bool:
    """True if (x, y) lies in the shape's box, edges included."""
    left, top, right, bottom = shape.bounds()
    return left <= x <= right and top <= y <= bottom


def find_shape_at(shapes: Sequence["Shape"], x: float, y: float) -> Optional[str]:
    """
    Find the topmost shape under a point.

    Shapes later in the sequence are drawn on top, so the scan runs from the
    end backwards and stops at the first hit.

    Returns:
        The shape id, or None if no shape contains the point
    """
    for shape in reversed(shapes):
        if contains_point(shape, x, y):
            return shape.id
    return None


def diagram_bounds(shapes: Iterable["Shape"]) -> Optional[tuple[float, float, float, float]]:
    """
    Get the box (x, y, right, bottom) enclosing every shape.

    Returns:
        None when there are no shapes
    """
    boxes = [shape.bounds() for shape in shapes]
    if not boxes:
        return None

    return (
        min(b[0] for b in boxes),
        min(b[1] for b in boxes),
        max(b[2] for b in boxes),
        max(b[3] for b in boxes),
    )
