# gridagg/core/grid/indexer.py
"""
Grid Indexer

O(1) cell lookup by floor arithmetic against the grid origin: no polygon
containment tests, no stored cell shapes. Both the accumulator and the map
exporter go through this module so counted cells and rendered cell
boundaries can never drift apart.

Boundary policy:
- A point inside the origin envelope (min <= coord <= max on both axes) is
  always counted. A coordinate lying exactly on the max edge produces index
  W (or H) and is clamped into the last cell.
- A point outside the envelope whose index falls outside [0, W) x [0, H) is
  dropped silently; callers see it only in the dropped count.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Tuple, Union

import numpy as np

from gridagg.core.grid.models import EventBatch, GridEvent, GridOrigin, GridShape
from gridagg.utils.error_handling import EmptyInputError, validate_positive_finite

Point = Tuple[float, float]


# -----------------------------
# Cell arithmetic
# -----------------------------

def cell_index(x: float, y: float, origin: GridOrigin, cell_size: float) -> Tuple[int, int]:
    """Raw cell coordinate of a planar point; may lie outside the grid."""
    return (
        math.floor((x - origin.min_x) / cell_size),
        math.floor((y - origin.min_y) / cell_size),
    )


def grid_shape(origin: GridOrigin, cell_size: float) -> GridShape:
    """
    Grid dimensions covering the origin envelope.

    ceil(width / cell_size) x ceil(height / cell_size), never less than one
    cell per axis so a degenerate envelope (single point or line) still has
    a cell to count into.
    """
    cell_size = validate_positive_finite(cell_size, "cell_size")
    width = max(1, int(math.ceil(origin.width / cell_size)))
    height = max(1, int(math.ceil(origin.height / cell_size)))
    return GridShape(width=width, height=height)


def locate_cell(
    x: float,
    y: float,
    origin: GridOrigin,
    cell_size: float,
    shape: Optional[GridShape] = None,
) -> Optional[Tuple[int, int]]:
    """
    Scalar form of the boundary policy.

    Returns:
        (cell_x, cell_y), or None if the point is dropped
    """
    shape = shape or grid_shape(origin, cell_size)
    cx, cy = cell_index(x, y, origin, cell_size)
    if 0 <= x - origin.min_x <= origin.width and 0 <= y - origin.min_y <= origin.height:
        cx = min(cx, shape.width - 1)
        cy = min(cy, shape.height - 1)
    if 0 <= cx < shape.width and 0 <= cy < shape.height:
        return cx, cy
    return None


def cell_indices(
    xs: np.ndarray,
    ys: np.ndarray,
    origin: GridOrigin,
    cell_size: float,
    shape: GridShape,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorized cell lookup with the boundary policy applied.

    Returns:
        cx: int64 cell x per point
        cy: int64 cell y per point
        valid: bool mask, False for dropped points
    """
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)

    # Offsets are compared against width/height rather than max_x/max_y:
    # width was computed as max - min, so a point exactly on the max edge
    # reproduces it bit for bit.
    ox = xs - origin.min_x
    oy = ys - origin.min_y
    with np.errstate(invalid="ignore"):
        cx = np.floor(ox / cell_size).astype(np.int64)
        cy = np.floor(oy / cell_size).astype(np.int64)

    # Inclusive max edge: clamp into the last cell
    inside = (ox >= 0) & (ox <= origin.width) & (oy >= 0) & (oy <= origin.height)
    cx = np.where(inside, np.minimum(cx, shape.width - 1), cx)
    cy = np.where(inside, np.minimum(cy, shape.height - 1), cy)

    valid = (cx >= 0) & (cx < shape.width) & (cy >= 0) & (cy < shape.height)
    return cx, cy, valid


def flat_index(hour, cell_x, cell_y, shape: GridShape):
    """hour*W*H + cell_x*H + cell_y; works on scalars and numpy arrays."""
    return hour * shape.cells + cell_x * shape.height + cell_y


def cell_bounds(
    cell_x: int,
    cell_y: int,
    origin: GridOrigin,
    cell_size: float,
) -> Tuple[float, float, float, float]:
    """Planar (min_x, min_y, max_x, max_y) of a cell; the inverse of cell_index."""
    min_x = origin.min_x + cell_x * cell_size
    min_y = origin.min_y + cell_y * cell_size
    return min_x, min_y, min_x + cell_size, min_y + cell_size


# -----------------------------
# Bounding box
# -----------------------------

def calculate_bounding_box(events: Union[Iterable[GridEvent], EventBatch]) -> GridOrigin:
    """
    Minimal envelope of all event coordinates, in a single pass.

    Raises:
        EmptyInputError: If there are no events; min/max of an empty set is undefined.
    """
    if isinstance(events, EventBatch):
        if len(events) == 0:
            raise EmptyInputError("Cannot compute a bounding box for zero events.")
        return GridOrigin.from_bounds(
            float(events.x.min()), float(events.y.min()),
            float(events.x.max()), float(events.y.max()),
        )
    return bounding_box_from_points((evt.x, evt.y) for evt in events)


def bounding_box_from_points(*point_sets: Iterable[Point]) -> GridOrigin:
    """
    Envelope over one or more collections of (x, y) pairs, e.g. the
    projected supply and demand coordinates kept as separate lists.
    """
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    seen = 0

    for points in point_sets:
        for x, y in points:
            min_x = min(min_x, x)
            min_y = min(min_y, y)
            max_x = max(max_x, x)
            max_y = max(max_y, y)
            seen += 1

    if seen == 0:
        raise EmptyInputError("Cannot compute a bounding box for zero events.")
    return GridOrigin.from_bounds(min_x, min_y, max_x, max_y)
