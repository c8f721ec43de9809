from __future__ import annotations

import math

from pygame.math import Vector2

from ...errors import InvalidVector


def normalize(vector: Vector2) -> Vector2:
    return normalize_xy(vector.x, vector.y)


def normalize_xy(x: float, y: float) -> Vector2:
    """Unit vector along (x, y).

    Zero and non-finite input is rejected with ``InvalidVector`` instead of
    being turned into NaN or a silent zero heading.
    """
    magnitude_sq = x * x + y * y
    if magnitude_sq == 0.0 or not math.isfinite(magnitude_sq):
        raise InvalidVector(f"cannot normalize vector ({x}, {y})")
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def rotate(vector: Vector2, degrees: float) -> Vector2:
    # Positive angles turn counter-clockwise (left), negative turn right.
    return vector.rotate(degrees)


def rotate_normalized(vector: Vector2, degrees: float) -> Vector2:
    return normalize(vector.rotate(degrees))


def wrap_index(index: int, extent: int) -> int:
    """Map ``index`` onto ``[0, extent)`` with toroidal wraparound.

    Precondition: ``-extent <= index < 2 * extent``. Movement and diffusion
    only ever step one cell past an edge, and sensor probes stay within one
    extent, so indices further out are never produced and are not checked.
    """
    return (index + extent) % extent


def wrap_cell(x: float, y: float, rows: int, cols: int) -> tuple[int, int]:
    return (wrap_index(int(round(x)), rows), wrap_index(int(round(y)), cols))


def wrap_position(position: Vector2, rows: int, cols: int) -> Vector2:
    return Vector2(_wrap_coordinate(position.x, rows), _wrap_coordinate(position.y, cols))


def _wrap_coordinate(value: float, extent: int) -> float:
    # Float modulo of a tiny negative value rounds up to exactly extent.
    wrapped = value % extent
    if wrapped >= extent:
        return 0.0
    return wrapped
