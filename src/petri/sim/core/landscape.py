"""Static height maps the swarm model forages on.

Both maps are ``size x size`` arrays indexed ``[x, y]`` over a symmetric
coordinate range centred on the world.
"""

from __future__ import annotations

import numpy as np

from ...config import Landscape
from ...errors import InvalidConfiguration


def _axis(size: int, scale: float) -> np.ndarray:
    max_coordinate = size // 2
    return scale * np.arange(-max_coordinate, size - max_coordinate, dtype=float) / max_coordinate


def build_valleys(size: int) -> np.ndarray:
    """Multimodal landscape with a handful of peaks and valleys."""
    xy = _axis(size, 4.0)
    x = xy[:, np.newaxis]
    y = xy[np.newaxis, :]
    return (
        (1.0 / 3.0) * np.exp(-((x + 1.0) ** 2) - y**2)
        + 10.0 * (x / 5.0 - x**3 - y**5) * np.exp(-(x**2) - y**2)
        - 3.0 * (1.0 - x) ** 2 * np.exp(-(x**2) - (y + 1.0) ** 2)
    )


def build_dejong7(size: int) -> np.ndarray:
    """De Jong's complicated multimodal landscape."""
    xy = _axis(size, 20.0)
    x = xy[:, np.newaxis]
    y = xy[np.newaxis, :]
    return np.sin(180.0 * 2.0 * x / np.pi) / (1.0 + np.abs(x)) + np.sin(180.0 * 2.0 * y / np.pi) / (1.0 + np.abs(y))


def build_landscape(kind: Landscape, size: int) -> np.ndarray:
    if size < 2:
        raise InvalidConfiguration(f"landscape size must be at least 2, got {size}")
    if kind is Landscape.DEJONG7:
        return build_dejong7(size)
    if kind is Landscape.VALLEYS:
        return build_valleys(size)
    raise InvalidConfiguration(f"unknown landscape {kind!r}")
