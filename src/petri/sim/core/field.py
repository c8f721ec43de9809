from __future__ import annotations

from typing import Tuple

import numpy as np

from ...config import DiffusionMode
from ...errors import InvalidConfiguration
from ..utils.math2d import wrap_index

# Von-Neumann neighbourhood as (d_row, d_col), in the order outflow is handed out.
_ORTHOGONAL_OFFSETS: Tuple[Tuple[int, int], ...] = ((1, 0), (-1, 0), (0, -1), (0, 1))


class Field:
    """Dense scalar concentration grid with toroidal topology.

    Values are indexed ``[row, col]``; an agent at continuous position
    ``(x, y)`` reads and writes cell ``[round(x), round(y)]`` after wrapping.
    """

    def __init__(self, rows: int, cols: int, values: np.ndarray | None = None):
        if rows <= 0 or cols <= 0:
            raise InvalidConfiguration(f"grid dimensions must be positive, got {rows}x{cols}")
        self._rows = rows
        self._cols = cols
        if values is None:
            self._values = np.zeros((rows, cols), dtype=float)
        else:
            values = np.asarray(values, dtype=float)
            if values.shape != (rows, cols):
                raise InvalidConfiguration(f"field values have shape {values.shape}, expected {(rows, cols)}")
            self._values = values.copy()

    @classmethod
    def from_array(cls, values: np.ndarray) -> "Field":
        values = np.asarray(values, dtype=float)
        if values.ndim != 2:
            raise InvalidConfiguration(f"field values must be 2-D, got {values.ndim}-D")
        return cls(values.shape[0], values.shape[1], values)

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def cols(self) -> int:
        return self._cols

    @property
    def shape(self) -> tuple[int, int]:
        return (self._rows, self._cols)

    @property
    def values(self) -> np.ndarray:
        return self._values

    def wrap(self, row: int, col: int) -> tuple[int, int]:
        return (wrap_index(row, self._rows), wrap_index(col, self._cols))

    def sample(self, row: int, col: int) -> float:
        row, col = self.wrap(row, col)
        return float(self._values[row, col])

    def deposit(self, row: int, col: int, amount: float) -> None:
        row, col = self.wrap(row, col)
        self._values[row, col] += amount

    def total(self) -> float:
        return float(self._values.sum())

    def peak(self) -> float:
        return float(self._values.max())

    def clear(self) -> None:
        self._values.fill(0.0)

    def snapshot(self) -> np.ndarray:
        copy = self._values.copy()
        copy.flags.writeable = False
        return copy

    def diffuse(self, rate: float, mode: DiffusionMode = DiffusionMode.BUFFERED) -> None:
        """Hand ``rate`` of every cell's value to its four neighbours in equal parts.

        Each cell keeps ``value * (1 - rate)`` of its own value and each
        toroidal neighbour receives ``value * rate / 4``. Both modes conserve
        the total; they differ only in which values the outflow is read from.
        """
        if rate <= 0.0:
            return
        if mode is DiffusionMode.SEQUENTIAL:
            self._diffuse_sequential(rate)
        else:
            self._diffuse_buffered(rate)

    def evaporate(self, rate: float) -> None:
        if rate <= 0.0:
            return
        self._values *= 1.0 - rate

    def _diffuse_buffered(self, rate: float) -> None:
        values = self._values
        share = values * (rate * 0.25)
        spread = (
            np.roll(share, 1, axis=0)
            + np.roll(share, -1, axis=0)
            + np.roll(share, 1, axis=1)
            + np.roll(share, -1, axis=1)
        )
        values *= 1.0 - rate
        values += spread

    def _diffuse_sequential(self, rate: float) -> None:
        values = self._values
        rows = self._rows
        cols = self._cols
        keep = 1.0 - rate
        for row in range(rows):
            for col in range(cols):
                flow = values[row, col] * rate
                if flow == 0.0:
                    continue
                values[row, col] *= keep
                share = flow * 0.25
                for d_row, d_col in _ORTHOGONAL_OFFSETS:
                    values[wrap_index(row + d_row, rows), wrap_index(col + d_col, cols)] += share
