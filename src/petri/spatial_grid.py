from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, List, Tuple

from pygame.math import Vector2

if TYPE_CHECKING:
    from .sim.core.agent import HeadedAgent


class SpatialGrid:
    """Bucket agents by cell for radius queries on a square torus of side ``extent``.

    ``cell_size`` is an upper bound: the side is split into whole cells so the
    buckets tile the torus exactly and neighbouring keys wrap across the seam.
    """

    def __init__(self, cell_size: float, extent: float) -> None:
        self._extent = extent
        self._cells_per_side = max(1, int(math.ceil(extent / cell_size)))
        self._cell_size = extent / self._cells_per_side
        self._cells: Dict[Tuple[int, int], List["HeadedAgent"]] = {}
        self._active_keys: List[Tuple[int, int]] = []

    def clear(self) -> None:
        for key in self._active_keys:
            bucket = self._cells.get(key)
            if bucket:
                bucket.clear()
        self._active_keys.clear()

    def insert(self, agent: "HeadedAgent") -> None:
        key = self._cell_key(agent.position)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
            self._active_keys.append(key)
        elif not bucket:
            # Bucket exists but was cleared at the start of this tick; mark it active again.
            self._active_keys.append(key)
        bucket.append(agent)

    def offset(self, origin: Vector2, target: Vector2) -> Vector2:
        """Shortest displacement from ``origin`` to ``target`` across the wrapped edges."""
        half = self._extent * 0.5
        dx = target.x - origin.x
        dy = target.y - origin.y
        if dx > half:
            dx -= self._extent
        elif dx < -half:
            dx += self._extent
        if dy > half:
            dy -= self._extent
        elif dy < -half:
            dy += self._extent
        return Vector2(dx, dy)

    def collect_neighbors(
        self,
        position: Vector2,
        radius: float,
        out_agents: List["HeadedAgent"],
        out_offsets: List[Vector2],
    ) -> None:
        """
        Fill the provided buffers with agents within ``radius`` of ``position`` and their
        toroidal offsets from it. The querying agent itself is included when indexed.
        """

        out_agents.clear()
        out_offsets.clear()
        base_key = self._cell_key(position)
        cell_range = min(int(math.ceil(radius / self._cell_size)), self._cells_per_side // 2)
        radius_sq = radius * radius
        seen: set[Tuple[int, int]] = set()

        for dx in range(-cell_range, cell_range + 1):
            for dy in range(-cell_range, cell_range + 1):
                key = (
                    (base_key[0] + dx) % self._cells_per_side,
                    (base_key[1] + dy) % self._cells_per_side,
                )
                if key in seen:
                    continue
                seen.add(key)
                bucket = self._cells.get(key)
                if not bucket:
                    continue
                for agent in bucket:
                    offset = self.offset(position, agent.position)
                    if offset.length_squared() <= radius_sq:
                        out_agents.append(agent)
                        out_offsets.append(offset)

    def _cell_key(self, position: Vector2) -> Tuple[int, int]:
        return (
            int(position.x // self._cell_size) % self._cells_per_side,
            int(position.y // self._cell_size) % self._cells_per_side,
        )
