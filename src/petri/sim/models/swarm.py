from __future__ import annotations

import logging
from time import perf_counter
from typing import List

from pygame.math import Vector2

from ...config import SwarmConfig
from ...rng import DeterministicRng
from ...spatial_grid import SpatialGrid
from ..core.agent import SwarmAgent
from ..core.field import Field
from ..core.landscape import build_landscape
from ..systems import metrics as metrics_system
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import normalize, normalize_xy, wrap_cell, wrap_position

log = logging.getLogger(__name__)


class SwarmWorld:
    """Agents descending a fixed landscape by following their lowest neighbour.

    Every tick each agent looks at the agents within ``neighbour_radius``
    (itself included), heads toward the one resting on the lowest landscape
    value and takes one step. An agent that is itself the lowest stays put.
    """

    def __init__(self, config: SwarmConfig):
        config.validate()
        self._config = config
        self._rng = DeterministicRng(config.seed)
        self._landscape = Field.from_array(build_landscape(config.landscape, config.world_size))
        self._grid = SpatialGrid(config.cell_size, float(config.world_size))
        self._agents: List[SwarmAgent] = []
        self._neighbor_agents: List[SwarmAgent] = []
        self._neighbor_offsets: List[Vector2] = []
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()
        log.info(
            "swarm world %dx%d on %s landscape with %d agents (seed=%d)",
            config.world_size,
            config.world_size,
            config.landscape.value,
            len(self._agents),
            config.seed,
        )

    @property
    def config(self) -> SwarmConfig:
        return self._config

    @property
    def agents(self) -> List[SwarmAgent]:
        return self._agents

    @property
    def landscape(self) -> Field:
        return self._landscape

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._agents.clear()
        self._grid.clear()
        self._rng.reset()
        self._metrics = None
        self._bootstrap_population()
        log.debug("swarm world reset to %d agents", len(self._agents))

    def patch_value(self, position: Vector2) -> float:
        size = self._config.world_size
        return float(self._landscape.values[wrap_cell(position.x, position.y, size, size)])

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        size = self._config.world_size
        self._grid.clear()
        for agent in self._agents:
            self._grid.insert(agent)

        moved = 0
        stayed = 0
        for agent in self._agents:
            self._grid.collect_neighbors(
                agent.position,
                self._config.neighbour_radius,
                self._neighbor_agents,
                self._neighbor_offsets,
            )
            target_offset = self._lowest_neighbor_offset(agent)
            if target_offset is None:
                stayed += 1
                continue
            agent.heading = normalize(target_offset)
            agent.position = wrap_position(agent.position + agent.heading * self._config.speed, size, size)
            agent.patch_value = self.patch_value(agent.position)
            moved += 1

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(tick, self._agents, moved, stayed, 0, elapsed_ms)
        self._metrics = metrics
        return metrics

    def snapshot(self, tick: int) -> Snapshot:
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(tick, self._agents, 0, 0, 0, 0.0)
        size = self._config.world_size
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=[metrics_system.agent_snapshot(agent) for agent in self._agents],
            world=SnapshotWorld(rows=size, cols=size),
            metadata=SnapshotMetadata(
                model="swarm",
                seed=self._config.seed,
                config_version=self._config.config_version,
            ),
            field=self._landscape.snapshot(),
        )

    def _lowest_neighbor_offset(self, agent: SwarmAgent) -> Vector2 | None:
        best_value = agent.patch_value
        best_offset: Vector2 | None = None
        for other, offset in zip(self._neighbor_agents, self._neighbor_offsets):
            if other is agent:
                continue
            if other.patch_value < best_value and offset.length_squared() > 1e-12:
                best_value = other.patch_value
                best_offset = offset
        return best_offset

    def _bootstrap_population(self) -> None:
        size = self._config.world_size
        for agent_id in range(self._config.n_agents):
            position = Vector2(1 + self._rng.next_int(size - 2), 1 + self._rng.next_int(size - 2))
            agent = SwarmAgent(
                id=agent_id,
                position=position,
                heading=normalize_xy(1.0, 1.0),
                patch_value=self.patch_value(position),
            )
            self._agents.append(agent)


def reinitialize(config: SwarmConfig) -> SwarmWorld:
    return SwarmWorld(config)
