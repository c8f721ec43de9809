from __future__ import annotations

import logging
from time import perf_counter
from typing import List

from pygame.math import Vector2

from ...config import CollectiveConfig
from ...rng import DeterministicRng
from ..core.agent import Turtle
from ..systems import metrics as metrics_system
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import rotate_normalized, wrap_position

log = logging.getLogger(__name__)


class CollectiveWorld:
    """Turtles circling the world centre.

    Turtles start on a ring around the centre, heading along its tangent.
    Each tick a turtle, with probability ``move_probability``, bends its
    heading by a random angle below ``max_turn`` degrees and takes a step;
    the world tracks every turtle's euclidean distance to the centre and
    their mean.
    """

    def __init__(self, config: CollectiveConfig):
        config.validate()
        self._config = config
        self._rng = DeterministicRng(config.seed)
        self._center = Vector2(config.world_size / 2.0, config.world_size / 2.0)
        self._agents: List[Turtle] = []
        self._mean_distance = 0.0
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()
        log.info(
            "collective world %dx%d with %d turtles (seed=%d)",
            config.world_size,
            config.world_size,
            len(self._agents),
            config.seed,
        )

    @property
    def config(self) -> CollectiveConfig:
        return self._config

    @property
    def agents(self) -> List[Turtle]:
        return self._agents

    @property
    def center(self) -> Vector2:
        return Vector2(self._center)

    @property
    def mean_distance(self) -> float:
        return self._mean_distance

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._agents.clear()
        self._rng.reset()
        self._metrics = None
        self._bootstrap_population()
        log.debug("collective world reset to %d turtles", len(self._agents))

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        config = self._config
        moved = 0
        for turtle in self._agents:
            if self._rng.next_float() >= config.move_probability:
                continue
            turtle.heading = rotate_normalized(turtle.heading, self._rng.next_float() * config.max_turn)
            turtle.position = wrap_position(
                turtle.position + turtle.heading * config.particle_speed,
                config.world_size,
                config.world_size,
            )
            turtle.distance = turtle.position.distance_to(self._center)
            moved += 1
        self._refresh_mean_distance()

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            tick,
            self._agents,
            moved,
            0,
            moved,
            elapsed_ms,
            mean_distance=self._mean_distance,
        )
        self._metrics = metrics
        return metrics

    def snapshot(self, tick: int) -> Snapshot:
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(
                tick, self._agents, 0, 0, 0, 0.0, mean_distance=self._mean_distance
            )
        size = self._config.world_size
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=[metrics_system.agent_snapshot(agent) for agent in self._agents],
            world=SnapshotWorld(rows=size, cols=size),
            metadata=SnapshotMetadata(
                model="collective",
                seed=self._config.seed,
                config_version=self._config.config_version,
            ),
            field=None,
        )

    def _refresh_mean_distance(self) -> None:
        if not self._agents:
            self._mean_distance = 0.0
            return
        self._mean_distance = sum(turtle.distance for turtle in self._agents) / len(self._agents)

    def _bootstrap_population(self) -> None:
        config = self._config
        for turtle_id in range(config.n_particles):
            spoke = self._rng.next_unit_circle() * config.ring_radius
            position = wrap_position(self._center + spoke, config.world_size, config.world_size)
            turtle = Turtle(
                id=turtle_id,
                position=position,
                heading=rotate_normalized(spoke, 90.0),
                distance=position.distance_to(self._center),
            )
            self._agents.append(turtle)
        self._refresh_mean_distance()


def reinitialize(config: CollectiveConfig) -> CollectiveWorld:
    return CollectiveWorld(config)
