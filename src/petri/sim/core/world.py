from __future__ import annotations

import logging
from time import perf_counter
from typing import Dict, List, Set

from pygame.math import Vector2

from ...config import PlasmodiumConfig
from ...rng import DeterministicRng
from ..systems import metrics as metrics_system, motor, niche, sensing, steering
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import normalize, wrap_cell, wrap_position
from .agent import PlasmodiumAgent
from .field import Field

log = logging.getLogger(__name__)


class PlasmodiumWorld:
    """Slime-mold foraging on a toroidal attractant field.

    One tick runs niche dynamics (nutrient emission, diffusion, evaporation)
    and then visits every active agent exactly once: sense three probes,
    steer, then move and deposit or reorient when the way is blocked.
    """

    def __init__(self, config: PlasmodiumConfig):
        config.validate()
        self._config = config
        self._rng = DeterministicRng(config.seed)
        self._field = Field(config.rows, config.cols)
        self._agents: List[PlasmodiumAgent] = []
        self._occupancy: Dict[tuple[int, int], Set[int]] = {}
        self._next_id = 0
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()
        log.info(
            "plasmodium world %dx%d seeded with %d agents (seed=%d, diffusion=%s)",
            config.rows,
            config.cols,
            len(self._agents),
            config.seed,
            config.diffusion_mode.value,
        )

    @property
    def config(self) -> PlasmodiumConfig:
        return self._config

    @property
    def agents(self) -> List[PlasmodiumAgent]:
        return self._agents

    @property
    def field(self) -> Field:
        return self._field

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._agents.clear()
        self._occupancy.clear()
        self._field.clear()
        self._rng.reset()
        self._next_id = 0
        self._metrics = None
        self._bootstrap_population()
        log.debug("plasmodium world reset to %d agents", len(self._agents))

    def add_agent(self, position: Vector2, heading: Vector2, speed: float | None = None) -> PlasmodiumAgent:
        rows, cols = self._field.shape
        position = wrap_position(Vector2(position), rows, cols)
        agent = PlasmodiumAgent(
            id=self._next_id,
            position=position,
            heading=normalize(Vector2(heading)),
            speed=self._config.agent_speed if speed is None else speed,
            cell=wrap_cell(position.x, position.y, rows, cols),
        )
        if self._occupancy.get(agent.cell):
            raise ValueError(f"cell {agent.cell} is already held by an active agent")
        self._agents.append(agent)
        self._occupy(agent)
        self._next_id += 1
        return agent

    def set_active(self, agent_id: int, active: bool) -> bool:
        """Switch an agent on or off; returns whether it ends up in the requested state.

        An agent cannot wake up in a cell another active agent holds. It then
        stays inactive until the cell is free again.
        """
        agent = self._agents[agent_id]
        if agent.active == active:
            return True
        if not active:
            self._vacate(agent)
            agent.active = False
            return True
        if self._occupancy.get(agent.cell):
            log.debug("agent %d stays inactive, cell %s is taken", agent_id, agent.cell)
            return False
        agent.active = True
        self._occupy(agent)
        return True

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        config = self._config
        field = self._field
        niche.niche_dynamics(self)

        order = self._agents
        if config.shuffle_agents:
            order = list(self._agents)
            self._rng.shuffle(order)

        moved = 0
        blocked = 0
        turns = 0
        for agent in order:
            if not agent.active:
                continue
            sniff = sensing.sense(agent, field, config.sensor_range, config.sensor_angle)
            agent.patch_value = sniff.ahead
            agent.heading, decision = steering.steer(agent.heading, sniff, config.wiggle, self._rng)
            if decision is not steering.TurnDecision.NONE:
                turns += 1
            if motor.motor_phase(self, agent):
                moved += 1
            else:
                blocked += 1

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            tick, self._agents, moved, blocked, turns, elapsed_ms, field=field
        )
        self._metrics = metrics
        return metrics

    def snapshot(self, tick: int) -> Snapshot:
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(tick, self._agents, 0, 0, 0, 0.0, field=self._field)
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=[metrics_system.agent_snapshot(agent) for agent in self._agents],
            world=SnapshotWorld(rows=self._config.rows, cols=self._config.cols),
            metadata=SnapshotMetadata(
                model="plasmodium",
                seed=self._config.seed,
                config_version=self._config.config_version,
                diffusion_mode=self._config.diffusion_mode.value,
            ),
            field=self._field.snapshot(),
        )

    def _bootstrap_population(self) -> None:
        config = self._config
        margin = config.hazard_margin
        cells = [
            (row, col)
            for row in range(margin, config.rows - margin)
            for col in range(margin, config.cols - margin)
        ]
        if config.initial_population is None:
            chosen = [cell for cell in cells if self._rng.next_float() < config.population_fraction]
        else:
            chosen = [cells[i] for i in sorted(self._rng.sample_indices(len(cells), config.initial_population))]
        for row, col in chosen:
            self.add_agent(Vector2(row, col), self._rng.next_unit_circle())

    def _occupy(self, agent: PlasmodiumAgent) -> None:
        if agent.active:
            self._occupancy.setdefault(agent.cell, set()).add(agent.id)

    def _vacate(self, agent: PlasmodiumAgent) -> None:
        occupants = self._occupancy.get(agent.cell)
        if occupants is None:
            return
        occupants.discard(agent.id)
        if not occupants:
            del self._occupancy[agent.cell]


def reinitialize(config: PlasmodiumConfig) -> PlasmodiumWorld:
    """Build a fresh world from ``config``; the host calls this on reset with new parameters."""
    return PlasmodiumWorld(config)
