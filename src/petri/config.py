from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

import yaml

from .errors import InvalidConfiguration


class DiffusionMode(str, Enum):
    # Every cell's outflow is computed from the field as it was before the pass.
    BUFFERED = "buffered"
    # Row-major in-place traversal; later cells see earlier cells' outflow.
    SEQUENTIAL = "sequential"


class Landscape(str, Enum):
    VALLEYS = "valleys"
    DEJONG7 = "dejong7"


class ModelKind(str, Enum):
    PLASMODIUM = "plasmodium"
    SWARM = "swarm"
    COLLECTIVE = "collective"


_DEFAULT_NUTRIENT_SOURCES: Tuple[Tuple[int, int], ...] = (
    (30, 65),
    (100, 65),
    (170, 65),
    (30, 135),
    (100, 135),
    (170, 135),
)


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise InvalidConfiguration(message)


def _require_rate(name: str, value: float) -> None:
    _require(math.isfinite(value) and 0.0 <= value <= 1.0, f"{name} must lie in [0, 1], got {value}")


def _require_non_negative(name: str, value: float) -> None:
    _require(math.isfinite(value) and value >= 0.0, f"{name} must be a non-negative number, got {value}")


@dataclass(frozen=True)
class PlasmodiumConfig:
    rows: int = 200
    cols: int = 200
    population_fraction: float = 0.1
    initial_population: Optional[int] = None
    hazard_margin: int = 20
    agent_speed: float = 1.0
    deposit_amount: float = 5.0
    evaporation_rate: float = 0.1
    diffusion_rate: float = 1.0
    diffusion_mode: DiffusionMode = DiffusionMode.BUFFERED
    sensor_angle: float = 60.0
    sensor_range: float = 9.0
    wiggle: float = 60.0
    nutrient_sources: Tuple[Tuple[int, int], ...] = _DEFAULT_NUTRIENT_SOURCES
    nutrient_emission: float = 10.0
    shuffle_agents: bool = True
    seed: int = 42
    config_version: str = "v1"

    def validate(self) -> None:
        _require(self.rows > 0 and self.cols > 0, f"grid dimensions must be positive, got {self.rows}x{self.cols}")
        _require(isinstance(self.diffusion_mode, DiffusionMode), f"unknown diffusion mode {self.diffusion_mode!r}")
        _require_rate("population_fraction", self.population_fraction)
        _require_rate("evaporation_rate", self.evaporation_rate)
        _require_rate("diffusion_rate", self.diffusion_rate)
        _require_non_negative("agent_speed", self.agent_speed)
        _require_non_negative("deposit_amount", self.deposit_amount)
        _require_non_negative("sensor_range", self.sensor_range)
        _require_non_negative("nutrient_emission", self.nutrient_emission)
        _require(self.hazard_margin >= 0, f"hazard_margin must be non-negative, got {self.hazard_margin}")
        # Sensor probes must stay within one extent of the grid for the wrap to hold.
        _require(
            self.sensor_range + 1.0 < min(self.rows, self.cols),
            f"sensor_range {self.sensor_range} does not fit a {self.rows}x{self.cols} grid",
        )
        _require(
            self.agent_speed + 1.0 < min(self.rows, self.cols),
            f"agent_speed {self.agent_speed} does not fit a {self.rows}x{self.cols} grid",
        )
        for row, col in self.nutrient_sources:
            _require(
                0 <= row < self.rows and 0 <= col < self.cols,
                f"nutrient source ({row}, {col}) lies outside the {self.rows}x{self.cols} grid",
            )
        if self.initial_population is not None:
            _require(self.initial_population >= 0, "initial_population must be non-negative")
            _require(
                self.initial_population <= self.seedable_cells,
                f"initial_population {self.initial_population} exceeds {self.seedable_cells} seedable cells",
            )

    @property
    def seedable_cells(self) -> int:
        rows = max(0, self.rows - 2 * self.hazard_margin)
        cols = max(0, self.cols - 2 * self.hazard_margin)
        return rows * cols

    @staticmethod
    def from_yaml(path: Path) -> "PlasmodiumConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_plasmodium_config(data)


@dataclass(frozen=True)
class SwarmConfig:
    world_size: int = 80
    n_agents: int = 640
    landscape: Landscape = Landscape.VALLEYS
    neighbour_radius: float = 8.0
    speed: float = 1.0
    cell_size: float = 8.0
    seed: int = 42
    config_version: str = "v1"

    def validate(self) -> None:
        _require(self.world_size > 2, f"world_size must be greater than 2, got {self.world_size}")
        _require(isinstance(self.landscape, Landscape), f"unknown landscape {self.landscape!r}")
        _require(self.n_agents >= 0, "n_agents must be non-negative")
        _require_non_negative("neighbour_radius", self.neighbour_radius)
        _require_non_negative("speed", self.speed)
        _require(self.speed + 1.0 < self.world_size, f"speed {self.speed} does not fit world_size {self.world_size}")
        _require(self.cell_size > 0, f"cell_size must be positive, got {self.cell_size}")


@dataclass(frozen=True)
class CollectiveConfig:
    world_size: int = 40
    n_particles: int = 50
    particle_speed: float = 1.0
    ring_radius: float = 10.0
    move_probability: float = 0.1
    max_turn: float = 5.0
    seed: int = 42
    config_version: str = "v1"

    def validate(self) -> None:
        _require(self.world_size > 0, f"world_size must be positive, got {self.world_size}")
        _require(self.n_particles >= 0, "n_particles must be non-negative")
        _require_non_negative("particle_speed", self.particle_speed)
        _require(self.ring_radius > 0, f"ring_radius must be positive, got {self.ring_radius}")
        _require_rate("move_probability", self.move_probability)
        _require_non_negative("max_turn", self.max_turn)


@dataclass(frozen=True)
class AppConfig:
    model: ModelKind = ModelKind.PLASMODIUM
    plasmodium: PlasmodiumConfig = field(default_factory=PlasmodiumConfig)
    swarm: SwarmConfig = field(default_factory=SwarmConfig)
    collective: CollectiveConfig = field(default_factory=CollectiveConfig)
    broadcast_interval: int = 2
    tick_interval: float = 0.05

    @property
    def active(self) -> PlasmodiumConfig | SwarmConfig | CollectiveConfig:
        return getattr(self, self.model.value)

    @staticmethod
    def from_yaml(path: Path) -> "AppConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def _parse_enum(enum_type: type[Enum], value: object) -> Enum:
    try:
        return enum_type(value)
    except ValueError as exc:
        raise InvalidConfiguration(f"unknown {enum_type.__name__} value {value!r}") from exc


def load_plasmodium_config(raw: dict) -> PlasmodiumConfig:
    values = dict(raw)
    if "diffusion_mode" in values:
        values["diffusion_mode"] = _parse_enum(DiffusionMode, values["diffusion_mode"])
    if "nutrient_sources" in values:
        values["nutrient_sources"] = tuple((int(row), int(col)) for row, col in values["nutrient_sources"] or [])
    return PlasmodiumConfig(**values)


def load_swarm_config(raw: dict) -> SwarmConfig:
    values = dict(raw)
    if "landscape" in values:
        values["landscape"] = _parse_enum(Landscape, values["landscape"])
    return SwarmConfig(**values)


def load_collective_config(raw: dict) -> CollectiveConfig:
    return CollectiveConfig(**raw)


def load_config(raw: dict) -> AppConfig:
    app_values = {
        k: v for k, v in raw.items() if k not in {"model", "plasmodium", "swarm", "collective"}
    }
    return AppConfig(
        model=_parse_enum(ModelKind, raw.get("model", ModelKind.PLASMODIUM.value)),
        plasmodium=load_plasmodium_config(raw.get("plasmodium", {})),
        swarm=load_swarm_config(raw.get("swarm", {})),
        collective=load_collective_config(raw.get("collective", {})),
        **app_values,
    )


def with_seed(config: AppConfig, seed: int) -> AppConfig:
    section = replace(config.active, seed=seed)
    return replace(config, **{config.model.value: section})
