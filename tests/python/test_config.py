from __future__ import annotations

from pathlib import Path

import pytest

from petri.config import (
    AppConfig,
    CollectiveConfig,
    DiffusionMode,
    Landscape,
    ModelKind,
    PlasmodiumConfig,
    SwarmConfig,
    load_config,
    with_seed,
)
from petri.errors import InvalidConfiguration
from petri.sim.factory import build_world

ROOT = Path(__file__).resolve().parents[2]


def test_yaml_sections_are_parsed(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text(
        "\n".join(
            [
                "model: swarm",
                "broadcast_interval: 5",
                "plasmodium:",
                "  rows: 40",
                "  cols: 50",
                "  diffusion_mode: sequential",
                "  nutrient_sources: [[1, 2], [3, 4]]",
                "swarm:",
                "  world_size: 30",
                "  landscape: dejong7",
                "collective:",
                "  n_particles: 7",
            ]
        )
    )
    config = AppConfig.from_yaml(path)

    assert config.model is ModelKind.SWARM
    assert config.broadcast_interval == 5
    assert config.plasmodium.rows == 40
    assert config.plasmodium.diffusion_mode is DiffusionMode.SEQUENTIAL
    assert config.plasmodium.nutrient_sources == ((1, 2), (3, 4))
    assert config.swarm.landscape is Landscape.DEJONG7
    assert config.collective.n_particles == 7
    assert config.active is config.swarm


def test_plasmodium_section_loads_on_its_own(tmp_path):
    path = tmp_path / "plasmodium.yaml"
    path.write_text("rows: 12\ncols: 12\nsensor_range: 4\nnutrient_sources: []\n")
    config = PlasmodiumConfig.from_yaml(path)
    assert config.rows == 12
    assert config.nutrient_sources == ()
    config.validate()


def test_empty_mapping_gives_defaults():
    config = load_config({})
    assert config == AppConfig()
    assert config.plasmodium.diffusion_mode is DiffusionMode.BUFFERED


def test_unknown_enum_values_are_rejected():
    with pytest.raises(InvalidConfiguration):
        load_config({"plasmodium": {"diffusion_mode": "diagonal"}})
    with pytest.raises(InvalidConfiguration):
        load_config({"model": "ants"})


def test_with_seed_only_touches_the_active_model():
    config = with_seed(AppConfig(model=ModelKind.COLLECTIVE), 77)
    assert config.collective.seed == 77
    assert config.plasmodium.seed == PlasmodiumConfig().seed


@pytest.mark.parametrize(
    "config",
    [
        PlasmodiumConfig(rows=0),
        PlasmodiumConfig(evaporation_rate=1.5),
        PlasmodiumConfig(diffusion_rate=-0.1),
        PlasmodiumConfig(deposit_amount=-1.0),
        PlasmodiumConfig(rows=20, cols=20, hazard_margin=5, initial_population=101, nutrient_sources=(), sensor_range=4.0),
        PlasmodiumConfig(rows=8, cols=8, sensor_range=9.0, nutrient_sources=()),
        SwarmConfig(world_size=2),
        SwarmConfig(cell_size=0.0),
        CollectiveConfig(move_probability=2.0),
        CollectiveConfig(world_size=0),
    ],
)
def test_invalid_values_fail_validation(config):
    with pytest.raises(InvalidConfiguration):
        config.validate()


def test_defaults_validate():
    PlasmodiumConfig().validate()
    SwarmConfig().validate()
    CollectiveConfig().validate()
    assert PlasmodiumConfig().seedable_cells == 160 * 160


@pytest.mark.config_change
@pytest.mark.parametrize("name", ["plasmodium.yaml", "swarm.yaml", "collective.yaml"])
def test_shipped_configs_build_worlds(name):
    config = AppConfig.from_yaml(ROOT / "configs" / name)
    world = build_world(config)
    metrics = world.step(0)
    assert metrics.population == len(world.agents)
