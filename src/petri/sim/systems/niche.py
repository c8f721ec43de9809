from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.world import PlasmodiumWorld


def emit_nutrients(world: PlasmodiumWorld) -> None:
    config = world._config
    if config.nutrient_emission <= 0.0:
        return
    for row, col in config.nutrient_sources:
        world._field.deposit(row, col, config.nutrient_emission)


def niche_dynamics(world: PlasmodiumWorld) -> None:
    """Attractants are emitted, then diffuse and evaporate on every cell."""
    config = world._config
    emit_nutrients(world)
    world._field.diffuse(config.diffusion_rate, config.diffusion_mode)
    world._field.evaporate(config.evaporation_rate)
