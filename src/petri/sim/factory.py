from __future__ import annotations

from typing import Union

from ..config import AppConfig, CollectiveConfig, ModelKind, PlasmodiumConfig, SwarmConfig
from .core import world as plasmodium
from .models import collective, swarm

World = Union[plasmodium.PlasmodiumWorld, swarm.SwarmWorld, collective.CollectiveWorld]


def build_world(config: AppConfig) -> World:
    """Fresh world for the active model; hosts call this on start and on reset."""
    active = config.active
    if config.model is ModelKind.PLASMODIUM and isinstance(active, PlasmodiumConfig):
        return plasmodium.reinitialize(active)
    if config.model is ModelKind.SWARM and isinstance(active, SwarmConfig):
        return swarm.reinitialize(active)
    if config.model is ModelKind.COLLECTIVE and isinstance(active, CollectiveConfig):
        return collective.reinitialize(active)
    raise ValueError(f"Unknown model: {config.model!r}")
