from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from pygame.math import Vector2


class AgentKind(str, Enum):
    PLASMODIUM = "Plasmodium"
    BOID = "Boid"
    TURTLE = "Turtle"


class HeadedAgent(Protocol):
    """What the shared snapshot and metrics code needs from any agent kind."""

    id: int
    position: Vector2
    heading: Vector2

    @property
    def kind(self) -> AgentKind: ...

    @property
    def value(self) -> float: ...


@dataclass(slots=True)
class PlasmodiumAgent:
    id: int
    position: Vector2
    heading: Vector2
    speed: float = 1.0
    active: bool = True
    patch_value: float = 0.0
    cell: tuple[int, int] = (0, 0)
    kind: AgentKind = AgentKind.PLASMODIUM

    @property
    def value(self) -> float:
        return self.patch_value


@dataclass(slots=True)
class SwarmAgent:
    id: int
    position: Vector2
    heading: Vector2
    patch_value: float = 0.0
    kind: AgentKind = AgentKind.BOID

    @property
    def value(self) -> float:
        return self.patch_value


@dataclass(slots=True)
class Turtle:
    id: int
    position: Vector2
    heading: Vector2 = field(default_factory=lambda: Vector2(1.0, 0.0))
    distance: float = 0.0
    kind: AgentKind = AgentKind.TURTLE

    @property
    def value(self) -> float:
        return self.distance
