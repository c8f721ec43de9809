from __future__ import annotations

from typing import NamedTuple

from pygame.math import Vector2

from ..core.agent import PlasmodiumAgent
from ..core.field import Field
from ..utils.math2d import rotate_normalized, wrap_cell


class Sniff(NamedTuple):
    ahead: float
    right: float
    left: float


def probe(field: Field, position: Vector2, direction: Vector2, sensor_range: float) -> float:
    row, col = wrap_cell(
        position.x + direction.x * sensor_range,
        position.y + direction.y * sensor_range,
        field.rows,
        field.cols,
    )
    return float(field.values[row, col])


def sniff_ahead(agent: PlasmodiumAgent, field: Field, sensor_range: float) -> float:
    return probe(field, agent.position, agent.heading, sensor_range)


def sniff_right(agent: PlasmodiumAgent, field: Field, sensor_range: float, sensor_angle: float) -> float:
    return probe(field, agent.position, rotate_normalized(agent.heading, -sensor_angle), sensor_range)


def sniff_left(agent: PlasmodiumAgent, field: Field, sensor_range: float, sensor_angle: float) -> float:
    return probe(field, agent.position, rotate_normalized(agent.heading, sensor_angle), sensor_range)


def sense(agent: PlasmodiumAgent, field: Field, sensor_range: float, sensor_angle: float) -> Sniff:
    return Sniff(
        ahead=sniff_ahead(agent, field, sensor_range),
        right=sniff_right(agent, field, sensor_range, sensor_angle),
        left=sniff_left(agent, field, sensor_range, sensor_angle),
    )
