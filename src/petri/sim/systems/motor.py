from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.agent import PlasmodiumAgent
from ..utils.math2d import wrap_cell, wrap_position

if TYPE_CHECKING:
    from ..core.world import PlasmodiumWorld


def destination_cell(agent: PlasmodiumAgent, rows: int, cols: int) -> tuple[int, int]:
    return wrap_cell(
        agent.position.x + agent.heading.x * agent.speed,
        agent.position.y + agent.heading.y * agent.speed,
        rows,
        cols,
    )


def is_empty_patch(world: PlasmodiumWorld, agent: PlasmodiumAgent, cell: tuple[int, int]) -> bool:
    occupants = world._occupancy.get(cell)
    if not occupants:
        return True
    return all(other == agent.id for other in occupants)


def motor_phase(world: PlasmodiumWorld, agent: PlasmodiumAgent) -> bool:
    """Move ``agent`` one step and drop attractant, or reorient if blocked.

    Returns True when the agent moved.
    """
    field = world._field
    cell = destination_cell(agent, field.rows, field.cols)
    if not is_empty_patch(world, agent, cell):
        agent.heading = world._rng.next_unit_circle()
        return False

    world._vacate(agent)
    agent.position = wrap_position(agent.position + agent.heading * agent.speed, field.rows, field.cols)
    agent.cell = cell
    world._occupy(agent)
    field.values[cell] += world._config.deposit_amount
    return True
