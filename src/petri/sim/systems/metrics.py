from __future__ import annotations

from typing import Any, Dict, Sequence

from ..core.agent import HeadedAgent
from ..core.field import Field
from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    agents: Sequence[HeadedAgent],
    moved: int,
    blocked: int,
    turns: int,
    duration_ms: float,
    field: Field | None = None,
    mean_distance: float = 0.0,
) -> TickMetrics:
    population = len(agents)
    mean_value = 0.0 if population == 0 else sum(agent.value for agent in agents) / population
    return TickMetrics(
        tick=tick,
        population=population,
        moved=moved,
        blocked=blocked,
        turns=turns,
        field_total=0.0 if field is None else field.total(),
        field_peak=0.0 if field is None else field.peak(),
        mean_value=mean_value,
        mean_distance=mean_distance,
        tick_duration_ms=duration_ms,
    )


def agent_snapshot(agent: HeadedAgent) -> Dict[str, Any]:
    return {
        "id": agent.id,
        "kind": agent.kind.value,
        "x": agent.position.x,
        "y": agent.position.y,
        "hx": agent.heading.x,
        "hy": agent.heading.y,
        "active": getattr(agent, "active", True),
        "value": agent.value,
    }
