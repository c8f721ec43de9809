from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    moved: int
    blocked: int
    turns: int
    field_total: float
    field_peak: float
    mean_value: float
    mean_distance: float = 0.0
    tick_duration_ms: float = 0.0
