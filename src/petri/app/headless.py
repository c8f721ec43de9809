from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Optional

from pygame.math import Vector2

from ..config import AppConfig, ModelKind, load_config, with_seed
from ..sim.factory import World, build_world
from ..sim.types.metrics import TickMetrics

log = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "population",
    "moved",
    "blocked",
    "turns",
    "field_total",
    "field_peak",
    "mean_value",
    "mean_distance",
    "tick_ms",
]

_DETAILED_HEADER = _BASIC_HEADER + [
    "moved_ratio",
    "blocked_ratio",
    "turn_ratio",
    "tick_ms_per_agent",
    "field_mean",
    "heading_order",
]


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.moved,
        metrics.blocked,
        metrics.turns,
        f"{metrics.field_total:.4f}",
        f"{metrics.field_peak:.4f}",
        f"{metrics.mean_value:.4f}",
        f"{metrics.mean_distance:.4f}",
        f"{tick_ms:.3f}",
    ]


def _heading_order(world: World) -> float:
    """Length of the mean heading: 1 when all agents align, near 0 when they scatter."""
    if not world.agents:
        return 0.0
    total = Vector2()
    for agent in world.agents:
        total += agent.heading
    return total.length() / len(world.agents)


def _format_detailed_row(world: World, metrics: TickMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    if population <= 0:
        moved_ratio = 0.0
        blocked_ratio = 0.0
        turn_ratio = 0.0
        tick_ms_per_agent = 0.0
    else:
        moved_ratio = metrics.moved / population
        blocked_ratio = metrics.blocked / population
        turn_ratio = metrics.turns / population
        tick_ms_per_agent = tick_ms / population

    rows = getattr(world.config, "rows", None) or getattr(world.config, "world_size", 0)
    cols = getattr(world.config, "cols", None) or getattr(world.config, "world_size", 0)
    cells = rows * cols
    field_mean = metrics.field_total / cells if cells > 0 else 0.0

    return _format_basic_row(metrics, tick_ms) + [
        f"{moved_ratio:.4f}",
        f"{blocked_ratio:.4f}",
        f"{turn_ratio:.4f}",
        f"{tick_ms_per_agent:.4f}",
        f"{field_mean:.6f}",
        f"{_heading_order(world):.4f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def _correlation(xs: list[float], ys: list[float]) -> float:
    if len(xs) != len(ys) or len(xs) < 2:
        return 0.0
    mean_x = sum(xs) / len(xs)
    mean_y = sum(ys) / len(ys)
    num = 0.0
    denom_x = 0.0
    denom_y = 0.0
    for x, y in zip(xs, ys):
        dx = x - mean_x
        dy = y - mean_y
        num += dx * dy
        denom_x += dx * dx
        denom_y += dy * dy
    denom = math.sqrt(denom_x * denom_y)
    if denom == 0.0:
        return 0.0
    return float(num / denom)


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 5000,
    model: str | None = None,
    config: AppConfig | None = None,
) -> World:
    config = config if config is not None else AppConfig()
    if model is not None:
        try:
            kind = ModelKind(model)
        except ValueError as exc:
            raise ValueError(f"Unknown model: {model}") from exc
        config = replace(config, model=kind)
    if seed is not None:
        config = with_seed(config, seed)

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    world = build_world(config)
    log.info("running %s model for %d steps", config.model.value, steps)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    field_total_series: list[float] = []
    mean_value_series: list[float] = []
    mean_distance_series: list[float] = []
    moved_series: list[float] = []
    max_tick_ms = (-1.0, -1)
    max_field_peak = (-math.inf, -1)

    try:
        for tick in range(steps):
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                field_total_series.append(metrics.field_total)
                mean_value_series.append(metrics.mean_value)
                mean_distance_series.append(metrics.mean_distance)
                moved_series.append(float(metrics.moved))
                if tick_ms > max_tick_ms[0]:
                    max_tick_ms = (tick_ms, tick)
                if metrics.field_peak > max_field_peak[0]:
                    max_field_peak = (metrics.field_peak, tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "model": config.model.value,
            "steps": steps,
            "seed": config.active.seed,
            "population": len(world.agents),
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "field_total": _summary_stats(field_total_series),
            "mean_value": _summary_stats(mean_value_series),
            "mean_distance": _summary_stats(mean_distance_series),
            "moved": _summary_stats(moved_series),
            "correlations": {
                "tick_ms_vs_moved": _correlation(tick_ms_series, moved_series),
            },
            "peaks": {
                "tick_ms": {"value": float(max_tick_ms[0]), "tick": max_tick_ms[1]},
                "field_peak": {
                    "value": float(max_field_peak[0]) if max_field_peak[1] >= 0 else 0.0,
                    "tick": max_field_peak[1],
                },
            },
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "field_total": _summary_stats(field_total_series[tail_slice]),
                "mean_value": _summary_stats(mean_value_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
        log.info("summary written to %s", summary_path)

    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless agent-based model runner")
    parser.add_argument("--model", choices=[kind.value for kind in ModelKind], default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--steps", type=int, default=500)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=5000,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    config = AppConfig.from_yaml(args.config) if args.config else load_config({})
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        model=args.model,
        config=config,
    )


if __name__ == "__main__":
    main()
