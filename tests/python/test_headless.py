import csv
import json

import pytest

from petri.app.headless import run_headless
from petri.config import AppConfig, CollectiveConfig, PlasmodiumConfig, SwarmConfig

BASIC_HEADER = [
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


def _small_config() -> AppConfig:
    return AppConfig(
        plasmodium=PlasmodiumConfig(
            rows=30,
            cols=30,
            hazard_margin=5,
            population_fraction=0.2,
            sensor_range=5.0,
            nutrient_sources=((15, 15),),
        ),
        swarm=SwarmConfig(world_size=20, n_agents=25, neighbour_radius=4.0, cell_size=4.0),
        collective=CollectiveConfig(world_size=30, n_particles=12, ring_radius=8.0),
    )


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_basic_log_header(tmp_path):
    log_path = tmp_path / "basic.csv"
    run_headless(steps=2, seed=1, log_path=log_path, deterministic_log=True, log_format="basic", config=_small_config())
    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[0] == BASIC_HEADER
    assert rows[1][0] == "0"
    assert rows[2][-1] == "0.000"


def test_headless_detailed_log_header_and_ratios(tmp_path):
    log_path = tmp_path / "detailed.csv"
    world = run_headless(
        steps=3, seed=2, log_path=log_path, deterministic_log=True, log_format="detailed", config=_small_config()
    )
    rows = _read_csv(log_path)
    assert len(rows) == 4
    header = rows[0]
    assert header == BASIC_HEADER + [
        "moved_ratio",
        "blocked_ratio",
        "turn_ratio",
        "tick_ms_per_agent",
        "field_mean",
        "heading_order",
    ]

    last_row = rows[-1]
    idx = {name: i for i, name in enumerate(header)}
    population = int(last_row[idx["population"]])
    moved = int(last_row[idx["moved"]])
    blocked = int(last_row[idx["blocked"]])
    assert population == len(world.agents)
    assert moved + blocked == population
    assert float(last_row[idx["moved_ratio"]]) == pytest.approx(moved / population, abs=1e-4)
    assert float(last_row[idx["blocked_ratio"]]) == pytest.approx(blocked / population, abs=1e-4)
    assert float(last_row[idx["field_mean"]]) == pytest.approx(float(last_row[idx["field_total"]]) / 900, abs=1e-4)
    assert 0.0 <= float(last_row[idx["heading_order"]]) <= 1.0
    assert float(last_row[idx["tick_ms"]]) == 0.0


def test_headless_summary_output(tmp_path):
    log_path = tmp_path / "summary.csv"
    summary_path = tmp_path / "summary.json"
    run_headless(
        steps=4,
        seed=3,
        log_path=log_path,
        deterministic_log=True,
        log_format="basic",
        summary_path=summary_path,
        summary_window=2,
        config=_small_config(),
    )
    payload = json.loads(summary_path.read_text())
    assert payload["model"] == "plasmodium"
    assert payload["steps"] == 4
    assert payload["seed"] == 3
    assert payload["log_format"] == "basic"
    assert "tick_ms" in payload
    assert "field_total" in payload
    assert payload["peaks"]["field_peak"]["tick"] >= 0
    assert payload["tail_window"]["window"] == 2


def test_deterministic_logs_match_for_equal_seeds(tmp_path):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"
    for path in (first, second):
        run_headless(steps=5, seed=9, log_path=path, deterministic_log=True, config=_small_config())
    assert first.read_text() == second.read_text()


@pytest.mark.parametrize("model", ["swarm", "collective"])
def test_headless_runs_other_models(tmp_path, model):
    summary_path = tmp_path / f"{model}.json"
    world = run_headless(
        steps=3,
        seed=4,
        log_path=tmp_path / f"{model}.csv",
        deterministic_log=True,
        summary_path=summary_path,
        model=model,
        config=_small_config(),
    )
    payload = json.loads(summary_path.read_text())
    assert payload["model"] == model
    assert payload["seed"] == 4
    assert world.config.seed == 4


def test_headless_rejects_unknown_options(tmp_path):
    with pytest.raises(ValueError):
        run_headless(steps=1, seed=1, log_path=None, log_format="verbose", config=_small_config())
    with pytest.raises(ValueError):
        run_headless(steps=1, seed=1, log_path=None, model="ants", config=_small_config())
