from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from petri.config import CollectiveConfig
from petri.sim.models.collective import CollectiveWorld, reinitialize


def ring(**overrides) -> CollectiveConfig:
    values = dict(world_size=40, n_particles=20, ring_radius=10.0, seed=3)
    values.update(overrides)
    return CollectiveConfig(**values)


def test_turtles_start_on_the_ring_heading_along_its_tangent():
    world = CollectiveWorld(ring())
    center = world.center
    assert center == Vector2(20.0, 20.0)
    for turtle in world.agents:
        assert turtle.distance == approx(10.0)
        assert abs(turtle.heading.length() - 1.0) < 1e-9
        assert turtle.heading.dot(turtle.position - center) == approx(0.0, abs=1e-6)
    assert world.mean_distance == approx(10.0)


def test_certain_moves_without_turning_go_straight():
    world = CollectiveWorld(ring(move_probability=1.0, max_turn=0.0))
    before = [(Vector2(t.position), Vector2(t.heading)) for t in world.agents]
    metrics = world.step(0)
    assert metrics.moved == 20
    for turtle, (position, heading) in zip(world.agents, before):
        assert turtle.position.distance_to(position) == approx(1.0)
        assert turtle.heading.x == approx(heading.x)
        assert turtle.heading.y == approx(heading.y)
        assert turtle.distance == approx(turtle.position.distance_to(world.center))


def test_turns_stay_within_max_turn():
    world = CollectiveWorld(ring(move_probability=1.0, max_turn=5.0))
    before = [Vector2(t.heading) for t in world.agents]
    world.step(0)
    for turtle, heading in zip(world.agents, before):
        angle = (heading.angle_to(turtle.heading) + 180.0) % 360.0 - 180.0
        assert -1e-6 <= angle <= 5.0 + 1e-6


def test_no_moves_keep_the_mean_distance():
    world = CollectiveWorld(ring(move_probability=0.0))
    metrics = world.step(0)
    assert metrics.moved == 0
    assert metrics.mean_distance == approx(10.0)


def test_mean_distance_matches_turtles():
    world = CollectiveWorld(ring(move_probability=0.5))
    for tick in range(30):
        metrics = world.step(tick)
    expected = sum(t.position.distance_to(world.center) for t in world.agents) / len(world.agents)
    assert metrics.mean_distance == approx(expected)
    assert metrics.mean_value == approx(expected)


def test_snapshot_has_no_field():
    world = reinitialize(ring())
    snapshot = world.snapshot(0)
    assert snapshot.field is None
    assert snapshot.field_payload() is None
    assert snapshot.metadata.model == "collective"
    assert snapshot.agents[0]["kind"] == "Turtle"
