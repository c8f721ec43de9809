from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from petri.rng import DeterministicRng
from petri.sim.core.agent import PlasmodiumAgent
from petri.sim.core.field import Field
from petri.sim.systems.sensing import Sniff, sense
from petri.sim.systems.steering import TurnDecision, apply_turn, decide_turn, steer


def _agent_at_origin() -> PlasmodiumAgent:
    return PlasmodiumAgent(id=0, position=Vector2(0.0, 0.0), heading=Vector2(1.0, 0.0))


def test_probes_land_ahead_right_and_left_with_wraparound():
    field = Field(10, 10)
    field.values[3, 0] = 7.0
    field.values[0, 7] = 2.0
    field.values[0, 3] = 4.0

    sniff = sense(_agent_at_origin(), field, sensor_range=3.0, sensor_angle=90.0)

    assert sniff.ahead == 7.0
    assert sniff.right == 2.0
    assert sniff.left == 4.0


def test_no_turn_when_ahead_is_at_least_as_strong():
    rng = DeterministicRng(1)
    assert decide_turn(Sniff(ahead=5.0, right=5.0, left=1.0), rng) is TurnDecision.NONE
    assert decide_turn(Sniff(ahead=0.0, right=0.0, left=0.0), rng) is TurnDecision.NONE


def test_turns_toward_the_only_stronger_side():
    rng = DeterministicRng(1)
    assert decide_turn(Sniff(ahead=1.0, right=0.5, left=3.0), rng) is TurnDecision.LEFT
    assert decide_turn(Sniff(ahead=1.0, right=3.0, left=0.5), rng) is TurnDecision.RIGHT


def test_tie_break_between_two_stronger_sides_is_a_fair_coin():
    rng = DeterministicRng(2024)
    trials = 10_000
    sniff = Sniff(ahead=0.0, right=1.0, left=1.0)
    right = sum(1 for _ in range(trials) if decide_turn(sniff, rng) is TurnDecision.RIGHT)
    left = trials - right
    expected = trials / 2
    chi_square = ((right - expected) ** 2 + (left - expected) ** 2) / expected
    # 6.635 is the 1% critical value for one degree of freedom.
    assert chi_square < 6.635


def test_apply_turn_rotates_by_wiggle():
    heading = Vector2(1.0, 0.0)
    left = apply_turn(heading, TurnDecision.LEFT, 90.0)
    right = apply_turn(heading, TurnDecision.RIGHT, 90.0)
    assert left.y == approx(1.0)
    assert right.y == approx(-1.0)
    assert apply_turn(heading, TurnDecision.NONE, 90.0) == heading


def test_steer_reports_decision_and_keeps_unit_heading():
    rng = DeterministicRng(3)
    heading, decision = steer(Vector2(0.6, 0.8), Sniff(ahead=0.0, right=2.0, left=0.0), 60.0, rng)
    assert decision is TurnDecision.RIGHT
    assert abs(heading.length() - 1.0) < 1e-9
