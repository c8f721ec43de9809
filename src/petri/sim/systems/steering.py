from __future__ import annotations

from enum import Enum

from pygame.math import Vector2

from ...rng import DeterministicRng
from ..utils.math2d import rotate_normalized
from .sensing import Sniff


class TurnDecision(str, Enum):
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"


def turn_right(heading: Vector2, angle: float) -> Vector2:
    return rotate_normalized(heading, -angle)


def turn_left(heading: Vector2, angle: float) -> Vector2:
    return rotate_normalized(heading, angle)


def decide_turn(sniff: Sniff, rng: DeterministicRng) -> TurnDecision:
    """Pick the side whose probe beats the one straight ahead.

    When both sides beat it a coin flip settles the direction.
    """
    relative_right = sniff.right - sniff.ahead
    relative_left = sniff.left - sniff.ahead
    if relative_left <= 0.0 and relative_right <= 0.0:
        return TurnDecision.NONE
    if relative_left > 0.0 and relative_right > 0.0:
        return TurnDecision.RIGHT if rng.next_bool() else TurnDecision.LEFT
    if relative_left > 0.0:
        return TurnDecision.LEFT
    return TurnDecision.RIGHT


def apply_turn(heading: Vector2, decision: TurnDecision, wiggle: float) -> Vector2:
    if decision is TurnDecision.LEFT:
        return turn_left(heading, wiggle)
    if decision is TurnDecision.RIGHT:
        return turn_right(heading, wiggle)
    return heading


def steer(heading: Vector2, sniff: Sniff, wiggle: float, rng: DeterministicRng) -> tuple[Vector2, TurnDecision]:
    decision = decide_turn(sniff, rng)
    return apply_turn(heading, decision, wiggle), decision
