from __future__ import annotations

import math
import random
from typing import MutableSequence, TypeVar

from pygame.math import Vector2

T = TypeVar("T")


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_int(self, max_value: int) -> int:
        return self._random.randrange(max_value)

    def next_bool(self) -> bool:
        return self._random.random() < 0.5

    def next_unit_circle(self) -> Vector2:
        angle = self._random.uniform(0, 2 * math.pi)
        vector = Vector2()
        vector.from_polar((1, math.degrees(angle)))
        return vector

    def shuffle(self, items: MutableSequence[T]) -> None:
        self._random.shuffle(items)

    def sample_indices(self, population: int, count: int) -> list[int]:
        return self._random.sample(range(population), count)
