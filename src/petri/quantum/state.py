"""Qubit states as normalized complex amplitude vectors.

Amplitudes are indexed from 0. A state can also be indexed by a bit pattern,
most significant bit first, so ``state[1, 0]`` is the amplitude of ``|10>``.
"""

from __future__ import annotations

import math
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from ..errors import InvalidState
from ..rng import DeterministicRng
from .bits import bits2dec, bits2str, bitsvec
from .tensor import isclose

Key = Union[int, Sequence[int]]


class State:
    __slots__ = ("_amp",)

    def __init__(self, amp: Sequence[complex] | np.ndarray):
        vector = np.array(amp, dtype=complex)
        if vector.ndim != 1 or vector.size == 0:
            raise InvalidState(f"State amplitudes must be a non-empty vector, got shape {vector.shape}")
        if isclose(vector, 0.0):
            raise InvalidState("State vectors must be non-zero")
        self._amp = vector / np.linalg.norm(vector)
        self._amp.flags.writeable = False

    @property
    def amp(self) -> np.ndarray:
        return self._amp

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        if dtype is None:
            return self._amp.copy()
        return self._amp.astype(dtype)

    def __len__(self) -> int:
        return len(self._amp)

    def __iter__(self) -> Iterator[complex]:
        return iter(self._amp)

    def __getitem__(self, key: Key) -> complex:
        return complex(self._amp[self._index(key)])

    def nbits(self) -> int:
        return int(math.log2(len(self._amp)))

    def phase(self, *key: int | Sequence[int]) -> float:
        return float(np.angle(self[self._unpack(key)]))

    def prob(self, *key: int | Sequence[int]) -> float:
        amplitude = self[self._unpack(key)]
        return float((amplitude.conjugate() * amplitude).real)

    def maxprob(self) -> Tuple[int, float]:
        """Index and probability of the most likely amplitude."""
        best_index, best_prob = -1, 0.0
        for index in range(len(self._amp)):
            this_prob = self.prob(index)
            if this_prob > best_prob:
                best_index, best_prob = index, this_prob
        return best_index, best_prob

    def density(self) -> np.ndarray:
        return np.outer(self._amp, self._amp.conj())

    def kron(self, other: "State") -> "State":
        return State(np.kron(self._amp, other._amp))

    def describe(self) -> str:
        nbits = self.nbits()
        lines = [f"{nbits}-bit, {len(self)}-amplitude State:"]
        for bits in bitsvec(nbits):
            amplitude = self[bits]
            lines.append(
                f" {bits2str(bits)} : {_round(amplitude):<18}"
                f": prob={round(abs(amplitude) ** 2, 4):<7}"
                f": phase={round(float(np.angle(amplitude)), 4)}"
            )
        return "\n".join(lines)

    def __str__(self) -> str:
        return f"State{{{self.nbits()}}}[" + ", ".join(_round(a) for a in self._amp) + "]"

    def __repr__(self) -> str:
        return str(self)

    def _index(self, key: Key) -> int:
        if isinstance(key, (int, np.integer)) and not isinstance(key, bool):
            return int(key)
        bits = tuple(key)
        if len(bits) != self.nbits():
            raise IndexError(f"expected {self.nbits()} bits, got {len(bits)}")
        return bits2dec(bits)

    @staticmethod
    def _unpack(key: tuple) -> Key:
        if len(key) == 1:
            return key[0]
        return key


def _round(value: complex) -> str:
    return str(complex(round(value.real, 4), round(value.imag, 4)))


def pure(d: int = 1, i: int = 0) -> State:
    """``d``-qubit state that is pure in amplitude ``i``."""
    if d < 1:
        raise InvalidState("Rank must be at least 1")
    amp = np.zeros(1 << d, dtype=complex)
    amp[i] = 1.0
    return State(amp)


def off(d: int = 1) -> State:
    return pure(d, 0)


def on(d: int = 1) -> State:
    return pure(d, (1 << d) - 1)


def bitvec(*bits: int | Sequence[int]) -> State:
    if len(bits) == 1 and not isinstance(bits[0], (int, np.integer)):
        bits = tuple(bits[0])
    return pure(len(bits), bits2dec(bits))


def random_state(n: int, rng: DeterministicRng) -> State:
    """A random basis state of ``n`` qubits."""
    return bitvec(tuple(int(rng.next_bool()) for _ in range(n)))


def qubit(alpha: Optional[complex] = None, beta: Optional[complex] = None) -> State:
    """Single-qubit state; a missing amplitude is completed to unit norm."""
    if alpha is None and beta is None:
        raise InvalidState("alpha, beta or both are required.")
    if beta is None:
        beta = _complement(alpha)
    elif alpha is None:
        alpha = _complement(beta)
    return State([alpha, beta])


def _complement(amplitude: complex) -> float:
    remainder = 1.0 - abs(amplitude) ** 2
    if remainder < -1e-12:
        raise InvalidState(f"amplitude {amplitude} has magnitude above 1")
    return math.sqrt(max(0.0, remainder))


OFF = off(1)
ON = on(1)
