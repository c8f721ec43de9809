from __future__ import annotations

import math
from typing import Sequence, Tuple, Union, overload

import numpy as np

from ..errors import InvalidOperator
from .state import State
from .tensor import isclose, kpow

_IDENTITY = np.array([[1, 0], [0, 1]], dtype=complex)
_PAULI_X = np.array([[0, 1], [1, 0]], dtype=complex)
_PAULI_Y = np.array([[0, -1j], [1j, 0]], dtype=complex)
_PAULI_Z = np.array([[1, 0], [0, -1]], dtype=complex)


class Operator:
    """A complex matrix acting on qubit States.

    ``op @ other`` is the plain matrix product. Calling an operator embeds it
    at a bit position first: ``op(state, idx)`` applies ``op`` starting at
    bit ``idx`` (0-based, most significant first), padding with identities,
    and ``op(other, idx)`` composes "``op`` then ``other``".
    """

    __slots__ = ("_matrix",)

    def __init__(self, matrix: Sequence[Sequence[complex]] | np.ndarray):
        array = np.array(matrix, dtype=complex)
        if array.ndim != 2 or array.shape[0] != array.shape[1]:
            raise InvalidOperator(f"Operators must be square matrices, got shape {array.shape}")
        if isclose(array, 0.0):
            raise InvalidOperator("Operators must be non-zero")
        self._matrix = array
        self._matrix.flags.writeable = False

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix

    @property
    def shape(self) -> Tuple[int, int]:
        return self._matrix.shape

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        if dtype is None:
            return self._matrix.copy()
        return self._matrix.astype(dtype)

    def __getitem__(self, key: Tuple[int, int]) -> complex:
        return complex(self._matrix[key])

    def nbits(self) -> int:
        return int(math.log2(self._matrix.shape[0]))

    def kron(self, other: "Operator") -> "Operator":
        return Operator(np.kron(self._matrix, other._matrix))

    def adjoint(self) -> "Operator":
        return Operator(self._matrix.conj().T)

    @overload
    def __matmul__(self, other: "Operator") -> "Operator": ...

    @overload
    def __matmul__(self, other: State) -> State: ...

    def __matmul__(self, other: Union["Operator", State]) -> Union["Operator", State]:
        if isinstance(other, State):
            return State(self._matrix @ other.amp)
        if isinstance(other, Operator):
            return Operator(self._matrix @ other._matrix)
        return NotImplemented

    def __call__(self, target: Union["Operator", State], idx: int = 0) -> Union["Operator", State]:
        if isinstance(target, State):
            return self.apply(target, idx)
        return self.compose(target, idx)

    def apply(self, state: State, idx: int = 0) -> State:
        op = self
        if idx > 0:
            op = identity(idx).kron(op)
        remaining = state.nbits() - op.nbits()
        if remaining < 0:
            raise InvalidOperator(
                f"a {self.nbits()}-bit operator at bit {idx} does not fit a {state.nbits()}-bit state"
            )
        if remaining > 0:
            op = op.kron(identity(remaining))
        return op @ state

    def compose(self, other: "Operator", idx: int = 0) -> "Operator":
        """This operator followed by ``other`` placed at bit ``idx``."""
        if idx > 0:
            other = identity(idx).kron(other)
        if self.nbits() > other.nbits():
            other = other.kron(identity(self.nbits() - other.nbits()))
        return other @ self

    def ishermitian(self) -> bool:
        return isclose(self._matrix, self._matrix.conj().T)

    def isunitary(self) -> bool:
        return isclose(self._matrix @ self._matrix.conj().T, np.eye(self._matrix.shape[0]))

    def describe(self) -> str:
        lines = ["Operator:"]
        for row in self._matrix:
            lines.append(" " + "".join(f"{_round(value):<20}" for value in row))
        return "\n".join(lines)

    def __str__(self) -> str:
        return f"Operator: {np.round(self._matrix, 4).tolist()}"

    def __repr__(self) -> str:
        return str(self)


def _round(value: complex) -> str:
    return str(complex(round(value.real, 4), round(value.imag, 4)))


def identity(d: int = 1) -> Operator:
    return Operator(kpow(_IDENTITY, d))


def paulix(d: int = 1) -> Operator:
    return Operator(kpow(_PAULI_X, d))


def pauliy(d: int = 1) -> Operator:
    return Operator(kpow(_PAULI_Y, d))


def pauliz(d: int = 1) -> Operator:
    return Operator(kpow(_PAULI_Z, d))


PAULI_X = paulix()
PAULI_Y = pauliy()
PAULI_Z = pauliz()
