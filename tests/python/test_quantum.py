from __future__ import annotations

import math

import numpy as np
import pytest
from pytest import approx

from petri.errors import InvalidOperator, InvalidState
from petri.quantum.bits import bits2dec, bits2str, bitsvec, dec2bits
from petri.quantum.operator import PAULI_X, PAULI_Y, PAULI_Z, Operator, identity, paulix
from petri.quantum.state import OFF, ON, State, bitvec, qubit, random_state
from petri.quantum.tensor import isclose, kpow, kron
from petri.rng import DeterministicRng


def test_bit_helpers():
    assert bits2dec((1, 0, 1)) == 5
    assert dec2bits(5, 3) == (1, 0, 1)
    assert bits2str((1, 0)) == "|10>=|2>"
    assert bitsvec(2) == [(0, 0), (0, 1), (1, 0), (1, 1)]
    with pytest.raises(ValueError):
        dec2bits(8, 3)


def test_states_are_normalized_and_read_only():
    state = State([3, 4])
    assert state.prob(0) == approx(0.36)
    assert state.prob(1) == approx(0.64)
    with pytest.raises(ValueError):
        state.amp[0] = 0


@pytest.mark.parametrize("amp", [[0, 0], [], [[1, 0], [0, 1]]])
def test_degenerate_states_are_rejected(amp):
    with pytest.raises(InvalidState):
        State(amp)


def test_bit_pattern_indexing():
    state = bitvec(1, 0)
    assert state.nbits() == 2
    assert state[1, 0] == 1
    assert state.prob(1, 0) == approx(1.0)
    assert state.prob(2) == approx(1.0)
    assert bitvec(1, 1).maxprob() == (3, approx(1.0))


def test_qubit_completes_missing_amplitude():
    state = qubit(alpha=1 / math.sqrt(2))
    assert state.prob(0) == approx(0.5)
    assert state.prob(1) == approx(0.5)
    assert qubit(beta=1.0).prob(1) == approx(1.0)
    with pytest.raises(InvalidState):
        qubit()
    with pytest.raises(InvalidState):
        qubit(alpha=2.0)


def test_kron_keeps_types():
    joined = kron(OFF, ON)
    assert isinstance(joined, State)
    assert isclose(joined.amp, bitvec(0, 1).amp)
    assert identity(2).shape == (4, 4)
    assert isinstance(kpow(PAULI_X, 2), Operator)
    assert kpow(PAULI_X, 0) == 1.0
    with pytest.raises(ValueError):
        kpow(PAULI_X, -1)


def test_pauli_x_flips_bits():
    assert isclose((PAULI_X @ OFF).amp, ON.amp)
    assert isclose(PAULI_X(bitvec(0, 0), 1).amp, bitvec(0, 1).amp)
    assert isclose(PAULI_X(bitvec(0, 0)).amp, bitvec(1, 0).amp)


def test_operator_too_wide_for_state_is_rejected():
    with pytest.raises(InvalidOperator):
        paulix(2)(OFF)


def test_compose_applies_self_first():
    composed = PAULI_X(PAULI_Z)
    assert isclose(composed.matrix, PAULI_Z.matrix @ PAULI_X.matrix)


@pytest.mark.parametrize("operator", [PAULI_X, PAULI_Y, PAULI_Z, identity(2)])
def test_paulis_are_hermitian_and_unitary(operator):
    assert operator.ishermitian()
    assert operator.isunitary()


def test_non_unitary_and_malformed_operators():
    assert not Operator([[1, 2], [3, 4]]).isunitary()
    with pytest.raises(InvalidOperator):
        Operator([[1, 0, 0], [0, 1, 0]])
    with pytest.raises(InvalidOperator):
        Operator(np.zeros((2, 2)))


def test_random_state_is_a_basis_state():
    state = random_state(3, DeterministicRng(1))
    assert len(state) == 8
    assert state.maxprob()[1] == approx(1.0)


def test_density_matrix_has_unit_trace():
    state = qubit(alpha=0.6)
    density = state.density()
    assert np.trace(density).real == approx(1.0)
    assert isclose(density, density.conj().T)


def test_descriptions():
    assert str(OFF).startswith("State{1}[")
    assert "|0>=|0>" in OFF.describe()
    assert PAULI_X.describe().startswith("Operator:")


def test_qubit_errors_are_documented_value_errors():
    for error in (InvalidState, InvalidOperator):
        assert issubclass(error, ValueError)
        assert error.__doc__ and error.__doc__.strip()
