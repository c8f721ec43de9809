from __future__ import annotations


class InvalidVector(ValueError):
    """Raised when a heading cannot be built from the given components."""


class InvalidConfiguration(ValueError):
    """Raised when a model configuration is rejected at initialization."""


class InvalidState(ValueError):
    """Raised when amplitudes do not describe a qubit state."""


class InvalidOperator(ValueError):
    """Raised when a matrix cannot act as an operator on the given states."""
