from __future__ import annotations

from typing import Any

import numpy as np


def kron(left: Any, right: Any) -> Any:
    """Kronecker product; States and Operators keep their own type."""
    if hasattr(left, "kron") and type(left) is type(right):
        return left.kron(right)
    return np.kron(np.asarray(left), np.asarray(right))


def kpow(tensor: Any, n: int) -> Any:
    """Kronecker ``tensor`` with itself ``n`` times; ``kpow(t, 0)`` is the scalar 1.0."""
    if n < 0:
        raise ValueError(f"Kronecker power must be non-negative, got {n}")
    if n == 0:
        return 1.0
    result = tensor
    for _ in range(n - 1):
        result = kron(result, tensor)
    return result


def isclose(left: Any, right: Any, atol: float = 1e-6) -> bool:
    return bool(np.all(np.abs(np.asarray(left) - np.asarray(right)) < atol))
