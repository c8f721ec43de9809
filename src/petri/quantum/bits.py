from __future__ import annotations

from typing import List, Sequence, Tuple


def bits2dec(bits: Sequence[int]) -> int:
    """Decimal value of ``bits``, most significant bit first."""
    value = 0
    for bit in bits:
        value = (value << 1) | (1 if bit else 0)
    return value


def dec2bits(dec: int, nbits: int) -> Tuple[int, ...]:
    if dec < 0 or dec >= 1 << nbits:
        raise ValueError(f"{dec} does not fit in {nbits} bits")
    return tuple((dec >> shift) & 1 for shift in range(nbits - 1, -1, -1))


def bits2str(bits: Sequence[int]) -> str:
    return "|" + "".join("1" if bit else "0" for bit in bits) + ">=|" + str(bits2dec(bits)) + ">"


def bitsvec(nbits: int) -> List[Tuple[int, ...]]:
    """Every ``nbits``-bit pattern in numerical order."""
    return [dec2bits(i, nbits) for i in range(1 << nbits)]
