from __future__ import annotations

from numbers import Integral

from fastfib.runtime import CFG


class UserInputError(Exception):
    pass


def max_index_bits() -> int:
    bits = int(CFG("ENGINE.MAX_INDEX_BITS", 64))
    if bits < 1:
        raise UserInputError(f"ENGINE.MAX_INDEX_BITS must be at least 1, got {bits}.")
    return bits


def max_index() -> int:
    """Largest index accepted from the outside: 2**MAX_INDEX_BITS - 1."""
    return (1 << max_index_bits()) - 1


def validate_index(n: Integral) -> int:
    """Return n as int, or raise UserInputError if it is negative or too wide."""
    n = int(n)
    if n < 0:
        raise UserInputError(f"Invalid input: index must be non-negative, got {n}.")
    bits = max_index_bits()
    if n.bit_length() > bits:
        raise UserInputError(
            f"Invalid input: index needs {n.bit_length()} bits; the limit is "
            f"{bits} bits (N <= {max_index()}). Raise ENGINE.MAX_INDEX_BITS in the profile."
        )
    return n


def typename(v) -> str:
    return type(v).__name__


def flatten_dotted(d: dict, prefix: str = "") -> dict[str, object]:
    """{'A': {'B': 1}} -> {'A.B': 1}"""
    out: dict[str, object] = {}
    for k, v in d.items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(flatten_dotted(v, key))
        else:
            out[key] = v
    return out
