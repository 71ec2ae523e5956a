# src/fastfib/combinator.py
from __future__ import annotations

from typing import NamedTuple

from fastfib.bigint import BigInt, add, mul, mul_2exp, square, sub, swap


class FibonacciPair(NamedTuple):
    a: BigInt   # F(k)
    b: BigInt   # F(k+1)


# --- The two independent halves of one doubling level -------------------------
# Both only read f0/f1 and build their own temporaries.

def doubled_even(f0: BigInt, f1: BigInt) -> BigInt:
    """F(2k) = F(k) * (2*F(k+1) - F(k))."""
    temp = sub(mul_2exp(f1, 1), f0)
    return mul(f0, temp)


def doubled_odd(f0: BigInt, f1: BigInt) -> BigInt:
    """F(2k+1) = F(k+1)^2 + F(k)^2."""
    return add(square(f1), square(f0))


def combine(a2: BigInt, b2: BigInt, odd: bool) -> FibonacciPair:
    """
    Parity correction for one level.

    a2 = F(2k), b2 = F(2k+1). For even N the pair is already (F(N), F(N+1)).
    For odd N = 2k+1 the result is (F(2k+1), F(2k) + F(2k+1)); the sum must
    use a2 as it was before the swap relabels it.
    """
    if not odd:
        return FibonacciPair(a2, b2)
    total = add(a2, b2)
    a, _ = swap(a2, b2)
    return FibonacciPair(a, total)
