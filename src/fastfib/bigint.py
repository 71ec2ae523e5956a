# src/fastfib/bigint.py
"""
Thin adapter over gmpy2.mpz.

mpz values are immutable, so every operation returns a fresh value and no
result handed to a caller can alias a temporary held by someone else.
"""
from __future__ import annotations

import gmpy2
from gmpy2 import mpz

BigInt = mpz

ZERO = mpz(0)
ONE = mpz(1)


def big(n: int) -> BigInt:
    """Initialize a big integer from a Python int (or another mpz)."""
    return mpz(n)


def add(a: BigInt, b: BigInt) -> BigInt:
    return a + b


def sub(a: BigInt, b: BigInt) -> BigInt:
    return a - b


def mul(a: BigInt, b: BigInt) -> BigInt:
    return a * b


def square(a: BigInt) -> BigInt:
    return gmpy2.square(a)


def mul_2exp(a: BigInt, k: int) -> BigInt:
    """a * 2**k via a left shift."""
    return a << k


def swap(a: BigInt, b: BigInt) -> tuple[BigInt, BigInt]:
    return b, a


def to_decimal(a: BigInt) -> str:
    # gmpy2 has no int-max-str-digits guard, unlike str(int)
    return a.digits(10)


def num_digits(a: BigInt) -> int:
    """Exact decimal digit count (sign excluded); 0 has one digit."""
    a = abs(mpz(a))
    if a == 0:
        return 1
    # num_digits() is exact or one too large
    d = gmpy2.num_digits(a, 10)
    if d > 1 and a < mpz(10) ** (d - 1):
        d -= 1
    return d


def estimate_digits(a: BigInt) -> int:
    """Cheap digit-length estimate from the bit length; never calls num_digits."""
    bl = gmpy2.bit_length(mpz(a))
    return 1 + (bl * 30103) // 100000


def leading_digits(a: BigInt, k: int, *, ndigits: int | None = None) -> BigInt:
    """First k decimal digits of |a|, without a full decimal conversion."""
    a = abs(mpz(a))
    d = num_digits(a) if ndigits is None else ndigits
    if d <= k:
        return a
    return a // mpz(10) ** (d - k)


def trailing_digits(a: BigInt, k: int) -> BigInt:
    """Last k decimal digits of |a| (leading zeros are the caller's to pad)."""
    return abs(mpz(a)) % mpz(10) ** k
