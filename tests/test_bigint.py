from __future__ import annotations

import pytest

from fastfib import bigint
from fastfib.bigint import big


@pytest.mark.parametrize("n, d", [
    (0, 1),
    (9, 1),
    (10, 2),
    (99, 2),
    (100, 3),
    (10**50 - 1, 50),
    (10**50, 51),
    (-12345, 5),
])
def test_num_digits_exact(n, d):
    assert bigint.num_digits(big(n)) == d


def test_estimate_close_to_exact():
    for n in (7, 10**20, 2**1000, 3**777):
        est = bigint.estimate_digits(big(n))
        assert abs(est - bigint.num_digits(big(n))) <= 1


def test_arithmetic_helpers():
    a, b = big(12), big(5)
    assert bigint.add(a, b) == 17
    assert bigint.sub(a, b) == 7
    assert bigint.mul(a, b) == 60
    assert bigint.square(a) == 144
    assert bigint.mul_2exp(b, 3) == 40
    assert bigint.swap(a, b) == (5, 12)


def test_leading_and_trailing_digits():
    n = big(1234567890123)
    assert bigint.leading_digits(n, 4) == 1234
    assert bigint.trailing_digits(n, 4) == 123   # '0123' once padded
    assert bigint.leading_digits(big(42), 10) == 42


def test_to_decimal_has_no_str_limit():
    n = big(10) ** 6000
    text = bigint.to_decimal(n)
    assert len(text) == 6001
    assert text.startswith("1000")
