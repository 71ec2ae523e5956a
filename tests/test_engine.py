# tests/test_engine.py
"""
Fast-doubling engine: known values, parity, oracle cross-checks and
determinism under the fork-join scheduler.

Run: pytest -v
"""

from __future__ import annotations

import pytest
from sympy import fibonacci as sympy_fibonacci

import fastfib.engine as engine_mod
from fastfib import APPLY
from fastfib.engine import EngineConfig, FastDoublingEngine, compute_fibonacci, fibonacci

SEQUENTIAL = EngineConfig(threshold=None)
ALWAYS_FORK = EngineConfig(threshold=0)
ITERATIVE = EngineConfig(strategy="iterative", threshold=None)

# ---------- known values ------------------------------------------------------

KNOWN = [
    (0, 0, 1),
    (1, 1, 1),
    (2, 1, 2),
    (10, 55, 89),
    (16, 987, 1597),
    (20, 6765, 10946),       # even
    (21, 10946, 17711),      # odd
    (50, 12586269025, 20365011074),
    (93, 12200160415121876738, 19740274219868223167),  # first past 2**63
]


@pytest.mark.parametrize("n, fn, fn1", KNOWN)
@pytest.mark.parametrize("config", [SEQUENTIAL, ALWAYS_FORK, ITERATIVE], ids=["seq", "fork", "iter"])
def test_known_values(n, fn, fn1, config):
    a, b = compute_fibonacci(n, config=config)
    assert (int(a), int(b)) == (fn, fn1)


def test_base_cases_exact():
    assert compute_fibonacci(0, config=SEQUENTIAL) == (0, 1)
    assert compute_fibonacci(1, config=SEQUENTIAL) == (1, 1)
    assert compute_fibonacci(2, config=SEQUENTIAL) == (1, 2)


def test_fibonacci_returns_first_element():
    assert fibonacci(50, config=SEQUENTIAL) == 12586269025


# ---------- oracle cross-checks ----------------------------------------------

def test_matches_linear_recurrence_up_to_10000(naive_fib):
    eng = FastDoublingEngine(SEQUENTIAL)
    for n in range(10_001):
        a, b = eng.compute(n)
        assert a == naive_fib[n], n
        assert b == naive_fib[n + 1], n


def test_pair_is_consecutive():
    eng = FastDoublingEngine(SEQUENTIAL)
    prev_b = eng.compute(0).b
    for n in range(1, 2_000):
        a, b = eng.compute(n)
        assert a == prev_b
        prev_b = b


@pytest.mark.parametrize("n", [12_345, 65_536, 99_999, 100_000])
def test_matches_sympy_for_larger_n(n):
    assert int(fibonacci(n, config=SEQUENTIAL)) == int(sympy_fibonacci(n))


def test_recursive_and_iterative_agree():
    rec = FastDoublingEngine(SEQUENTIAL)
    it = FastDoublingEngine(ITERATIVE)
    for n in (3, 127, 128, 1023, 4096, 54_321, 2**20 + 1):
        assert rec.compute(n) == it.compute(n)


# ---------- concurrency -------------------------------------------------------

@pytest.mark.parametrize("n", [1, 7, 1000, 31_337, 200_001])
@pytest.mark.parametrize("strategy", ["recursive", "iterative"])
def test_threshold_invariance(n, strategy):
    seq = FastDoublingEngine(EngineConfig(strategy=strategy, threshold=None)).compute(n)
    par = FastDoublingEngine(EngineConfig(strategy=strategy, threshold=0)).compute(n)
    assert par == seq


def test_always_fork_forks_every_level():
    n = 1_000
    _, trace = FastDoublingEngine(ALWAYS_FORK).compute_traced(n)
    assert trace.levels == n.bit_length()
    assert trace.forked_levels == list(range(n.bit_length()))


def test_index_measure_forks_only_top_level():
    # levels see 1, 2, 4, ..., 512, 1024 -> only the top level reaches 600
    _, trace = FastDoublingEngine(EngineConfig(threshold=600)).compute_traced(1024)
    assert trace.levels == 11
    assert trace.forked_levels == [10]


def test_target_measure_forks_all_levels_or_none():
    eng = FastDoublingEngine(EngineConfig(threshold=1000, measure="target"))
    _, big = eng.compute_traced(1000)
    _, small = eng.compute_traced(999)
    assert len(big.forked_levels) == big.levels
    assert small.forked_levels == []


def test_digits_measure_uses_operand_size():
    eng = FastDoublingEngine(EngineConfig(threshold=100, measure="digits"))
    pair, trace = eng.compute_traced(2_000)
    assert 0 < len(trace.forked_levels) < trace.levels
    assert pair == FastDoublingEngine(SEQUENTIAL).compute(2_000)


def test_idempotent_and_no_state_between_calls():
    eng = FastDoublingEngine(ALWAYS_FORK)
    first = eng.compute(4_321)
    eng.compute(17)
    assert eng.compute(4_321) == first
    _, t1 = eng.compute_traced(64)
    _, t2 = eng.compute_traced(64)
    assert t1 == t2


# ---------- errors ------------------------------------------------------------

@pytest.mark.parametrize("bad", [-1, 2.0, "10", None, True])
def test_invalid_index_rejected(bad):
    with pytest.raises(ValueError):
        FastDoublingEngine(SEQUENTIAL).compute(bad)


def test_memory_error_propagates(monkeypatch):
    def boom(f0, f1):
        raise MemoryError

    monkeypatch.setattr(engine_mod, "doubled_odd", boom)
    with pytest.raises(MemoryError):
        FastDoublingEngine(ALWAYS_FORK).compute(100)
    with pytest.raises(MemoryError):
        FastDoublingEngine(SEQUENTIAL).compute(100)


def test_unknown_strategy_or_measure():
    with pytest.raises(ValueError):
        EngineConfig(strategy="matrix")
    with pytest.raises(ValueError):
        EngineConfig(measure="bits")


# ---------- runtime configuration --------------------------------------------

def test_config_from_runtime_defaults():
    cfg = EngineConfig.from_runtime()
    assert cfg == EngineConfig(strategy="recursive", threshold=50_000_000, measure="index")


def test_config_from_applied_profile():
    APPLY({"ENGINE": {"STRATEGY": "Iterative", "PARALLEL_THRESHOLD": 0, "THRESHOLD_MEASURE": "digits"}})
    cfg = EngineConfig.from_runtime()
    assert cfg.strategy == "iterative"
    assert cfg.threshold == 0
    assert cfg.measure == "digits"
    assert compute_fibonacci(30) == (832040, 1346269)
