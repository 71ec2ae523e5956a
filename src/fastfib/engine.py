# src/fastfib/engine.py
"""
Fast-doubling Fibonacci engine.

    F(2k)   = F(k) * (2*F(k+1) - F(k))
    F(2k+1) = F(k+1)^2 + F(k)^2

compute(N) halves N down to the base case (0, 1) and, on the way back up,
applies the two identities (through the fork-join scheduler) and the parity
correction. Cost is O(log N * M(d)) for d-digit operands.
"""
from __future__ import annotations

import operator
from dataclasses import dataclass, field
from functools import partial

from fastfib.bigint import ONE, ZERO, BigInt, estimate_digits
from fastfib.combinator import FibonacciPair, combine, doubled_even, doubled_odd
from fastfib.runtime import CFG
from fastfib.scheduler import MEASURES, ForkJoinScheduler

STRATEGIES = ("recursive", "iterative")


@dataclass
class DoublingTrace:
    n: int
    strategy: str
    levels: int = 0
    forked_levels: list[int] = field(default_factory=list)  # level indices that forked


@dataclass(frozen=True)
class EngineConfig:
    strategy: str = "recursive"
    threshold: int | None = 50_000_000
    measure: str = "index"

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise ValueError(f"unknown strategy {self.strategy!r} (expected one of {', '.join(STRATEGIES)})")
        if self.measure not in MEASURES:
            raise ValueError(f"unknown threshold measure {self.measure!r} (expected one of {', '.join(MEASURES)})")

    @classmethod
    def from_runtime(cls) -> EngineConfig:
        thr = CFG("ENGINE.PARALLEL_THRESHOLD")
        return cls(
            strategy=str(CFG("ENGINE.STRATEGY")).strip().lower(),
            threshold=None if thr is None else int(thr),
            measure=str(CFG("ENGINE.THRESHOLD_MEASURE")).strip().lower(),
        )


def _check_index(n) -> int:
    # bool is an int subclass but never a meaningful index
    if isinstance(n, bool):
        raise ValueError(f"Fibonacci index must be an integer, got {n!r}")
    try:
        n = operator.index(n)  # int, mpz, numpy ints; never float
    except TypeError:
        raise ValueError(f"Fibonacci index must be an integer, got {n!r}") from None
    if n < 0:
        raise ValueError(f"Fibonacci index must be non-negative, got {n}")
    return n


class FastDoublingEngine:
    """Computes (F(N), F(N+1)). Holds configuration only; no state between calls."""

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    def compute(self, n: int) -> FibonacciPair:
        pair, _ = self.compute_traced(n)
        return pair

    def compute_traced(self, n: int) -> tuple[FibonacciPair, DoublingTrace]:
        n = _check_index(n)
        trace = DoublingTrace(n=n, strategy=self.config.strategy)
        cfg = self.config
        with ForkJoinScheduler(cfg.threshold) as sched:
            if cfg.strategy == "iterative":
                pair = self._iterate(n, sched, trace)
            else:
                pair = self._recurse(n, n, sched, trace)
        return pair, trace

    # --- strategies ----------------------------------------------------------

    def _recurse(self, n: int, target: int, sched: ForkJoinScheduler, trace: DoublingTrace) -> FibonacciPair:
        if n == 0:
            return FibonacciPair(ZERO, ONE)
        f0, f1 = self._recurse(n >> 1, target, sched, trace)
        return self._level(n, f0, f1, target, sched, trace)

    def _iterate(self, n: int, sched: ForkJoinScheduler, trace: DoublingTrace) -> FibonacciPair:
        """Same levels as _recurse, walking the bits of n from the top."""
        pair = FibonacciPair(ZERO, ONE)
        for shift in range(n.bit_length() - 1, -1, -1):
            # n >> shift is the index the recursive descent would see here
            pair = self._level(n >> shift, pair.a, pair.b, n, sched, trace)
        return pair

    def _level(
        self,
        n: int,
        f0: BigInt,
        f1: BigInt,
        target: int,
        sched: ForkJoinScheduler,
        trace: DoublingTrace,
    ) -> FibonacciPair:
        size = self._problem_size(n, target, f1)
        if sched.should_fork(size):
            trace.forked_levels.append(trace.levels)
        trace.levels += 1
        a2, b2 = sched.run_pair(
            partial(doubled_even, f0, f1),
            partial(doubled_odd, f0, f1),
            size,
        )
        return combine(a2, b2, bool(n & 1))

    def _problem_size(self, n: int, target: int, f1: BigInt) -> int:
        measure = self.config.measure
        if measure == "target":
            return target
        if measure == "digits":
            return estimate_digits(f1)
        return n


# --- Entry points --------------------------------------------------------------

def compute_fibonacci(n: int, *, config: EngineConfig | None = None) -> FibonacciPair:
    """
    Return (F(n), F(n+1)) exactly. Uses the active runtime settings unless an
    explicit EngineConfig is given. MemoryError propagates unchanged.
    """
    return FastDoublingEngine(config or EngineConfig.from_runtime()).compute(n)


def fibonacci(n: int, *, config: EngineConfig | None = None) -> BigInt:
    """Return F(n) only."""
    return compute_fibonacci(n, config=config).a
