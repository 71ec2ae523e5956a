# tests/test_scheduler.py
from __future__ import annotations

import threading
import time

import pytest

from fastfib.bigint import big
from fastfib.combinator import combine, doubled_even, doubled_odd
from fastfib.scheduler import ForkJoinScheduler

# ---------- scheduler ---------------------------------------------------------


def _thread_name():
    return threading.current_thread().name


def test_below_threshold_runs_in_caller():
    caller = _thread_name()
    with ForkJoinScheduler(threshold=10) as sched:
        ra, rb = sched.run_pair(_thread_name, _thread_name, 9)
        assert sched._pool is None
    assert ra == caller
    assert rb == caller


def test_at_threshold_forks_task_b():
    caller = _thread_name()
    with ForkJoinScheduler(threshold=10) as sched:
        ra, rb = sched.run_pair(_thread_name, _thread_name, 10)
    assert ra == caller
    assert rb.startswith("fastfib-fork")


def test_none_threshold_never_forks():
    sched = ForkJoinScheduler(threshold=None)
    assert not sched.should_fork(10**30)
    assert ForkJoinScheduler(threshold=0).should_fork(0)


def test_join_waits_for_slow_task():
    done = threading.Event()

    def slow():
        time.sleep(0.05)
        done.set()
        return "b"

    with ForkJoinScheduler(threshold=0) as sched:
        ra, rb = sched.run_pair(lambda: "a", slow, 1)
        assert done.is_set()
    assert (ra, rb) == ("a", "b")


def test_task_b_error_propagates():
    def boom():
        raise MemoryError("no room")

    with ForkJoinScheduler(threshold=0) as sched, pytest.raises(MemoryError, match="no room"):
        sched.run_pair(lambda: 1, boom, 1)


def test_task_a_error_still_joins_task_b():
    finished = threading.Event()

    def slow():
        time.sleep(0.05)
        finished.set()

    def boom():
        raise MemoryError

    with ForkJoinScheduler(threshold=0) as sched:
        with pytest.raises(MemoryError):
            sched.run_pair(boom, slow, 1)
        assert finished.is_set()


def test_close_shuts_pool_down():
    sched = ForkJoinScheduler(threshold=0)
    sched.run_pair(lambda: 1, lambda: 2, 5)
    assert sched._pool is not None
    sched.close()
    assert sched._pool is None


def test_pool_has_single_worker():
    with ForkJoinScheduler(threshold=0) as sched:
        for _ in range(3):
            sched.run_pair(lambda: 1, lambda: 2, 5)
        assert sched._pool._max_workers == 1


def test_negative_threshold_rejected():
    with pytest.raises(ValueError):
        ForkJoinScheduler(threshold=-1)


# ---------- combinator --------------------------------------------------------

def test_doubling_halves():
    # k = 5: F(5)=5, F(6)=8 -> F(10)=55, F(11)=89
    f0, f1 = big(5), big(8)
    assert doubled_even(f0, f1) == 55
    assert doubled_odd(f0, f1) == 89
    # inputs untouched
    assert (f0, f1) == (5, 8)


def test_combine_even_keeps_pair():
    assert combine(big(55), big(89), odd=False) == (55, 89)


def test_combine_odd_uses_pre_swap_value():
    # N = 11: (F(10), F(11)) -> (F(11), F(10) + F(11))
    assert combine(big(55), big(89), odd=True) == (89, 144)
