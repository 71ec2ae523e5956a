# src/fastfib/scheduler.py
"""
Two-way fork-join for the independent halves of a doubling level.

Below the threshold both tasks run one after the other in the calling
thread. At or above it, task_b goes to a thread pool while task_a runs
in the caller, and run_pair() joins on task_b before returning. Levels run
one after another, so at most one task is in flight and the pool has a
single worker. gmpy2 does not release the GIL on a stock CPython build, so
the speedup there is small; on a free-threaded interpreter the two
multiplications do overlap.
"""
from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

A = TypeVar("A")
B = TypeVar("B")

MEASURES = ("index", "target", "digits")


class ForkJoinScheduler:
    """
    threshold=None never forks; threshold=0 forks every level.

    Use as a context manager so the pool (created on first fork) is shut
    down with the computation that used it.
    """

    def __init__(self, threshold: int | None = 50_000_000):
        if threshold is not None and threshold < 0:
            raise ValueError("threshold must be >= 0 or None")
        self.threshold = threshold
        self._pool: ThreadPoolExecutor | None = None

    def should_fork(self, problem_size: int) -> bool:
        return self.threshold is not None and problem_size >= self.threshold

    def run_pair(
        self,
        task_a: Callable[[], A],
        task_b: Callable[[], B],
        problem_size: int,
    ) -> tuple[A, B]:
        if not self.should_fork(problem_size):
            return task_a(), task_b()

        future = self._executor().submit(task_b)
        try:
            result_a = task_a()
        finally:
            # Join even if task_a failed, so nothing outlives this level
            exc = future.exception()
        if exc is not None:
            raise exc
        return result_a, future.result()

    def _executor(self) -> ThreadPoolExecutor:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="fastfib-fork"
            )
        return self._pool

    def close(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def __enter__(self) -> ForkJoinScheduler:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
