from __future__ import annotations

import pytest

from fastfib import runtime


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Every test gets its own workspace and a fresh runtime (no profile applied)."""
    ws = tmp_path / "workspace"
    monkeypatch.setenv("FASTFIB_HOME", str(ws))
    monkeypatch.chdir(tmp_path)
    runtime.reset()
    yield ws
    runtime.reset()


@pytest.fixture(scope="session")
def naive_fib():
    """F(0..10001) from the plain linear recurrence."""
    seq = [0, 1]
    while len(seq) < 10_002:
        seq.append(seq[-1] + seq[-2])
    return seq
