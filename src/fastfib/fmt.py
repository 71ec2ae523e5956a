# src/fastfib/fmt.py
from __future__ import annotations

import re

# Single source of truth for ANSI stripping
ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(s: str | None) -> str:
    return ANSI_RE.sub("", s or "")


def group_thousands(n: int) -> str:
    return f"{n:,}"


def format_duration(seconds: float) -> str:
    """ms if <1s; s with millis if <60s; else mm:ss.mmm (and hh:mm:ss.mmm if ≥1h)."""
    MAX_SECONDS = 60
    if seconds < 1:
        return f"{seconds * 1000:.3f} ms"
    if seconds < MAX_SECONDS:
        return f"{seconds:.3f} s"
    m, s = divmod(seconds, MAX_SECONDS)
    if m < MAX_SECONDS:
        return f"{int(m)}:{s:06.3f}"               # mm:ss.mmm
    h, m = divmod(int(m), MAX_SECONDS)
    return f"{h}:{m:02d}:{s:06.3f}"                # hh:mm:ss.mmm


def format_rate(digits: int, seconds: float) -> str:
    """Digits per second, or '∞' when the clock did not move."""
    if seconds <= 0:
        return "∞ digits/second"
    return f"{digits / seconds:,.0f} digits/second"
