# runtime.py
from __future__ import annotations

from contextvars import ContextVar
from dataclasses import asdict as _asdict
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import Any

from colorama import Fore, Style

# Code defaults; a profile only needs to override what it changes.
DEFAULTS: dict[str, Any] = {
    "ENGINE": {
        "STRATEGY": "recursive",          # "recursive" | "iterative"
        "PARALLEL_THRESHOLD": 50_000_000,  # fork at or above this; None = never
        "THRESHOLD_MEASURE": "index",     # "index" | "target" | "digits"
        "MAX_INDEX_BITS": 64,
    },
    "BEHAVIOUR": {
        "DEFAULT_N": 20_000_000,
        "DEBUG": False,
    },
    "DISPLAY": {
        "FULL_DIGITS": 100,
        "PREVIEW_DIGITS": 50,
        "LARGE_RESULT_DIGITS": 1_000_000,
    },
    "OUTPUT": {
        "OUTPUT_DIR": "",
    },
}


@dataclass
class Runtime:
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False  # controls verbosity / tracebacks

    def apply(self, settings: Any) -> None:
        self.profile_name = (
            getattr(settings, "name", None)
            or getattr(settings, "_source", None)
            or "default"
        )

        if hasattr(settings, "as_dict") and callable(settings.as_dict):
            cfg = settings.as_dict()
        elif isinstance(settings, dict):
            cfg = settings
        else:
            # grab UPPERCASE attributes from simple objects / modules
            cfg = {k: getattr(settings, k) for k in dir(settings) if k.isupper()}

        try:
            self.settings = dict(cfg)  # ensure plain dict
        except Exception:
            self.settings = _asdict(cfg) if hasattr(cfg, "__dataclass_fields__") else {}

        dbg = self.get("BEHAVIOUR.DEBUG", None)
        if isinstance(dbg, bool):
            self.debug = dbg

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup ('ENGINE.STRATEGY'): profile first, then DEFAULTS, then `default`."""
        if not key:
            return default
        for source in (self.settings, DEFAULTS):
            found, val = _lookup(source, key)
            if found:
                return val
        return default


def _lookup(cur: dict[str, Any], key: str) -> tuple[bool, Any]:
    for part in key.split("."):
        if isinstance(cur, dict) and part in cur:
            cur = cur[part]
        else:
            return False, None
    return True, cur


# --- Context management ---

_current_runtime: ContextVar[Runtime | None] = ContextVar("fastfib_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = Runtime()
        _current_runtime.set(rt)
    return rt


def reset() -> None:
    """Drop the active runtime (profile settings and debug flag)."""
    _current_runtime.set(None)


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


# ---- Dependency check --------------------------------------------------------

def ensure_runtime_deps(strict: bool = True) -> bool:
    """
    Verify core runtime deps are available. Uses find_spec() so nothing is
    imported here. If strict=True, prints a friendly error and returns False
    when something is missing.
    """
    required = ("gmpy2", "sympy")
    missing = [name for name in required if find_spec(name) is None]

    if not missing:
        return True

    msg = (
        f"{Fore.RED}{Style.BRIGHT}\nMissing dependencies:{Style.RESET_ALL} "
        + ", ".join(missing)
        + "\nInstall with: "
        + f"{Fore.YELLOW}pip install " + " ".join(missing) + f"{Style.RESET_ALL}"
    )
    print(msg)
    return not strict
