from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("fastfib")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .combinator import FibonacciPair
from .config import has_profile, load_settings, read_current_profile
from .engine import EngineConfig, FastDoublingEngine, compute_fibonacci, fibonacci
from .runtime import APPLY, CFG
from .scheduler import ForkJoinScheduler
from .workspace import workspace_dir

__all__ = [
    "APPLY",
    "CFG",
    "EngineConfig",
    "FastDoublingEngine",
    "FibonacciPair",
    "ForkJoinScheduler",
    "__version__",
    "compute_fibonacci",
    "fibonacci",
    "has_profile",
    "load_settings",
    "read_current_profile",
    "workspace_dir",
]
