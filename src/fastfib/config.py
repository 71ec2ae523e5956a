from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib as toml
except ImportError:
    import tomli as toml  # type: ignore

from fastfib.engine import STRATEGIES
from fastfib.scheduler import MEASURES
from fastfib.utility import UserInputError
from fastfib.workspace import ensure_workspace_seeded, workspace_dir

DEFAULT_PROFILE = "default"


@dataclass
class Settings:
    """A loaded profile: settings (without [PROFILE]) plus its name and description."""
    data: dict[str, Any]
    name: str
    description: str
    _source: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        return self.data


def _profiles_dir() -> Path:
    return workspace_dir() / "profiles"


def _profile_path(name: str) -> Path:
    return _profiles_dir() / f"{name}.toml"


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return toml.load(f)
    except toml.TOMLDecodeError as e:
        raise UserInputError(f"reading {path.name}: {e}") from None


def _split_profile_data(raw: dict[str, Any], fallback_name: str) -> tuple[dict[str, Any], str, str]:
    meta = raw.get("PROFILE") or {}
    data = {k: v for k, v in raw.items() if k != "PROFILE"}
    name = str(meta.get("name") or fallback_name)
    description = " ".join(str(meta.get("description") or "").split()) or "(no description)"
    return data, name, description


# --- ENGINE checks ---------------------------------------------------------
# Minimum value per integer key; PARALLEL_THRESHOLD = 0 means fork every level.
_ENGINE_INT_MIN = {"PARALLEL_THRESHOLD": 0, "MAX_INDEX_BITS": 1}
_ENGINE_CHOICES = {"STRATEGY": STRATEGIES, "THRESHOLD_MEASURE": MEASURES}


def _validate_engine_section(data: dict[str, Any], path: Path) -> None:
    eng = data.get("ENGINE") or {}
    for key, low in _ENGINE_INT_MIN.items():
        val = eng.get(key)
        if val is None:
            continue
        if isinstance(val, bool) or not isinstance(val, int) or val < low:
            raise UserInputError(f"{path.name}: ENGINE.{key} must be an integer >= {low}, got {val!r}.")
    for key, choices in _ENGINE_CHOICES.items():
        val = eng.get(key)
        if val is None:
            continue
        if not isinstance(val, str) or val.strip().lower() not in choices:
            raise UserInputError(
                f"{path.name}: ENGINE.{key} must be one of {', '.join(choices)}, got {val!r}."
            )


# --- Public API ------------------------------------------------------------


def list_profiles_with_descriptions() -> list[tuple[str, str]]:
    items: list[tuple[str, str]] = []
    for p in _profiles_dir().glob("*.toml"):
        try:
            _, nm, desc = _split_profile_data(_load_toml(p), p.stem)
        except UserInputError:
            nm, desc = p.stem, "(unreadable profile)"
        items.append((nm, desc))
    return sorted(items, key=lambda t: t[0].lower())


def has_profile(name: str) -> bool:
    return _profile_path(name).exists()


def load_settings(name: str | None) -> Settings:
    """
    Load profiles/<name>.toml from the workspace (seeding it first if the
    file is missing). Unknown files, broken TOML and bad ENGINE values raise
    UserInputError.
    """
    name = name or DEFAULT_PROFILE
    path = _profile_path(name)
    if not path.exists():
        ensure_workspace_seeded()
    if not path.exists():
        raise UserInputError(f"profile '{name}' not found at {path}")

    data, resolved_name, description = _split_profile_data(_load_toml(path), path.stem)
    _validate_engine_section(data, path)
    return Settings(data=data, name=resolved_name, description=description, _source=path)


def _current_profile_path() -> Path:
    return _profiles_dir() / ".current"


def read_current_profile() -> str | None:
    try:
        return _current_profile_path().read_text(encoding="utf-8").strip() or None
    except OSError:
        return None


def write_current_profile(name: str) -> None:
    p = _current_profile_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(name.strip(), encoding="utf-8")
