"""
gpxtrack configuration loader

This module centralizes *all* configuration handling for gpxtrack.

Design goals:
- Keep the CLI Unix-friendly: CLI flags override everything.
- Provide sensible defaults if no config exists.
- Allow per-machine config without committing personal paths:
    ~/.config/gpxtrack/config.toml
- Allow repo-local config:
    <repo_root>/config/config.toml
- Allow environment variable overrides for automation.

Precedence (highest to lowest) for any given value:
1) CLI argument (handled by the CLI)
2) Environment variables (GPXTRACK_*)
3) User config: ~/.config/gpxtrack/config.toml
4) Repo config: <repo_root>/config/config.toml
5) Hard defaults (~/GPS/_work, 15000 ms, km, 1)

Recognized TOML layout:

    [paths]
    work_root = "~/GPS/_work"

    [analyze]
    max_point_interval_ms = 15000
    distance_unit = "km"
    marker_interval = 1.0
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from gpxtrack.analyze.geo import normalize_unit
from gpxtrack.analyze.track import MAX_POINT_INTERVAL_MS
from gpxtrack.errors import ConfigurationError


# ---------------------------------------------------------------------------
# TOML loading helpers
# ---------------------------------------------------------------------------
def _load_toml(path: Path) -> dict[str, Any]:
    """
    Parse a TOML file at `path`.

    Behavior:
    - If the file does not exist, return an empty dict (non-fatal).
    - If the file exists but is invalid TOML, raise ConfigurationError
      with a clear, user-facing message.
    """
    if not path.is_file():
        return {}

    try:
        return tomllib.loads(path.read_text(encoding="utf-8")) or {}
    except (tomllib.TOMLDecodeError, OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Failed to parse TOML config: {path} ({e})") from e


# ---------------------------------------------------------------------------
# Generic coercion helpers
# ---------------------------------------------------------------------------
def _deep_get(d: dict[str, Any], dotted_key: str) -> Any:
    """
    Fetch nested dictionary values using dot-separated keys.

    Example:
        _deep_get(cfg, "analyze.distance_unit")

    Returns None if any part of the path is missing.
    """
    cur: Any = d
    for part in dotted_key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _as_path(v: Any) -> Optional[Path]:
    """Coerce a config value into an expanded Path, or None."""
    if v is None:
        return None
    if isinstance(v, Path):
        return v.expanduser()
    if isinstance(v, str):
        return Path(v).expanduser()
    return None


def _as_positive_number(v: Any, key: str, origin: str) -> float:
    """
    Coerce a config value into a positive number.

    Strings are accepted so that environment variables work the same as TOML.
    """
    if isinstance(v, str):
        try:
            v = float(v.strip())
        except ValueError:
            raise ConfigurationError(f"{key} from {origin} is not a number: {v!r}") from None
    if isinstance(v, bool) or not isinstance(v, (int, float)) or not v > 0:
        raise ConfigurationError(f"{key} from {origin} must be a positive number, got {v!r}")
    return v


def _as_unit(v: Any, key: str, origin: str) -> str:
    unit = normalize_unit(v) if isinstance(v, str) else None
    if unit is None:
        raise ConfigurationError(f"{key} from {origin} is not a known distance unit: {v!r}")
    return unit


def default_work_root() -> Path:
    """Default folder scanned for *.gpx when no files are given."""
    return Path.home() / "GPS" / "_work"


# ---------------------------------------------------------------------------
# Repo discovery
# ---------------------------------------------------------------------------
def find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward from `start` looking for the gpxtrack repo root.

    Heuristic:
    - The presence of a `config/` directory marks the repo root
    """
    start = start.resolve()
    for p in [start] + list(start.parents):
        if (p / "config").is_dir():
            return p
    return None


# ---------------------------------------------------------------------------
# Typed config dataclasses
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AnalyzeConfig:
    """
    Defaults for track analysis and distance markers.

    max_point_interval_ms: gaps at or above this are "stopped" time
    distance_unit:         "km" or "mi"
    marker_interval:       marker spacing in distance_unit
    """

    max_point_interval_ms: float = MAX_POINT_INTERVAL_MS
    distance_unit: str = "km"
    marker_interval: float = 1.0


@dataclass(frozen=True)
class GpxTrackConfig:
    """
    Fully merged gpxtrack configuration.

    Attributes:
    - work_root: folder offered for interactive selection
    - analyze: analysis defaults
    - source: provenance map showing where each value came from
    """

    work_root: Path
    analyze: AnalyzeConfig
    source: dict[str, str]


_KEYS = (
    "paths.work_root",
    "analyze.max_point_interval_ms",
    "analyze.distance_unit",
    "analyze.marker_interval",
)

_ENV_MAP = {
    "GPXTRACK_WORK_ROOT": "paths.work_root",
    "GPXTRACK_MAX_POINT_INTERVAL_MS": "analyze.max_point_interval_ms",
    "GPXTRACK_DISTANCE_UNIT": "analyze.distance_unit",
    "GPXTRACK_MARKER_INTERVAL": "analyze.marker_interval",
}


# ---------------------------------------------------------------------------
# Main config loader
# ---------------------------------------------------------------------------
def load_config(
    repo_root: Optional[Path] = None,
    repo_config_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
) -> GpxTrackConfig:
    """
    Load, merge, and validate all gpxtrack configuration.

    Raises:
      ConfigurationError for malformed TOML or invalid values.
    """

    # Locate repo and config files
    if repo_root is None:
        repo_root = find_repo_root(Path(__file__).resolve())
    if repo_config_path is None and repo_root is not None:
        repo_config_path = repo_root / "config" / "config.toml"
    if user_config_path is None:
        user_config_path = Path.home() / ".config" / "gpxtrack" / "config.toml"

    repo_cfg = _load_toml(repo_config_path) if repo_config_path else {}
    user_cfg = _load_toml(user_config_path) if user_config_path else {}

    values: dict[str, Any] = {
        "paths.work_root": default_work_root(),
        "analyze.max_point_interval_ms": MAX_POINT_INTERVAL_MS,
        "analyze.distance_unit": "km",
        "analyze.marker_interval": 1.0,
    }
    src = {k: "default" for k in _KEYS}

    # Raw overrides in increasing precedence: repo, user, env
    layers: list[tuple[str, dict[str, Any]]] = [
        (f"repo:{repo_config_path}", {k: _deep_get(repo_cfg, k) for k in _KEYS}),
        (f"user:{user_config_path}", {k: _deep_get(user_cfg, k) for k in _KEYS}),
        ("env", {key: os.environ.get(env) or None for env, key in _ENV_MAP.items()}),
    ]

    for label, layer in layers:
        for k, v in layer.items():
            if v is None:
                continue
            origin = label
            if label == "env":
                origin = "env:" + next(e for e, key in _ENV_MAP.items() if key == k)

            if k == "paths.work_root":
                p = _as_path(v)
                if p is None:
                    raise ConfigurationError(f"{k} from {origin} is not a path: {v!r}")
                values[k] = p
            elif k == "analyze.distance_unit":
                values[k] = _as_unit(v, k, origin)
            else:
                values[k] = _as_positive_number(v, k, origin)
            src[k] = origin

    analyze = AnalyzeConfig(
        max_point_interval_ms=values["analyze.max_point_interval_ms"],
        distance_unit=values["analyze.distance_unit"],
        marker_interval=values["analyze.marker_interval"],
    )

    return GpxTrackConfig(
        work_root=values["paths.work_root"].expanduser(),
        analyze=analyze,
        source=src,
    )
