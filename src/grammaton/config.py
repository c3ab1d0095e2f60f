"""Engine options from a TOML config file and explicit overrides."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CONFIG_NAME = "grammaton.toml"


@dataclass(frozen=True, slots=True)
class EngineOptions:
    """Resolved engine options."""

    cache_path: Path | None = None
    cache_enabled: bool = True
    minimize: bool = False
    debug: bool = False


def load_config(config_path: Path | None, base_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else base_dir / CONFIG_NAME

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(
    config: dict[str, Any],
    base_dir: Path,
    *,
    cache_path: Path | None = None,
    cache_enabled: bool | None = None,
    minimize: bool | None = None,
    debug: bool | None = None,
) -> EngineOptions:
    """Merge config values and keyword overrides into EngineOptions.

    Precedence: config file < keyword overrides. Relative cache paths in the
    config file resolve against ``base_dir``.
    """
    # Cache: config < overrides
    resolved_path: Path | None = None
    resolved_enabled = True
    cfg_cache = config.get("cache")
    if isinstance(cfg_cache, dict):
        cfg_path = cfg_cache.get("path")
        if isinstance(cfg_path, str):
            resolved_path = base_dir / cfg_path
        cfg_enabled = cfg_cache.get("enabled")
        if isinstance(cfg_enabled, bool):
            resolved_enabled = cfg_enabled
    if cache_path is not None:
        resolved_path = cache_path
    if cache_enabled is not None:
        resolved_enabled = cache_enabled

    # Minimization: config < overrides
    resolved_minimize = False
    cfg_automaton = config.get("automaton")
    if isinstance(cfg_automaton, dict):
        cfg_minimize = cfg_automaton.get("minimize")
        if isinstance(cfg_minimize, bool):
            resolved_minimize = cfg_minimize
    if minimize is not None:
        resolved_minimize = minimize

    resolved_debug = False
    cfg_debug = config.get("debug")
    if isinstance(cfg_debug, bool):
        resolved_debug = cfg_debug
    if debug is not None:
        resolved_debug = debug

    return EngineOptions(
        cache_path=resolved_path,
        cache_enabled=resolved_enabled,
        minimize=resolved_minimize,
        debug=resolved_debug,
    )
