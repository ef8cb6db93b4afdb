from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import tomllib

_CONFIG_CACHE: dict | None = None


def config_path() -> Path:
    override = os.environ.get("FILESTEPS_CONFIG_PATH")
    if override:
        return Path(override).expanduser()
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base).expanduser() if base else (Path.home() / ".config")
    return root / "filesteps" / "config.toml"


def load_config() -> dict:
    path = config_path()
    if not path.exists():
        return {}
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ValueError(f"Invalid config file: {path}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config file structure: {path}")
    return data


def get_config() -> dict:
    global _CONFIG_CACHE
    if _CONFIG_CACHE is None:
        _CONFIG_CACHE = load_config()
    return _CONFIG_CACHE


def reset_config_cache() -> None:
    global _CONFIG_CACHE
    _CONFIG_CACHE = None


def get_config_value(*keys: str, default: object | None = None) -> object | None:
    current: object = get_config()
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


@dataclass(frozen=True)
class RunSettings:
    """The ``[run]`` table, type-checked. Unset keys keep these defaults."""

    features: str | None = None
    workdir: str | None = None
    fail_fast: bool = True
    stop_on_failure: bool = False
    confine_to_workdir: bool = True


_RUN_PATH_KEYS = ("features", "workdir")
_RUN_FLAG_KEYS = ("fail_fast", "stop_on_failure", "confine_to_workdir")


def run_settings() -> RunSettings:
    table = get_config_value("run", default={})
    if not isinstance(table, dict):
        raise ValueError(f"Config section [run] must be a table: {config_path()}")
    unknown = sorted(set(table) - set(_RUN_PATH_KEYS) - set(_RUN_FLAG_KEYS))
    if unknown:
        raise ValueError(f"Unknown config keys in [run]: {', '.join(unknown)}")
    for key in _RUN_FLAG_KEYS:
        if key in table and not isinstance(table[key], bool):
            raise ValueError(f"Config key run.{key} must be a boolean, got {type(table[key]).__name__}")
    for key in _RUN_PATH_KEYS:
        if key in table and not (isinstance(table[key], str) and table[key].strip()):
            raise ValueError(f"Config key run.{key} must be a non-empty string")
    return RunSettings(**table)
