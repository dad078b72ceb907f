"""Configuration loading for fieldsync.

:func:`get_settings` returns the :class:`~fieldsync.settings.SyncSettings`
resolved from ``FIELDSYNC_CONFIG_FILE`` (a TOML or YAML document) with
environment overrides applied on top. The result is cached until
:func:`reset_settings` is called or the environment points at another file.
"""
from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationError
from .settings import SyncSettings

__all__ = [
    "DEFAULT_SNAPSHOT_PATH",
    "get_settings",
    "load_settings",
    "reset_settings",
    "snapshot_path",
]

DEFAULT_SNAPSHOT_PATH = Path(".fieldsync") / "snapshots.json"

_CONFIG_CACHE: Optional[SyncSettings] = None
_CONFIG_SOURCE: Optional[Path] = None


def _load_config_file(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file '{path}' does not exist")
    suffix = path.suffix.lower()
    if suffix == ".toml":
        with path.open("rb") as handle:
            return tomllib.load(handle)
    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle)
            return loaded or {}
    raise ConfigurationError(f"Unsupported config file format: '{suffix}'")


def _env_overrides(data: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(data)
    env = os.environ
    if env.get("FIELDSYNC_PREFIX"):
        merged["prefix"] = env["FIELDSYNC_PREFIX"]
    if env.get("FIELDSYNC_DEBOUNCE_SECONDS"):
        merged["debounce_seconds"] = env["FIELDSYNC_DEBOUNCE_SECONDS"]
    return merged


def _build_settings(data: Mapping[str, Any], *, source: Optional[Path]) -> SyncSettings:
    try:
        return SyncSettings.model_validate(data)
    except ValidationError as exc:
        origin = f" in '{source}'" if source is not None else ""
        raise ConfigurationError(f"Invalid configuration{origin}: {exc}") from exc


def load_settings(path: str | Path | None = None, *, apply_env: bool = False) -> SyncSettings:
    """Read and validate a configuration file.

    ``path=None`` yields the defaults. Raises :class:`ConfigurationError`
    when the document does not validate.
    """

    source = Path(path).expanduser() if path is not None else None
    data: Mapping[str, Any] = _load_config_file(source) if source is not None else {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Configuration root must be a mapping, got {type(data).__name__}")
    if apply_env:
        data = _env_overrides(data)
    return _build_settings(data, source=source)


def get_settings(*, refresh: bool = False, config_file: str | Path | None = None) -> SyncSettings:
    """Return the cached :class:`SyncSettings`.

    Parameters
    ----------
    refresh:
        When ``True`` the cached settings are discarded and reloaded.
    config_file:
        Optional explicit path to the configuration document. When provided the
        returned instance is not cached globally.
    """

    global _CONFIG_CACHE, _CONFIG_SOURCE

    if config_file is not None:
        return load_settings(config_file, apply_env=True)

    env_path = os.getenv("FIELDSYNC_CONFIG_FILE")
    source_path = Path(env_path).expanduser() if env_path else None

    if refresh or _CONFIG_CACHE is None or _CONFIG_SOURCE != source_path:
        _CONFIG_CACHE = load_settings(source_path, apply_env=True)
        _CONFIG_SOURCE = source_path

    return _CONFIG_CACHE


def reset_settings() -> None:
    """Clear the cached configuration (mainly useful for tests)."""

    global _CONFIG_CACHE, _CONFIG_SOURCE
    _CONFIG_CACHE = None
    _CONFIG_SOURCE = None


def snapshot_path(explicit: str | Path | None = None) -> Path:
    """Return where persisted snapshots live."""

    if explicit is not None:
        return Path(explicit).expanduser()
    env_path = os.getenv("FIELDSYNC_SNAPSHOT_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_SNAPSHOT_PATH
