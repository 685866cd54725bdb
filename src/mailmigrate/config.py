"""Configuration loading and validation."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .folders import DEFAULT_FOLDER_NAMES, WELL_KNOWN_PREFIXES
from .mapping import CalendarOptions
from .scoring import DEFAULT_THRESHOLD, ScoringConfig, WeightTable

LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MAILMIGRATE_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/mailmigrate/config.yaml")
DEFAULT_ROOT_DIR = Path("~/.local/share/mailmigrate")
DEFAULT_LOG_LEVEL = "info"
DEFAULT_DELIMITER = ","


class ConfigError(ValueError):
    """Raised when configuration is invalid or missing."""


@dataclass(frozen=True)
class LoggingConfig:
    """Logging-related configuration."""

    level: str = DEFAULT_LOG_LEVEL
    debug_file: bool = False


@dataclass(frozen=True)
class FoldersConfig:
    """Configured well-known folder names, with per-mailbox overrides."""

    defaults: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_FOLDER_NAMES))
    mailboxes: Mapping[str, Mapping[str, str]] = field(default_factory=dict)


@dataclass(frozen=True)
class Config:
    """Fully parsed configuration."""

    root_dir: Path = field(default_factory=DEFAULT_ROOT_DIR.expanduser)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    calendar: CalendarOptions = field(default_factory=CalendarOptions)
    folders: FoldersConfig = field(default_factory=FoldersConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    delimiter: str = DEFAULT_DELIMITER


def load_config(path: Path | str | None = None) -> Config:
    """Load and validate configuration from YAML.

    Explicit and environment-provided paths must exist. When neither is set
    and the default file is absent, built-in defaults are returned.
    """

    config_path, required = _resolve_config_path(path)
    if not config_path.exists():
        if required:
            raise ConfigError(f"Config file not found: {config_path}")
        LOGGER.debug("No config at %s, using defaults.", config_path)
        return Config()

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return _parse_config(raw)


def resolve_config_path(explicit: Path | str | None) -> Path:
    return _resolve_config_path(explicit)[0]


def _resolve_config_path(explicit: Path | str | None) -> tuple[Path, bool]:
    if explicit:
        return Path(explicit).expanduser(), True
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser(), True
    return DEFAULT_CONFIG_PATH.expanduser(), False


def _parse_config(raw: dict[str, Any]) -> Config:
    root_dir = Path(raw.get("rootdir") or raw.get("root_dir") or DEFAULT_ROOT_DIR).expanduser()
    scoring = ScoringConfig(
        threshold=_parse_threshold(raw.get("threshold")),
        weights=_parse_weights(raw.get("weights")),
    )
    return Config(
        root_dir=root_dir,
        scoring=scoring,
        calendar=_parse_calendar(raw.get("calendar")),
        folders=_parse_folders(raw.get("folders")),
        logging=_parse_logging(raw.get("logging")),
        delimiter=_parse_delimiter(raw.get("delimiter")),
    )


def _parse_threshold(value: Any) -> int:
    if value is None:
        return DEFAULT_THRESHOLD
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError("threshold must be an integer.")
    if not 0 <= value <= 100:
        raise ConfigError("threshold must be between 0 and 100.")
    return value


def _parse_weights(value: Any) -> WeightTable:
    if value is None:
        return WeightTable()
    if not isinstance(value, dict):
        raise ConfigError("weights must be a mapping of assignment kind to integer.")
    try:
        return WeightTable.from_mapping(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"weights: {exc}") from exc


def _parse_calendar(value: Any) -> CalendarOptions:
    if value is None:
        return CalendarOptions()
    if not isinstance(value, dict):
        raise ConfigError("calendar must be a mapping.")
    notify = value.get("notify", False)
    if not isinstance(notify, bool):
        raise ConfigError("calendar.notify must be true or false.")
    flags = value.get("sharing_flags") or []
    if isinstance(flags, str):
        flags = [flags]
    if not isinstance(flags, list):
        raise ConfigError("calendar.sharing_flags must be a list.")
    return CalendarOptions(notify=notify, sharing_flags=tuple(str(flag) for flag in flags))


def _parse_folders(value: Any) -> FoldersConfig:
    if value is None:
        return FoldersConfig()
    if not isinstance(value, dict):
        raise ConfigError("folders must be a mapping.")
    defaults = dict(DEFAULT_FOLDER_NAMES)
    defaults.update(_parse_folder_names(value.get("defaults"), "folders.defaults"))

    raw_mailboxes = value.get("mailboxes") or {}
    if not isinstance(raw_mailboxes, dict):
        raise ConfigError("folders.mailboxes must be a mapping.")
    mailboxes: dict[str, dict[str, str]] = {}
    for mailbox, names in raw_mailboxes.items():
        mailboxes[str(mailbox)] = _parse_folder_names(names, f"folders.mailboxes.{mailbox}")
    return FoldersConfig(defaults=defaults, mailboxes=mailboxes)


def _parse_folder_names(value: Any, field_name: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{field_name} must be a mapping of folder scope to name.")
    scopes = set(WELL_KNOWN_PREFIXES.values())
    names: dict[str, str] = {}
    for scope, name in value.items():
        if scope not in scopes:
            raise ConfigError(f"{field_name}: unknown folder scope '{scope}'.")
        if not isinstance(name, str) or not name.strip():
            raise ConfigError(f"{field_name}.{scope} must be a non-empty string.")
        names[str(scope)] = name.strip()
    return names


def _parse_delimiter(value: Any) -> str:
    if value is None:
        return DEFAULT_DELIMITER
    if not isinstance(value, str) or len(value) != 1:
        raise ConfigError("delimiter must be a single character.")
    return value


def _parse_logging(value: Any) -> LoggingConfig:
    if value is None:
        return LoggingConfig()
    if not isinstance(value, dict):
        raise ConfigError("logging must be a mapping.")
    level = str(value.get("level", DEFAULT_LOG_LEVEL)).lower()
    debug_file = bool(value.get("debug_file", False))
    return LoggingConfig(level=level, debug_file=debug_file)


__all__ = [
    "Config",
    "ConfigError",
    "FoldersConfig",
    "LoggingConfig",
    "load_config",
    "resolve_config_path",
    "CONFIG_ENV_VAR",
]
