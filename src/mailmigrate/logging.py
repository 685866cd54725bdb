"""Logging setup for mailmigrate runs."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import ConfigError, LoggingConfig

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
MAIN_LOG_NAME = "mailmigrate.log"
DEBUG_LOG_NAME = "debug.log"
LOG_DIRNAME = "logs"

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class ConsoleFormatter(logging.Formatter):
    """Prefix console lines with a level symbol, coloured on a terminal."""

    SYMBOLS: dict[int, tuple[str, str]] = {
        logging.DEBUG: ("·", "\x1b[36m"),
        logging.INFO: ("+", "\x1b[32m"),
        logging.WARNING: ("!", "\x1b[33m"),
        logging.ERROR: ("x", "\x1b[31m"),
        logging.CRITICAL: ("X", "\x1b[35m"),
    }
    RESET = "\x1b[0m"

    def __init__(self, use_color: bool) -> None:
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        symbol, color = self.SYMBOLS.get(record.levelno, ("?", "\x1b[37m"))
        message = super().format(record)
        if self.use_color:
            return f"{color}{symbol}{self.RESET} {message}"
        return f"{symbol} {message}"


def configure_logging(
    logging_config: LoggingConfig,
    root_dir: Path,
    *,
    verbose: bool = False,
) -> Path:
    """Install file and console handlers; returns the log directory."""

    log_dir = (root_dir / LOG_DIRNAME).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    level = logging.DEBUG if verbose else level_from_string(logging_config.level)

    handlers: list[logging.Handler] = [
        _file_handler(log_dir / MAIN_LOG_NAME, logging.INFO),
        _console_handler(level),
    ]
    root_level = min(level, logging.INFO)
    if logging_config.debug_file:
        handlers.append(_file_handler(log_dir / DEBUG_LOG_NAME, logging.DEBUG))
        root_level = logging.DEBUG

    logging.basicConfig(
        level=root_level,
        handlers=handlers,
        force=True,
    )
    return log_dir


def level_from_string(level: str) -> int:
    try:
        return LEVELS[level.strip().upper()]
    except KeyError as exc:
        raise ConfigError(f"Unknown log level: {level}") from exc


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=5, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    stream = getattr(handler, "stream", None)
    use_color = bool(getattr(stream, "isatty", lambda: False)())
    handler.setFormatter(ConsoleFormatter(use_color))
    return handler


__all__ = ["configure_logging", "level_from_string", "ConsoleFormatter"]
