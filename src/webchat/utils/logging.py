"""Logging setup for the webchat CLI and terminal UI."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from webchat.config.logging import LoggingSettings

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Noisy third-party loggers held at WARNING unless verbose
QUIET_LOGGERS = ("websockets", "asyncio")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(settings: LoggingSettings) -> logging.Formatter:
    if settings.format == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    settings: LoggingSettings | None = None,
    verbose: bool = False,
    console: bool = True,
) -> None:
    """
    Configure root logging.

    Args:
        settings: Level, format and optional rotating log file
        verbose: If True, force DEBUG level and let library loggers through
        console: Attach a stderr handler (the TUI disables this to keep the
            screen clean and relies on the log file instead)
    """
    settings = settings or LoggingSettings()
    level = logging.DEBUG if verbose else getattr(logging, settings.level.upper())
    formatter = _make_formatter(settings)

    handlers: list[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler())

    if settings.file:
        log_file_path = Path(settings.file).expanduser()
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_file_path,
                maxBytes=settings.max_size_mb * 1024 * 1024,
                backupCount=settings.backup_count,
            )
        )

    if not handlers:
        handlers.append(logging.NullHandler())

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if verbose else logging.WARNING)
