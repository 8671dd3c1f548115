"""Centralized logging configuration for repo-roller.

All entry points (CLI, daemon) call configure_logging() early.

Logging Levels:
- DEBUG: Cache hits and evictions, per-directory scan failures
- INFO: Daemon lifecycle, completed scans, cache clears
- WARNING: Malformed config or history files, dropped connections
- ERROR: Handler failures reported as INTERNAL_ERROR
"""

import json
import logging
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, TextIO

from rich.logging import RichHandler

LOG_LEVEL_ENV = "REPO_ROLLER_LOG_LEVEL"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Default retention period for log files
DEFAULT_LOG_RETENTION_DAYS = 7

# Attributes every LogRecord has; anything else came from ``extra=``
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "component", "taskName"}


def component_name(logger_name: str) -> str:
    """reporoller.rpc.server -> rpc; anything outside the package is kept."""
    parts = logger_name.split(".")
    if len(parts) >= 2 and parts[0] == "reporoller":
        return parts[1]
    return parts[0]


def record_extra(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed via ``extra=`` on a log call."""
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


def prune_old_logs(
    logs_dir: Path,
    retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    suffix: str = ".jsonl",
) -> int:
    """Delete log files older than the retention period.

    Returns:
        Number of files deleted.
    """
    if not logs_dir.exists():
        return 0

    cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    deleted = 0

    for entry in logs_dir.iterdir():
        if not entry.is_file() or not entry.name.endswith(suffix):
            continue
        try:
            mtime = datetime.fromtimestamp(entry.stat().st_mtime, UTC)
            if mtime < cutoff:
                entry.unlink()
                deleted += 1
        except FileNotFoundError:
            continue

    return deleted


class JSONLHandler(logging.Handler):
    """Writes one JSON object per record to logs/YYYY-MM-DD.jsonl.

    Files rotate daily; files older than the retention period are pruned
    on each rotation.
    """

    def __init__(
        self,
        logs_dir: Path,
        retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    ):
        super().__init__()
        self._logs_dir = logs_dir
        self._logs_dir.mkdir(parents=True, exist_ok=True)
        self._retention_days = retention_days
        self._current_date: str | None = None
        self._file: TextIO | None = None

    def _get_log_file(self) -> TextIO:
        today = datetime.now(UTC).strftime("%Y-%m-%d")
        if self._current_date != today or self._file is None:
            if self._file:
                self._file.close()
            self._current_date = today
            self._file = (self._logs_dir / f"{today}.jsonl").open("a", encoding="utf-8")
            prune_old_logs(self._logs_dir, self._retention_days)
        return self._file

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry: dict[str, Any] = {
                "ts": datetime.now(UTC).isoformat(),
                "level": record.levelname,
                "component": component_name(record.name),
                "logger": record.name,
                "message": record.getMessage(),
            }

            if record.exc_info:
                formatter = self.formatter or logging.Formatter()
                entry["exception"] = formatter.formatException(record.exc_info)

            extra = record_extra(record)
            if extra:
                entry["extra"] = extra

            log_file = self._get_log_file()
            log_file.write(json.dumps(entry, default=str) + "\n")
            log_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None
        super().close()


class ComponentFormatter(logging.Formatter):
    """Adds a short ``component`` field derived from the logger name."""

    def format(self, record: logging.LogRecord) -> str:
        record.component = component_name(record.name)
        return super().format(record)


# Third-party loggers that are too noisy at INFO level
NOISY_LOGGERS = [
    "asyncio",
]


def resolve_level(level: str | None) -> str:
    """Explicit level, else REPO_ROLLER_LOG_LEVEL, else INFO."""
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    level = level.upper()
    return level if level in LOG_LEVELS else "INFO"


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
    log_to_file: bool = False,
    logs_dir: Path | None = None,
) -> None:
    """Configure logging for repo-roller.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
            If None, uses REPO_ROLLER_LOG_LEVEL or INFO.
        use_rich: Use Rich handler for console output (daemon mode).
        log_to_file: Also write logs to daily JSONL files.
        logs_dir: Directory for JSONL files (default: $REPO_ROLLER_HOME/logs).
    """
    from reporoller.config.paths import get_logs_path

    log_level = getattr(logging, resolve_level(level))

    handlers: list[logging.Handler] = []

    console_handler: logging.Handler
    if use_rich:
        console_handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        console_handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    handlers.append(console_handler)

    if log_to_file:
        file_handler = JSONLHandler(logs_dir or get_logs_path())
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,
    )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
