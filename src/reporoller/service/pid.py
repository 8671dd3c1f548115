"""Daemon pid marker file.

The file holds two lines: the daemon's pid and its start time (epoch
seconds). Callers can report whether a daemon is running, and since when,
without an RPC round trip.
"""

import logging
import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path

import psutil

logger = logging.getLogger(__name__)


@dataclass
class ProcessInfo:
    """Contents of a pid file plus a liveness check."""

    pid: int
    start_time: float
    alive: bool

    @property
    def uptime_seconds(self) -> float | None:
        return time.time() - self.start_time if self.start_time else None


def write_pid_file(pid_path: Path, pid: int | None = None) -> None:
    """Record ``pid`` (default: this process) and the current time."""
    pid_path.parent.mkdir(parents=True, exist_ok=True)
    pid_path.write_text(f"{pid or os.getpid()}\n{time.time()}\n")


def read_pid_file(pid_path: Path) -> ProcessInfo | None:
    """Read a pid file.

    Returns:
        ProcessInfo, or None if the file is missing or unparsable.
    """
    try:
        lines = pid_path.read_text().strip().split("\n")
    except FileNotFoundError:
        return None

    try:
        pid = int(lines[0])
        start_time = float(lines[1]) if len(lines) > 1 else 0.0
    except (ValueError, IndexError):
        logger.warning("Ignoring malformed pid file", extra={"file.path": str(pid_path)})
        return None

    return ProcessInfo(pid=pid, start_time=start_time, alive=is_process_alive(pid))


def remove_pid_file(pid_path: Path) -> None:
    pid_path.unlink(missing_ok=True)


def is_process_alive(pid: int) -> bool:
    """Check whether a process exists without signalling it."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by someone else
        return True
    return True


def send_signal(pid: int, sig: signal.Signals) -> bool:
    """Send ``sig`` to ``pid``; return False if the process is gone."""
    try:
        os.kill(pid, sig)
    except OSError:
        return False
    return True


def get_process_memory_mb(pid: int) -> float | None:
    """Resident memory of a process in MiB, if it can be read."""
    try:
        return psutil.Process(pid).memory_info().rss / (1024 * 1024)
    except psutil.Error:
        return None
