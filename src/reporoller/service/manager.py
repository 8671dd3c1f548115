"""Start, stop and inspect a detached daemon process.

Uses the pid file for process state and the RPC socket for liveness. There
is no integration with systemd or launchd; the daemon is an ordinary
background process started in its own session.
"""

import asyncio
import logging
import shutil
import signal
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any

from reporoller.config.models import DaemonConfig
from reporoller.config.paths import get_service_log_path
from reporoller.rpc.client import DaemonUnavailableError, RPCCallError, is_running, rpc_call
from reporoller.service.pid import (
    get_process_memory_mb,
    is_process_alive,
    read_pid_file,
    remove_pid_file,
    send_signal,
)

logger = logging.getLogger(__name__)

STARTUP_TIMEOUT_SECONDS = 5.0
STOP_TIMEOUT_SECONDS = 3.0
POLL_INTERVAL_SECONDS = 0.1


class DaemonState(Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    # Process exists but the socket does not answer
    UNRESPONSIVE = "unresponsive"


@dataclass
class DaemonStatus:
    state: DaemonState
    pid: int | None = None
    uptime_seconds: float | None = None
    memory_mb: float | None = None
    details: dict[str, Any] | None = None


def _daemon_command() -> list[str]:
    """Command that runs the daemon in the foreground."""
    exe = shutil.which("repo-roller")
    base = [exe] if exe else [sys.executable, "-m", "reporoller"]
    return [*base, "daemon", "start", "--foreground"]


class DaemonManager:
    """Process-level control of the daemon described by ``config``."""

    def __init__(self, config: DaemonConfig):
        self.config = config

    async def start(self) -> bool:
        """Start the daemon in the background.

        Returns:
            True if a new daemon answered a ping before the startup timeout,
            False if one was already running or startup failed.
        """
        if await is_running(self.config.socket_path):
            return False

        log_path = get_service_log_path()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        cmd = _daemon_command()
        logger.debug("Starting daemon", extra={"command": cmd})
        with log_path.open("a") as log_file:  # noqa: ASYNC230
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=log_file,
                stderr=log_file,
                stdin=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )

        waited = 0.0
        while waited < STARTUP_TIMEOUT_SECONDS:
            if proc.returncode is not None:
                logger.warning(
                    "Daemon exited during startup",
                    extra={"returncode": proc.returncode, "log": str(log_path)},
                )
                return False
            if await is_running(self.config.socket_path):
                return True
            await asyncio.sleep(POLL_INTERVAL_SECONDS)
            waited += POLL_INTERVAL_SECONDS

        return False

    async def _wait_for_exit(self, pid: int, timeout: float) -> bool:
        waited = 0.0
        while waited < timeout:
            if not is_process_alive(pid):
                return True
            await asyncio.sleep(POLL_INTERVAL_SECONDS)
            waited += POLL_INTERVAL_SECONDS
        return not is_process_alive(pid)

    async def stop(self) -> bool:
        """Stop the daemon.

        Asks over RPC first, then falls back to SIGTERM and finally SIGKILL.

        Returns:
            True if a running daemon was stopped, False if none was running.
        """
        pid_path = self.config.pid_path
        info = read_pid_file(pid_path)

        try:
            await rpc_call("daemon.shutdown", socket_path=self.config.socket_path)
            requested = True
        except (DaemonUnavailableError, RPCCallError) as e:
            logger.debug("RPC shutdown failed: %s", e)
            requested = False

        if info is None or not info.alive:
            remove_pid_file(pid_path)
            if not requested:
                self.config.socket_path.unlink(missing_ok=True)
            return requested

        if requested and await self._wait_for_exit(info.pid, STOP_TIMEOUT_SECONDS):
            remove_pid_file(pid_path)
            return True

        send_signal(info.pid, signal.SIGTERM)
        if not await self._wait_for_exit(info.pid, STOP_TIMEOUT_SECONDS):
            logger.warning("Daemon ignored SIGTERM, killing", extra={"pid": info.pid})
            send_signal(info.pid, signal.SIGKILL)
            await self._wait_for_exit(info.pid, STOP_TIMEOUT_SECONDS)

        remove_pid_file(pid_path)
        self.config.socket_path.unlink(missing_ok=True)
        return True

    async def status(self) -> DaemonStatus:
        """Combine pid file state with a daemon.status call."""
        info = read_pid_file(self.config.pid_path)
        try:
            details = await rpc_call(
                "daemon.status",
                socket_path=self.config.socket_path,
                timeout=self.config.request_timeout_seconds,
            )
        except (DaemonUnavailableError, RPCCallError):
            details = None

        if info is not None and not info.alive:
            # Stale pid file from a crashed daemon
            remove_pid_file(self.config.pid_path)
            info = None

        if details is None:
            if info is None:
                return DaemonStatus(state=DaemonState.STOPPED)
            return DaemonStatus(
                state=DaemonState.UNRESPONSIVE,
                pid=info.pid,
                uptime_seconds=info.uptime_seconds,
                memory_mb=get_process_memory_mb(info.pid),
            )

        return DaemonStatus(
            state=DaemonState.RUNNING,
            pid=info.pid if info else None,
            uptime_seconds=(
                info.uptime_seconds if info else details.get("uptime", 0) / 1000
            ),
            memory_mb=get_process_memory_mb(info.pid) if info else None,
            details=details,
        )
