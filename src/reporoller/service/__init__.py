"""Background process management for the daemon.

Example:
    from reporoller.service import DaemonManager

    manager = DaemonManager(load_daemon_config())
    started = await manager.start()
    status = await manager.status()
"""

from reporoller.service.manager import DaemonManager, DaemonState, DaemonStatus
from reporoller.service.pid import ProcessInfo, read_pid_file, write_pid_file

__all__ = [
    "DaemonManager",
    "DaemonState",
    "DaemonStatus",
    "ProcessInfo",
    "read_pid_file",
    "write_pid_file",
]
