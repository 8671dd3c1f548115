"""Daemon assembly and foreground run loop."""

import asyncio
import logging
import signal

from reporoller.config.models import DaemonConfig
from reporoller.core.history import HistoryStore
from reporoller.daemon.session import DaemonSession
from reporoller.rpc.client import is_running
from reporoller.rpc.methods import register_all_methods
from reporoller.rpc.server import RPCServer
from reporoller.service.pid import remove_pid_file, write_pid_file

logger = logging.getLogger(__name__)


class DaemonAlreadyRunningError(Exception):
    """Another daemon already answers on the configured socket."""


class Daemon:
    """An RPC server wired to its own session and method table."""

    def __init__(self, config: DaemonConfig, history: HistoryStore | None = None):
        self.config = config
        self._shutdown_event = asyncio.Event()
        self.session = DaemonSession.from_config(
            config,
            request_shutdown=self._shutdown_event.set,
            history=history,
        )
        self.server = RPCServer(
            config.socket_path, debug=config.debug, session=self.session
        )
        register_all_methods(self.server, self.session)

    async def start(self) -> None:
        await self.server.start()

    async def stop(self) -> None:
        await self.server.stop()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_event.is_set()

    async def wait_for_shutdown(self) -> None:
        await self._shutdown_event.wait()


async def run_daemon(config: DaemonConfig, setup_logging: bool = True) -> None:
    """Run a daemon until SIGINT, SIGTERM or daemon.shutdown.

    Writes the pid file before serving and removes it, along with the
    socket, on the way out.

    Raises:
        DaemonAlreadyRunningError: If a daemon already answers on the socket.
    """
    if setup_logging:
        from reporoller.logging import configure_logging

        configure_logging(level=config.log_level, use_rich=True, log_to_file=True)

    if await is_running(config.socket_path):
        raise DaemonAlreadyRunningError(
            f"A daemon is already running on {config.socket_path}"
        )

    daemon = Daemon(config)
    write_pid_file(config.pid_path)

    loop = asyncio.get_running_loop()
    signals = (signal.SIGTERM, signal.SIGINT)
    for sig in signals:
        loop.add_signal_handler(sig, daemon.request_shutdown)

    try:
        await daemon.start()
        logger.info(
            "Daemon ready",
            extra={
                "socket": str(config.socket_path),
                "cache_ttl_seconds": config.cache_ttl_seconds,
                "max_cache_size": config.max_cache_size,
            },
        )
        await daemon.wait_for_shutdown()
        logger.info("Shutting down daemon")
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)
        await daemon.stop()
        remove_pid_file(config.pid_path)
