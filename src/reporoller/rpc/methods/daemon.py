"""Daemon lifecycle RPC method handlers."""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from reporoller.rpc.params import NoParams

if TYPE_CHECKING:
    from reporoller.daemon.session import DaemonSession
    from reporoller.rpc.server import RPCServer

logger = logging.getLogger(__name__)

# Lets the shutdown acknowledgement reach the caller before the server stops
SHUTDOWN_DELAY_SECONDS = 0.1


def register_daemon_methods(server: "RPCServer", session: "DaemonSession") -> None:
    """Register daemon.* methods.

    These report on the daemon itself and do not count as requests.

    Args:
        server: RPC server to register methods on.
        session: Session the methods report on.
    """

    async def daemon_status(params: NoParams) -> dict[str, Any]:
        return {
            "uptime": session.uptime_ms,
            "activeConnections": session.active_connections,
            "requestCount": session.request_count,
            "cacheSize": len(session.cache),
            "cachedProjects": [str(root) for root in session.cache.keys()],
        }

    async def daemon_ping(params: NoParams) -> dict[str, Any]:
        return {"pong": True, "timestamp": int(time.time() * 1000)}

    async def daemon_shutdown(params: NoParams) -> dict[str, Any]:
        logger.info("Shutdown requested over RPC")
        asyncio.get_running_loop().call_later(
            SHUTDOWN_DELAY_SECONDS, session.request_shutdown
        )
        return {"shuttingDown": True}

    server.register("daemon.status", daemon_status, NoParams)
    server.register("daemon.ping", daemon_ping, NoParams)
    server.register("daemon.shutdown", daemon_shutdown, NoParams)
    logger.debug("Registered daemon RPC methods")
