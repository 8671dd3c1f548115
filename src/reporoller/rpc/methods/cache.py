"""Cache management RPC method handlers."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from reporoller.rpc.params import CacheClearParams, NoParams

if TYPE_CHECKING:
    from reporoller.daemon.session import DaemonSession
    from reporoller.rpc.server import RPCServer

logger = logging.getLogger(__name__)


def register_cache_methods(server: "RPCServer", session: "DaemonSession") -> None:
    """Register cache.clear and cache.stats.

    Args:
        server: RPC server to register methods on.
        session: Session holding the project cache.
    """

    async def cache_clear(params: CacheClearParams) -> dict[str, Any]:
        session.count_request()
        if params.project:
            root = Path(params.project).expanduser().resolve()
            session.cache.clear(root)
            logger.info("cache_cleared", extra={"cache.root": str(root)})
            return {"cleared": str(root)}

        count = session.cache.clear()
        logger.info("cache_cleared", extra={"cache.count": count})
        return {"cleared": "all", "count": count}

    async def cache_stats(params: NoParams) -> dict[str, Any]:
        session.count_request()
        return session.cache.stats()

    server.register("cache.clear", cache_clear, CacheClearParams)
    server.register("cache.stats", cache_stats, NoParams)
    logger.debug("Registered cache RPC methods")
