"""History RPC method handlers."""

import logging
from typing import TYPE_CHECKING, Any

from reporoller.rpc.params import HistoryGetParams, HistoryListParams, NoParams
from reporoller.rpc.protocol import DomainError, ErrorCode

if TYPE_CHECKING:
    from reporoller.daemon.session import DaemonSession
    from reporoller.rpc.server import RPCServer

logger = logging.getLogger(__name__)


def register_history_methods(server: "RPCServer", session: "DaemonSession") -> None:
    """Register history.list, history.get and history.stats.

    Args:
        server: RPC server to register methods on.
        session: Session providing the history store.
    """

    async def history_list(params: HistoryListParams) -> list[dict[str, Any]]:
        session.count_request()
        entries = await session.history.query(
            project=params.project, limit=params.limit, offset=params.offset
        )
        return [e.summary() for e in entries]

    async def history_get(params: HistoryGetParams) -> dict[str, Any]:
        session.count_request()
        entry = await session.history.get(params.id)
        if entry is None:
            raise DomainError(
                ErrorCode.NOT_FOUND,
                f"History entry not found: {params.id}",
                {"id": params.id},
            )
        return entry.to_dict()

    async def history_stats(params: NoParams) -> dict[str, Any]:
        session.count_request()
        return await session.history.stats()

    server.register("history.list", history_list, HistoryListParams)
    server.register("history.get", history_get, HistoryGetParams)
    server.register("history.stats", history_stats, NoParams)
    logger.debug("Registered history RPC methods")
