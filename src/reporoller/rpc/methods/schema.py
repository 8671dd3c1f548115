"""Schema introspection RPC method handlers."""

import logging
from typing import TYPE_CHECKING, Any

from reporoller.core.schema import generate_cli_schema, generate_llm_tool_definition
from reporoller.rpc.params import NoParams

if TYPE_CHECKING:
    from reporoller.daemon.session import DaemonSession
    from reporoller.rpc.server import RPCServer

logger = logging.getLogger(__name__)


def register_schema_methods(server: "RPCServer", session: "DaemonSession") -> None:
    """Register schema.cli and schema.llm."""

    async def schema_cli(params: NoParams) -> dict[str, Any]:
        session.count_request()
        return generate_cli_schema()

    async def schema_llm(params: NoParams) -> dict[str, Any]:
        session.count_request()
        return generate_llm_tool_definition()

    server.register("schema.cli", schema_cli, NoParams)
    server.register("schema.llm", schema_llm, NoParams)
    logger.debug("Registered schema RPC methods")
