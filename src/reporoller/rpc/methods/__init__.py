"""RPC method handlers."""

from typing import TYPE_CHECKING

from reporoller.rpc.methods.cache import register_cache_methods
from reporoller.rpc.methods.daemon import register_daemon_methods
from reporoller.rpc.methods.history import register_history_methods
from reporoller.rpc.methods.project import register_project_methods
from reporoller.rpc.methods.schema import register_schema_methods

if TYPE_CHECKING:
    from reporoller.daemon.session import DaemonSession
    from reporoller.rpc.server import RPCServer


def register_all_methods(server: "RPCServer", session: "DaemonSession") -> None:
    """Register the full daemon method table on ``server``."""
    register_daemon_methods(server, session)
    register_project_methods(server, session)
    register_history_methods(server, session)
    register_schema_methods(server, session)
    register_cache_methods(server, session)


__all__ = [
    "register_all_methods",
    "register_cache_methods",
    "register_daemon_methods",
    "register_history_methods",
    "register_project_methods",
    "register_schema_methods",
]
