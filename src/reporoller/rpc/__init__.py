"""RPC system for CLI-to-daemon communication.

Provides a Unix domain socket server and client speaking newline-delimited
JSON: one request or response object per line.

Public API:
- RPCServer: Unix socket server with per-method params validation
- rpc_call, is_running: Client helpers

Protocol:
- RPCRequest, RPCResponse: Message types
- LineBuffer: Newline framing with a size limit
"""

from reporoller.rpc.client import (
    DaemonTimeoutError,
    DaemonUnavailableError,
    RPCCallError,
    is_running,
    rpc_call,
    send_request,
)
from reporoller.rpc.protocol import (
    DomainError,
    ErrorCode,
    FramingError,
    LineBuffer,
    RPCError,
    RPCRequest,
    RPCResponse,
)
from reporoller.rpc.server import RPCServer

__all__ = [
    # Server
    "RPCServer",
    # Client
    "DaemonTimeoutError",
    "DaemonUnavailableError",
    "RPCCallError",
    "is_running",
    "rpc_call",
    "send_request",
    # Protocol
    "DomainError",
    "ErrorCode",
    "FramingError",
    "LineBuffer",
    "RPCError",
    "RPCRequest",
    "RPCResponse",
]
