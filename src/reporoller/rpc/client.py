"""RPC client for talking to a running daemon."""

import asyncio
import contextlib
import json
import logging
import secrets
import string
import time
from pathlib import Path
from typing import Any

from reporoller.config.models import DEFAULT_REQUEST_TIMEOUT_SECONDS
from reporoller.config.paths import get_rpc_socket_path
from reporoller.rpc.protocol import LineBuffer, RPCRequest, RPCResponse

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024
PING_TIMEOUT_SECONDS = 2.0

_ID_ALPHABET = string.digits + string.ascii_lowercase


class DaemonUnavailableError(ConnectionError):
    """The daemon could not be reached."""


class DaemonTimeoutError(DaemonUnavailableError):
    """The daemon did not answer within the timeout."""


class RPCCallError(Exception):
    """The daemon answered with an error response."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def generate_request_id() -> str:
    """``<epoch ms>-<9 random base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


async def _exchange(request: RPCRequest, socket_path: Path) -> RPCResponse:
    try:
        reader, writer = await asyncio.open_unix_connection(str(socket_path))
    except OSError as e:
        raise DaemonUnavailableError(f"Cannot connect to {socket_path}: {e}") from e

    # Responses carry whole bundles, so only requests are size-limited
    buffer = LineBuffer(max_size=None)
    try:
        writer.write(request.to_bytes())
        await writer.drain()

        while True:
            data = await reader.read(READ_CHUNK_SIZE)
            if not data:
                raise DaemonUnavailableError("Connection closed by daemon")
            for line in buffer.feed(data):
                try:
                    payload = json.loads(line)
                except (json.JSONDecodeError, UnicodeDecodeError):
                    logger.debug("Skipping unparsable response line")
                    continue
                if isinstance(payload, dict):
                    return RPCResponse.from_dict(payload)
    except DaemonUnavailableError:
        raise
    except OSError as e:
        raise DaemonUnavailableError(f"Connection to daemon failed: {e}") from e
    finally:
        writer.transport.abort()
        with contextlib.suppress(ConnectionError, OSError):
            await writer.wait_closed()


async def send_request(
    request: RPCRequest,
    socket_path: Path | None = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
) -> RPCResponse:
    """Send one request and wait for one response.

    Args:
        request: Request to send.
        socket_path: Daemon socket (default: standard location).
        timeout: Seconds to wait before giving up.

    Returns:
        The daemon's response, which may carry an error.

    Raises:
        DaemonUnavailableError: If the daemon cannot be reached.
        DaemonTimeoutError: If no response arrives within ``timeout``.
    """
    socket_path = socket_path or get_rpc_socket_path()
    try:
        return await asyncio.wait_for(_exchange(request, socket_path), timeout)
    except TimeoutError as e:
        raise DaemonTimeoutError(
            f"Daemon did not respond within {timeout}s ({request.method})"
        ) from e


async def rpc_call(
    method: str,
    params: dict[str, Any] | None = None,
    socket_path: Path | None = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
) -> Any:
    """Call a daemon method and return its result.

    Raises:
        RPCCallError: If the daemon returned an error response.
        DaemonUnavailableError: If the daemon cannot be reached.
    """
    request = RPCRequest(
        method=method, params=dict(params or {}), id=generate_request_id()
    )
    response = await send_request(request, socket_path, timeout)
    if response.error is not None:
        raise RPCCallError(
            code=response.error.code,
            message=response.error.message,
            data=response.error.data,
        )
    return response.result


async def is_running(
    socket_path: Path | None = None, timeout: float = PING_TIMEOUT_SECONDS
) -> bool:
    """Return True if a daemon answers a ping on ``socket_path``."""
    try:
        result = await rpc_call("daemon.ping", socket_path=socket_path, timeout=timeout)
    except (DaemonUnavailableError, RPCCallError):
        return False
    return isinstance(result, dict) and result.get("pong") is True
