"""Unix domain socket RPC server."""

import asyncio
import contextlib
import json
import logging
import traceback
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from reporoller.rpc.protocol import (
    UNKNOWN_ID,
    DomainError,
    ErrorCode,
    FramingError,
    LineBuffer,
    RPCRequest,
    RPCResponse,
)

if TYPE_CHECKING:
    from reporoller.daemon.session import DaemonSession

logger = logging.getLogger(__name__)

# Type for RPC method handlers; receives the validated params model when one
# is registered, otherwise the raw params dict
RPCHandler = Callable[[Any], Awaitable[Any]]

READ_CHUNK_SIZE = 64 * 1024


class RPCServer:
    """Newline-delimited JSON RPC over a Unix domain socket.

    Requests on one connection are handled one at a time, so responses come
    back in request order. Connections are independent of each other.
    """

    def __init__(
        self,
        socket_path: Path,
        debug: bool = False,
        session: "DaemonSession | None" = None,
    ):
        """Initialize RPC server.

        Args:
            socket_path: Path to the Unix domain socket.
            debug: Include tracebacks in INTERNAL_ERROR responses.
            session: Session whose connection counter this server maintains.
        """
        self._socket_path = socket_path
        self._debug = debug
        self._session = session
        self._server: asyncio.Server | None = None
        self._methods: dict[str, tuple[RPCHandler, type[BaseModel] | None]] = {}
        self._writers: set[asyncio.StreamWriter] = set()
        self._running = False

    def register(
        self,
        method: str,
        handler: RPCHandler,
        params_model: type[BaseModel] | None = None,
    ) -> None:
        """Register an RPC method handler.

        Args:
            method: Method name (e.g., "project.scan").
            handler: Async function called with the params.
            params_model: Pydantic model the params are validated against
                before the handler runs.
        """
        self._methods[method] = (handler, params_model)

    @property
    def methods(self) -> list[str]:
        return sorted(self._methods)

    async def start(self) -> None:
        """Start the RPC server."""
        self._socket_path.parent.mkdir(parents=True, exist_ok=True)

        # Remove stale socket left by a crashed instance
        self._socket_path.unlink(missing_ok=True)

        self._server = await asyncio.start_unix_server(
            self._handle_connection,
            path=str(self._socket_path),
        )

        # Owner only
        self._socket_path.chmod(0o600)

        self._running = True
        logger.info("RPC server started", extra={"socket": str(self._socket_path)})

    async def stop(self) -> None:
        """Stop accepting connections, close open ones and remove the socket."""
        self._running = False

        if self._server:
            self._server.close()
            for writer in list(self._writers):
                writer.close()
            await self._server.wait_closed()
            self._server = None

        self._socket_path.unlink(missing_ok=True)

        logger.info("RPC server stopped")

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """Handle a client connection."""
        self._writers.add(writer)
        if self._session is not None:
            self._session.connection_opened()

        buffer = LineBuffer()
        try:
            while self._running:
                data = await reader.read(READ_CHUNK_SIZE)
                if not data:
                    break

                for line in buffer.feed(data):
                    response = await self._process_request(line)
                    writer.write(self._encode(response))
                    await writer.drain()

        except FramingError as e:
            logger.warning("Closing connection: %s", e)
        except (ConnectionError, BrokenPipeError) as e:
            logger.debug("Connection dropped: %s", e)
        except Exception:
            logger.exception("Error handling RPC connection")
        finally:
            self._writers.discard(writer)
            if self._session is not None:
                self._session.connection_closed()
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()

    def _encode(self, response: RPCResponse) -> bytes:
        try:
            return response.to_bytes()
        except (TypeError, ValueError) as e:
            logger.exception("Unserializable RPC result")
            return RPCResponse.error_response(
                response.id, ErrorCode.INTERNAL_ERROR, f"Unserializable result: {e}"
            ).to_bytes()

    async def _process_request(self, data: bytes) -> RPCResponse:
        """Process a single framed request line."""
        try:
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return RPCResponse.error_response(
                UNKNOWN_ID, ErrorCode.PARSE_ERROR, f"Parse error: {e}"
            )

        if not isinstance(payload, dict):
            return RPCResponse.error_response(
                UNKNOWN_ID, ErrorCode.PARSE_ERROR, "Parse error: expected a JSON object"
            )

        request_id = payload.get("id", UNKNOWN_ID)
        method = payload.get("method")
        if not isinstance(method, str) or not method:
            return RPCResponse.error_response(
                request_id, ErrorCode.INVALID_REQUEST, "Missing method"
            )

        params = payload.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return RPCResponse.error_response(
                request_id, ErrorCode.INVALID_PARAMS, "Invalid params: expected an object"
            )

        return await self.dispatch(RPCRequest(method=method, params=params, id=request_id))

    async def dispatch(self, request: RPCRequest) -> RPCResponse:
        """Route a parsed request to its handler and wrap the outcome."""
        registered = self._methods.get(request.method)
        if registered is None:
            return RPCResponse.error_response(
                request.id,
                ErrorCode.METHOD_NOT_FOUND,
                f"Method not found: {request.method}",
            )

        handler, params_model = registered
        try:
            args = (
                params_model.model_validate(request.params)
                if params_model is not None
                else request.params
            )
        except ValidationError as e:
            return RPCResponse.error_response(
                request.id,
                ErrorCode.INVALID_PARAMS,
                f"Invalid params for {request.method}",
                json.loads(e.json(include_url=False)),
            )

        try:
            result = await handler(args)
            return RPCResponse.success(request.id, result)
        except DomainError as e:
            return RPCResponse.error_response(request.id, e.code, e.message, e.data)
        except Exception as e:
            logger.exception("RPC method error", extra={"method": request.method})
            return RPCResponse.error_response(
                request.id,
                ErrorCode.INTERNAL_ERROR,
                str(e) or type(e).__name__,
                traceback.format_exc() if self._debug else None,
            )

    @property
    def socket_path(self) -> Path:
        """Get the socket path."""
        return self._socket_path

    @property
    def is_running(self) -> bool:
        """Check if server is running."""
        return self._running

    @property
    def connection_count(self) -> int:
        return len(self._writers)
