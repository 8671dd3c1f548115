"""Newline-delimited JSON RPC protocol.

Each message is one JSON object on one line:
- Request: {"id": str, "method": str, "params"?: object}
- Response: {"id": str, "result"?: any, "error"?: {"code", "message", "data"?}}
"""

import json
from dataclasses import dataclass, field
from typing import Any

# Framing limit for a single unterminated message
MAX_MESSAGE_SIZE = 10 * 1024 * 1024

# Id used when a line cannot be parsed far enough to recover the caller's id
UNKNOWN_ID = "unknown"


class ErrorCode:
    """Error codes. Callers should treat these as an open set."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Domain errors
    NO_CACHED_SCAN = -32001
    INVALID_ROOT = -32002
    NOT_FOUND = -32003
    CONFIG_ERROR = -32004


class FramingError(Exception):
    """Raised when a connection's byte stream cannot be framed."""


class DomainError(Exception):
    """A handler-level failure reported to the caller with its own code."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class LineBuffer:
    """Accumulates bytes and splits out complete newline-terminated lines.

    Arrival in arbitrary chunks is expected: ``feed`` keeps any trailing
    partial line for the next call. Blank lines are dropped. A ``max_size``
    of None lifts the limit on a pending line.
    """

    def __init__(self, max_size: int | None = MAX_MESSAGE_SIZE):
        self._buffer = bytearray()
        self._max_size = max_size

    def feed(self, data: bytes) -> list[bytes]:
        """Add bytes and return every complete line now available.

        Raises:
            FramingError: If the pending partial line exceeds the size limit.
        """
        self._buffer.extend(data)
        lines: list[bytes] = []

        while True:
            index = self._buffer.find(b"\n")
            if index == -1:
                break
            line = bytes(self._buffer[:index])
            del self._buffer[: index + 1]
            if line.strip():
                lines.append(line)

        if self._max_size is not None and len(self._buffer) > self._max_size:
            size = len(self._buffer)
            self._buffer.clear()
            raise FramingError(f"Message too large: {size} bytes without newline")

        return lines

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet terminated by a newline."""
        return len(self._buffer)


def encode_message(payload: dict[str, Any]) -> bytes:
    """Serialize one message to a single newline-terminated line."""
    # json.dumps escapes control characters, so no raw newline can appear
    return json.dumps(payload, separators=(",", ":")).encode() + b"\n"


@dataclass
class RPCRequest:
    method: str
    params: dict[str, Any] = field(default_factory=dict)
    id: str = UNKNOWN_ID

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "method": self.method}
        if self.params:
            d["params"] = self.params
        return d

    def to_bytes(self) -> bytes:
        return encode_message(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RPCRequest":
        return cls(
            method=data.get("method", ""),
            params=data.get("params") or {},
            id=data.get("id", UNKNOWN_ID),
        )


@dataclass
class RPCError:
    code: int
    message: str
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            d["data"] = self.data
        return d


@dataclass
class RPCResponse:
    id: Any
    result: Any = None
    error: RPCError | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id}
        if self.error is not None:
            d["error"] = self.error.to_dict()
        else:
            d["result"] = self.result
        return d

    def to_bytes(self) -> bytes:
        return encode_message(self.to_dict())

    @classmethod
    def success(cls, id: Any, result: Any) -> "RPCResponse":
        return cls(id=id, result=result)

    @classmethod
    def error_response(
        cls, id: Any, code: int, message: str, data: Any = None
    ) -> "RPCResponse":
        return cls(id=id, error=RPCError(code=code, message=message, data=data))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RPCResponse":
        error = None
        if data.get("error") is not None:
            err = data["error"]
            error = RPCError(
                code=err.get("code", ErrorCode.INTERNAL_ERROR),
                message=err.get("message", "Unknown error"),
                data=err.get("data"),
            )
        return cls(id=data.get("id"), result=data.get("result"), error=error)
