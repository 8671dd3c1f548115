"""Tests for the RPC client."""

import asyncio
import json
import re
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from reporoller.rpc.client import (
    DaemonTimeoutError,
    DaemonUnavailableError,
    RPCCallError,
    generate_request_id,
    is_running,
    rpc_call,
)
from reporoller.rpc.protocol import MAX_MESSAGE_SIZE, ErrorCode


@pytest.fixture
async def silent_server(socket_path: Path) -> AsyncGenerator[Path, None]:
    """Accepts connections and never answers."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        await reader.read()
        writer.close()

    server = await asyncio.start_unix_server(handle, path=str(socket_path))
    yield socket_path
    server.close()
    await server.wait_closed()


@pytest.fixture
async def scripted_server(
    socket_path: Path,
) -> AsyncGenerator[tuple[Path, list[bytes]], None]:
    """Replies to the first line with whatever is queued in ``replies``."""
    replies: list[bytes] = []

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        await reader.readline()
        for reply in replies:
            writer.write(reply)
        await writer.drain()
        writer.close()

    server = await asyncio.start_unix_server(handle, path=str(socket_path))
    yield socket_path, replies
    server.close()
    await server.wait_closed()


class TestRequestIds:
    def test_format(self):
        assert re.fullmatch(r"\d+-[0-9a-z]{9}", generate_request_id())

    def test_unique(self):
        assert len({generate_request_id() for _ in range(100)}) == 100


class TestAvailability:
    """Tests for unreachable and unresponsive daemons."""

    async def test_missing_socket_is_not_running(self, socket_path: Path):
        assert await is_running(socket_path) is False

    async def test_missing_socket_raises_unavailable(self, socket_path: Path):
        with pytest.raises(DaemonUnavailableError):
            await rpc_call("daemon.ping", socket_path=socket_path)

    async def test_silent_server_times_out(self, silent_server: Path):
        with pytest.raises(DaemonTimeoutError):
            await rpc_call("daemon.ping", socket_path=silent_server, timeout=0.2)

    async def test_timeout_is_an_unavailable_error(self, silent_server: Path):
        assert await is_running(silent_server, timeout=0.2) is False

    async def test_closed_without_reply(self, scripted_server):
        socket_path, _ = scripted_server
        with pytest.raises(DaemonUnavailableError):
            await rpc_call("daemon.ping", socket_path=socket_path)


class TestResponses:
    """Tests for response handling."""

    async def test_result(self, scripted_server):
        socket_path, replies = scripted_server
        replies.append(b'{"id":"x","result":{"pong":true}}\n')

        assert await rpc_call("daemon.ping", socket_path=socket_path) == {"pong": True}
        assert await is_running(socket_path) is True

    async def test_skips_unparsable_lines(self, scripted_server):
        socket_path, replies = scripted_server
        replies.extend([b"noise\n", b'{"id":"x","result":42}\n'])

        assert await rpc_call("anything", socket_path=socket_path) == 42

    async def test_error_response_raises(self, scripted_server):
        socket_path, replies = scripted_server
        replies.append(
            b'{"id":"x","error":{"code":-32001,"message":"No cached scan",'
            b'"data":{"root":"/p"}}}\n'
        )

        with pytest.raises(RPCCallError) as exc_info:
            await rpc_call("tokens.estimate", socket_path=socket_path)

        assert exc_info.value.code == ErrorCode.NO_CACHED_SCAN
        assert exc_info.value.message == "No cached scan"
        assert exc_info.value.data == {"root": "/p"}
        # An error response is not an availability failure
        assert not isinstance(exc_info.value, DaemonUnavailableError)

    async def test_against_real_daemon(self, call):
        assert (await call("daemon.ping"))["pong"] is True

    async def test_response_larger_than_request_limit(self, scripted_server):
        socket_path, replies = scripted_server
        content = "x" * (MAX_MESSAGE_SIZE + 1024)
        replies.append(json.dumps({"id": "x", "result": {"content": content}}).encode())
        replies.append(b"\n")

        result = await rpc_call("bundle.generate", socket_path=socket_path, timeout=30)

        assert len(result["content"]) == len(content)

    async def test_skips_undecodable_lines(self, scripted_server):
        socket_path, replies = scripted_server
        replies.extend([b"\xff\xfe\xfa\n", b'{"id":"x","result":{"pong":true}}\n'])

        assert await is_running(socket_path) is True

    async def test_only_undecodable_lines_is_not_running(self, scripted_server):
        socket_path, replies = scripted_server
        replies.append(b"\xff\xfe\xfa\n")

        assert await is_running(socket_path) is False
