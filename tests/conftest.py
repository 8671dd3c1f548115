"""Shared test fixtures and factories."""

import shutil
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from reporoller.config.loader import ENV_OVERRIDES
from reporoller.config.models import DaemonConfig
from reporoller.config.paths import ENV_VAR, get_roller_home
from reporoller.core.history import HistoryStore
from reporoller.daemon.runner import Daemon
from reporoller.rpc.client import rpc_call

RPCCall = Callable[..., Awaitable[Any]]

# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def roller_home(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Point REPO_ROLLER_HOME at a temp dir and clear daemon env overrides."""
    home = (tmp_path / "roller-home").resolve()
    monkeypatch.setenv(ENV_VAR, str(home))
    for env_var in ENV_OVERRIDES:
        monkeypatch.delenv(env_var, raising=False)
    get_roller_home.cache_clear()
    yield home
    get_roller_home.cache_clear()


@pytest.fixture
def socket_path() -> Generator[Path, None, None]:
    """A socket path short enough for AF_UNIX (tmp_path often is not)."""
    directory = tempfile.mkdtemp(prefix="rr-")
    yield Path(directory) / "d.sock"
    shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})


# =============================================================================
# Project Fixtures
# =============================================================================


def write_file(root: Path, relative: str, content: str | bytes) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content)
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small project with ignored, binary and text files."""
    root = tmp_path / "project"
    write_file(root, "src/main.py", "print('hello')\n")
    write_file(root, "src/util.ts", "export const x = 1;\n")
    write_file(root, "README.md", "# Demo\n")
    write_file(root, ".gitignore", "secret.txt\n")
    write_file(root, "secret.txt", "hunter2\n")
    write_file(root, "debug.log", "noise\n")
    write_file(root, "node_modules/pkg/index.js", "module.exports = 1;\n")
    write_file(root, ".git/config", "[core]\n")
    write_file(root, "assets/logo.png", b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
    return root


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[[str, dict[str, str | bytes]], Path]:
    """Factory for additional project roots."""

    def _make(name: str, files: dict[str, str | bytes]) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for relative, content in files.items():
            write_file(root, relative, content)
        return root

    return _make


# =============================================================================
# Daemon Fixtures
# =============================================================================


@pytest.fixture
def daemon_config(socket_path: Path, tmp_path: Path) -> DaemonConfig:
    return DaemonConfig(
        socket_path=socket_path,
        pid_path=tmp_path / "daemon.pid",
        cache_ttl_seconds=60,
        max_cache_size=3,
        request_timeout_seconds=5.0,
    )


@pytest.fixture
async def daemon(
    daemon_config: DaemonConfig, tmp_path: Path
) -> AsyncGenerator[Daemon, None]:
    """An in-process daemon serving on a temp socket."""
    instance = Daemon(daemon_config, history=HistoryStore(tmp_path / "history.json"))
    await instance.start()
    yield instance
    await instance.stop()


@pytest.fixture
def call(daemon: Daemon, daemon_config: DaemonConfig) -> RPCCall:
    """Call a method on the ``daemon`` fixture through the real client."""

    async def _call(method: str, params: dict[str, Any] | None = None) -> Any:
        return await rpc_call(method, params, socket_path=daemon_config.socket_path)

    return _call
