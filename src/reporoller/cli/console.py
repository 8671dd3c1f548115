"""Shared console utilities for CLI commands."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from reporoller.rpc.client import DaemonUnavailableError, RPCCallError
from reporoller.rpc.protocol import ErrorCode

# Shared console instance for all CLI commands
console = Console()


def error(msg: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]{msg}[/red]")


def warning(msg: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]{msg}[/yellow]")


def success(msg: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]{msg}[/green]")


def info(msg: str) -> None:
    """Print an info message in cyan."""
    console.print(f"[cyan]{msg}[/cyan]")


def dim(msg: str) -> None:
    """Print a dimmed message."""
    console.print(f"[dim]{msg}[/dim]")


def create_table(
    title: str,
    columns: list[tuple[str, str | dict]],
) -> Table:
    """Create a styled table with consistent formatting.

    Args:
        title: Table title.
        columns: List of (name, style) or (name, kwargs_dict) tuples.

    Returns:
        Configured Rich Table.
    """
    table = Table(title=title)
    for name, style_or_kwargs in columns:
        if isinstance(style_or_kwargs, dict):
            table.add_column(name, **style_or_kwargs)
        else:
            table.add_column(name, style=style_or_kwargs)
    return table


def print_json(payload: Any) -> None:
    """Print a JSON document without rich markup processing."""
    console.print_json(json.dumps(payload, default=str))


def call_daemon(
    method: str,
    params: dict[str, Any] | None = None,
    timeout: float | None = None,
) -> Any:
    """Call a daemon method, turning daemon errors into a CLI exit.

    Prints "daemon is not running" when the socket does not answer, and the
    error message plus its data when the daemon returns an error response.

    Args:
        method: RPC method name.
        params: Method params.
        timeout: Seconds to wait (default: the configured request timeout).
    """
    from reporoller.config import ConfigError, load_daemon_config
    from reporoller.rpc.client import rpc_call

    try:
        config = load_daemon_config()
    except (ConfigError, FileNotFoundError) as e:
        error(str(e))
        raise typer.Exit(1) from None

    try:
        return asyncio.run(
            rpc_call(
                method,
                params,
                socket_path=config.socket_path,
                timeout=timeout or config.request_timeout_seconds,
            )
        )
    except DaemonUnavailableError as e:
        error("daemon is not running")
        dim(str(e))
        dim("Start it with: repo-roller daemon start")
        raise typer.Exit(1) from None
    except RPCCallError as e:
        error(f"Error {e.code}: {e.message}")
        if e.data is not None:
            dim(json.dumps(e.data, default=str))
        if e.code == ErrorCode.NO_CACHED_SCAN:
            dim("Run: repo-roller scan <root>")
        raise typer.Exit(1) from None
