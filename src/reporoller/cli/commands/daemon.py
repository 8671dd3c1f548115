"""Daemon lifecycle commands."""

import asyncio
from typing import Annotated

import typer

from reporoller.cli.console import console, dim, error, success, warning


def _format_uptime(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.0f}s"
    if seconds < 3600:
        return f"{seconds / 60:.0f}m"
    if seconds < 86400:
        return f"{seconds / 3600:.1f}h"
    return f"{seconds / 86400:.1f}d"


def register(app: typer.Typer) -> None:
    """Register daemon subcommands."""
    daemon_app = typer.Typer(
        help="Manage the background scan daemon", no_args_is_help=True
    )
    app.add_typer(daemon_app, name="daemon")

    @daemon_app.command("start")
    def daemon_start(
        foreground: Annotated[
            bool,
            typer.Option(
                "--foreground",
                "-f",
                help="Run in foreground (don't daemonize)",
            ),
        ] = False,
    ) -> None:
        """Start the daemon."""
        from reporoller.config import ConfigError, load_daemon_config

        try:
            config = load_daemon_config()
        except (ConfigError, FileNotFoundError) as e:
            error(str(e))
            raise typer.Exit(1) from None

        if foreground:
            from reporoller.daemon.runner import DaemonAlreadyRunningError, run_daemon

            try:
                asyncio.run(run_daemon(config))
            except DaemonAlreadyRunningError as e:
                error(str(e))
                raise typer.Exit(1) from None
            except KeyboardInterrupt:
                console.print("\n[bold yellow]Daemon stopped[/bold yellow]")
            return

        from reporoller.service import DaemonManager

        manager = DaemonManager(config)
        if asyncio.run(manager.start()):
            success(f"Daemon started on {config.socket_path}")
            return

        status = asyncio.run(manager.status())
        if status.details is not None:
            warning("Daemon is already running")
            return
        error("Daemon failed to start")
        dim("See the service log under $REPO_ROLLER_HOME/logs")
        raise typer.Exit(1)

    @daemon_app.command("stop")
    def daemon_stop() -> None:
        """Stop the daemon."""
        from reporoller.config import load_daemon_config
        from reporoller.service import DaemonManager

        manager = DaemonManager(load_daemon_config())
        if asyncio.run(manager.stop()):
            success("Daemon stopped")
        else:
            warning("daemon is not running")

    @daemon_app.command("status")
    def daemon_status() -> None:
        """Show daemon status."""
        from reporoller.cli.console import create_table
        from reporoller.config import load_daemon_config
        from reporoller.service import DaemonManager, DaemonState

        config = load_daemon_config()
        status = asyncio.run(DaemonManager(config).status())

        table = create_table(
            "Daemon Status",
            [
                ("Property", "cyan"),
                ("Value", ""),
            ],
        )

        state_colors = {
            DaemonState.RUNNING: "green",
            DaemonState.STOPPED: "yellow",
            DaemonState.UNRESPONSIVE: "red",
        }
        state_color = state_colors.get(status.state, "white")
        table.add_row("State", f"[{state_color}]{status.state.value}[/{state_color}]")
        table.add_row("Socket", str(config.socket_path))

        if status.pid:
            table.add_row("PID", str(status.pid))
        if status.uptime_seconds is not None:
            table.add_row("Uptime", _format_uptime(status.uptime_seconds))
        if status.memory_mb is not None:
            table.add_row("Memory", f"{status.memory_mb:.1f} MB")

        if status.details:
            table.add_row("Connections", str(status.details.get("activeConnections", 0)))
            table.add_row("Requests", str(status.details.get("requestCount", 0)))
            table.add_row("Cached projects", str(status.details.get("cacheSize", 0)))
            for path in status.details.get("cachedProjects", []):
                table.add_row("", f"[dim]{path}[/dim]")

        console.print(table)
