"""Daemon cache commands."""

from pathlib import Path
from typing import Annotated

import typer

from reporoller.cli.console import console, dim, success


def register(app: typer.Typer) -> None:
    """Register cache subcommands."""
    cache_app = typer.Typer(help="Inspect and clear the scan cache", no_args_is_help=True)
    app.add_typer(cache_app, name="cache")

    @cache_app.command("stats")
    def cache_stats() -> None:
        """Show cached projects."""
        from reporoller.cli.console import call_daemon, create_table
        from reporoller.core.render import format_bytes

        result = call_daemon("cache.stats")
        if not result["entries"]:
            dim("Cache is empty")
            return

        table = create_table(
            f"Cached projects ({result['size']})",
            [
                ("Path", "cyan"),
                ("Files", {"justify": "right"}),
                ("Size", {"justify": "right"}),
                ("Age", {"justify": "right"}),
            ],
        )
        for entry in result["entries"]:
            table.add_row(
                entry["path"],
                str(entry["files"]),
                format_bytes(entry["bytes"]),
                f"{entry['age'] / 1000:.0f}s"
                + ("" if entry.get("fresh", True) else " [yellow](stale)[/yellow]"),
            )
        console.print(table)

    @cache_app.command("clear")
    def cache_clear(
        project: Annotated[
            Path | None,
            typer.Argument(help="Project root to evict (default: everything)"),
        ] = None,
    ) -> None:
        """Clear one project or the whole cache."""
        from reporoller.cli.console import call_daemon

        params: dict[str, str] = {}
        if project is not None:
            params["project"] = str(project.expanduser().resolve())

        result = call_daemon("cache.clear", params)
        if result["cleared"] == "all":
            success(f"Cleared {result['count']} cached project(s)")
        else:
            success(f"Cleared {result['cleared']}")
