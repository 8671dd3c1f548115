"""Project scan command."""

from pathlib import Path
from typing import Annotated

import typer

from reporoller.cli.console import console, dim, success

# Walking a large tree can take far longer than a status call
SCAN_TIMEOUT_SECONDS = 120.0


def register(app: typer.Typer) -> None:
    """Register the scan command."""

    @app.command()
    def scan(
        root: Annotated[
            Path,
            typer.Argument(help="Project root to scan"),
        ] = Path("."),
        force: Annotated[
            bool,
            typer.Option(
                "--force",
                help="Rescan even if a fresh cached scan exists",
            ),
        ] = False,
        list_files: Annotated[
            bool,
            typer.Option(
                "--list",
                "-l",
                help="Print every selected file",
            ),
        ] = False,
    ) -> None:
        """Scan a project and cache the result in the daemon."""
        from reporoller.cli.console import call_daemon, create_table
        from reporoller.core.render import format_bytes

        root = root.expanduser().resolve()
        result = call_daemon(
            "project.scan",
            {"root": str(root), "force": force},
            timeout=SCAN_TIMEOUT_SECONDS,
        )

        source = "cache" if result.get("cached") else "fresh scan"
        success(
            f"{result['files']} files, {format_bytes(result['totalBytes'])} ({source})"
        )

        counts = result.get("extensionCounts") or {}
        if counts:
            table = create_table(
                "Extensions",
                [
                    ("Extension", "cyan"),
                    ("Files", {"justify": "right"}),
                ],
            )
            for ext, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])):
                table.add_row(ext or "(none)", str(count))
            console.print(table)

        if list_files:
            files = result.get("fileList")
            if files is None:
                dim("File list unavailable for a cached scan; use --force")
            else:
                for path in files:
                    console.print(path, markup=False, highlight=False)
