"""Token estimate command."""

from pathlib import Path
from typing import Annotated

import typer

from reporoller.cli.console import console


def register(app: typer.Typer) -> None:
    """Register the tokens command."""

    @app.command()
    def tokens(
        root: Annotated[
            Path,
            typer.Argument(help="Project root (must have a cached scan)"),
        ] = Path("."),
        all_providers: Annotated[
            bool,
            typer.Option("--all", "-a", help="Show every known provider"),
        ] = False,
    ) -> None:
        """Estimate tokens and cost for a cached scan."""
        from reporoller.cli.console import call_daemon, create_table

        result = call_daemon(
            "tokens.estimate",
            {
                "root": str(root.expanduser().resolve()),
                "allProviders": all_providers,
            },
        )

        table = create_table(
            f"~{result['tokens']:,} tokens",
            [
                ("Provider", "cyan"),
                ("Cost", {"justify": "right"}),
                ("Fits context", ""),
            ],
        )
        for estimate in result["estimates"]:
            fits = "[green]yes[/green]" if estimate["withinContext"] else "[red]no[/red]"
            table.add_row(estimate["provider"], f"${estimate['cost']:.4f}", fits)
        console.print(table)
