"""Bundle generation command."""

from pathlib import Path
from typing import Annotated, Any

import typer

from reporoller.cli.console import console, dim, success

BUNDLE_TIMEOUT_SECONDS = 120.0


def register(app: typer.Typer) -> None:
    """Register the bundle command."""

    @app.command()
    def bundle(
        root: Annotated[
            Path,
            typer.Argument(help="Project root to bundle"),
        ] = Path("."),
        preset: Annotated[
            str | None,
            typer.Option("--preset", "-p", help="Built-in or project preset"),
        ] = None,
        output_format: Annotated[
            str | None,
            typer.Option("--format", "-f", help="md, json, yaml or txt"),
        ] = None,
        out: Annotated[
            Path | None,
            typer.Option("--out", "-o", help="Output file"),
        ] = None,
        model: Annotated[
            str | None,
            typer.Option("--model", "-m", help="Provider used for the cost estimate"),
        ] = None,
        ext: Annotated[
            str | None,
            typer.Option("--ext", help="Comma-separated extensions, e.g. py,md"),
        ] = None,
        stdout: Annotated[
            bool,
            typer.Option("--stdout", help="Print the bundle instead of writing it"),
        ] = False,
    ) -> None:
        """Render a project bundle through the daemon."""
        from reporoller.cli.console import call_daemon

        root = root.expanduser().resolve()
        params: dict[str, Any] = {"root": str(root)}
        for key, value in (
            ("preset", preset),
            ("format", output_format),
            ("model", model),
            ("ext", ext),
        ):
            if value is not None:
                params[key] = value

        if out is not None and not stdout:
            params["outFile"] = str(out.expanduser().resolve())
        else:
            params["returnContent"] = True

        result = call_daemon("bundle.generate", params, timeout=BUNDLE_TIMEOUT_SECONDS)

        if stdout:
            console.print(result["content"], markup=False, highlight=False)
            return

        output_path = Path(result["outputFile"])
        if "content" in result:
            if not output_path.is_absolute():
                output_path = root / output_path
            output_path.write_text(result["content"], encoding="utf-8")

        success(f"Wrote {output_path}")
        cost = result.get("estimatedCost")
        cost_str = f", ~${cost:.4f}" if cost is not None else ""
        dim(
            f"{result['fileCount']} files, ~{result['estimatedTokens']:,} tokens"
            f"{cost_str}, {result['duration']} ms"
            f"{' (cached scan)' if result.get('cached') else ''}"
        )
