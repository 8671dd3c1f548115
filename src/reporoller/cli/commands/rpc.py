"""Raw RPC command for scripting and debugging."""

import json
from typing import Annotated, Any

import typer

from reporoller.cli.console import error, print_json


def register(app: typer.Typer) -> None:
    """Register the rpc command."""

    @app.command()
    def rpc(
        method: Annotated[
            str,
            typer.Argument(help="Method name, e.g. daemon.status"),
        ],
        params: Annotated[
            str | None,
            typer.Argument(help="Params as a JSON object"),
        ] = None,
        timeout: Annotated[
            float | None,
            typer.Option(
                "--timeout",
                "-t",
                help="Seconds to wait for a response",
            ),
        ] = None,
    ) -> None:
        """Send one request to the daemon and print the result as JSON."""
        from reporoller.cli.console import call_daemon

        payload: dict[str, Any] = {}
        if params:
            try:
                payload = json.loads(params)
            except json.JSONDecodeError as e:
                error(f"Invalid params JSON: {e}")
                raise typer.Exit(1) from None
            if not isinstance(payload, dict):
                error("Params must be a JSON object")
                raise typer.Exit(1)

        print_json(call_daemon(method, payload, timeout=timeout))
