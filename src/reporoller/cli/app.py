"""Main CLI application."""

import typer

from reporoller.cli.commands import bundle, cache, daemon, rpc, scan, tokens

app = typer.Typer(
    name="repo-roller",
    help="repo-roller - bundle source trees for LLM context",
    no_args_is_help=True,
)

# Register commands
daemon.register(app)
scan.register(app)
bundle.register(app)
tokens.register(app)
cache.register(app)
rpc.register(app)


if __name__ == "__main__":
    app()
