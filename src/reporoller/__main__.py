"""Allow running as ``python -m reporoller``."""

from reporoller.cli.app import app

app()
