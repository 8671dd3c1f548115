"""CLI command modules."""

from reporoller.cli.commands import bundle, cache, daemon, rpc, scan, tokens

__all__ = [
    "bundle",
    "cache",
    "daemon",
    "rpc",
    "scan",
    "tokens",
]
