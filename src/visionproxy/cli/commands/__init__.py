"""CLI command modules."""

from visionproxy.cli.commands import config, detect, info, serve

__all__ = [
    "config",
    "detect",
    "info",
    "serve",
]
