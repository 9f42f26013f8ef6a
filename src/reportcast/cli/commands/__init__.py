"""CLI command modules."""

from reportcast.cli.commands import config, jobs, serve

__all__ = [
    "config",
    "jobs",
    "serve",
]
