"""Command-line interface."""

from reportcast.cli.app import app

__all__ = ["app"]
