"""Command-line interface."""

from .main import cli, main, setup_logging

__all__ = ["cli", "main", "setup_logging"]
