"""Command-line interface for chainhash."""

from .app import configure_logging, console_main, main

__all__ = ["configure_logging", "console_main", "main"]
