"""Interfaces Layer: CLI.

This layer contains:
- cli.py: Command-line interface
"""

from journal_analytics.interfaces.cli import main as cli_main

__all__ = ["cli_main"]
