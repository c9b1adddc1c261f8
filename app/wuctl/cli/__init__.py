"""CLI module for wuctl.

This module contains the Typer-based command-line interface.
"""

from wuctl.cli.main import app

__all__ = ["app"]
