"""CLI commands for wuctl.

This package contains all subcommand implementations.
"""

from wuctl.cli.commands import config, history, remove, scan

__all__ = ["config", "history", "remove", "scan"]
