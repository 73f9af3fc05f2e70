"""CLI commands for reclaim.

This package contains all subcommand implementations.
"""

from reclaim.cli.commands import config, history, processes, run, targets

__all__ = ["config", "history", "processes", "run", "targets"]
