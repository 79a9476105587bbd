"""CLI commands for var2tmpfiles.

This package contains all subcommand implementations.
"""

from var2tmpfiles.cli.commands import check, config, convert

__all__ = ["check", "config", "convert"]
