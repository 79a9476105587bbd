"""CLI package for var2tmpfiles.

This package contains the Typer application and all subcommands.
"""

from var2tmpfiles.cli.main import app

__all__ = ["app"]
