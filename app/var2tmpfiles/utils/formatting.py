"""Console output and logging for the CLI.

All user-facing text goes through the two themed consoles defined here:
results on stdout, diagnostics and log records on stderr.
"""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from var2tmpfiles.core.theme import get_theme

# Hex theme colors need truecolor; pipes and files get plain text.
_COLOR_SYSTEM = "truecolor" if sys.stdout.isatty() else None

console = Console(theme=get_theme(), color_system=_COLOR_SYSTEM)
err_console = Console(theme=get_theme(), stderr=True, color_system=_COLOR_SYSTEM)

_ENTRY_STYLES = {"d": "directory", "L": "symlink"}


def configure_logging(verbose: bool = False) -> None:
    """Route log records to stderr through Rich.

    Args:
        verbose: Log at DEBUG level instead of WARNING.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(console=err_console, show_path=verbose, markup=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)


def create_entries_table(title: str = "tmpfiles.d Entries") -> Table:
    """Table with a Type column and the full tmpfiles.d line."""
    table = Table(title=title, header_style="bold_header", border_style="border")
    table.add_column("Type", width=4, justify="center")
    table.add_column("Entry", no_wrap=True, overflow="fold")
    return table


def format_entry_row(entry: str) -> tuple[str, str]:
    """Format a tmpfiles.d line as a table row.

    Directories and symlinks get their own styles; anything else is
    shown as plain text.
    """
    kind = entry.split(" ", 1)[0]
    style = _ENTRY_STYLES.get(kind, "text")
    return (f"[{style}]{kind}[/]", f"[{style}]{escape(entry)}[/]")


def print_info(message: str) -> None:
    console.print(message, style="info")


def print_success(message: str) -> None:
    console.print(message, style="success")


def print_warning(message: str) -> None:
    err_console.print(f"[warning]Warning:[/warning] {message}")


def print_error(message: str) -> None:
    err_console.print(f"[error]Error:[/error] {message}")
