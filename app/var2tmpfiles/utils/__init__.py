"""Utility modules for var2tmpfiles.

This module exports commonly used utility functions.
"""

from var2tmpfiles.utils.formatting import (
    configure_logging,
    console,
    create_entries_table,
    err_console,
    format_entry_row,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "configure_logging",
    "console",
    "create_entries_table",
    "err_console",
    "format_entry_row",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
