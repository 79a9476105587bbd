"""Check command implementation.

Lists the tmpfiles.d entries that /var content would need, without
touching the filesystem.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from var2tmpfiles.cli.common import exit_on_tmpfiles_error, open_root, require_settings
from var2tmpfiles.tmpfiles.errors import TmpfilesError
from var2tmpfiles.tmpfiles.models import TmpfilesResult
from var2tmpfiles.tmpfiles.run import find_missing_tmpfiles
from var2tmpfiles.utils.formatting import (
    console,
    create_entries_table,
    format_entry_row,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Preview missing tmpfiles.d entries for /var.",
    invoke_without_command=True,
)


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


@app.callback(invoke_without_command=True)
def check(
    ctx: typer.Context,
    root: Annotated[
        Path,
        typer.Option(
            "--root",
            "-r",
            help="Root filesystem containing /var and usr/lib/tmpfiles.d.",
        ),
    ] = Path("/"),
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit with status 1 if any entry is missing."),
    ] = False,
) -> None:
    """Show which /var paths lack a tmpfiles.d entry.

    Examples:
        var2tmpfiles check --root /sysroot
        var2tmpfiles check --format json
        var2tmpfiles check --strict          # for use in CI
    """
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    settings = require_settings()
    rootfs, identities = open_root(root)

    try:
        result = find_missing_tmpfiles(rootfs, identities, settings)
    except TmpfilesError as e:
        raise exit_on_tmpfiles_error(e) from e

    if output_format == OutputFormat.JSON:
        _print_json(result)
    else:
        _print_table(result, quiet)

    if strict and result.tmpfiles:
        raise typer.Exit(code=1)


def _print_json(result: TmpfilesResult) -> None:
    """Display the result as JSON."""
    data = {
        "tmpfiles": result.tmpfiles,
        "unsupported": [str(p) for p in result.unsupported],
    }
    console.print_json(json.dumps(data))


def _print_table(result: TmpfilesResult, quiet: bool) -> None:
    """Display the result as Rich tables.

    In quiet mode only the missing entries and unsupported paths are shown.
    """
    if not result.tmpfiles and not result.unsupported:
        if not quiet:
            print_success("All of /var is declared in tmpfiles.d.")
        return

    if result.tmpfiles:
        table = create_entries_table("Missing tmpfiles.d Entries")
        for entry in result.tmpfiles:
            table.add_row(*format_entry_row(entry))
        console.print(table)
        if not quiet:
            console.print(f"\n[muted]{len(result.tmpfiles)} entries would be generated[/muted]")

    if result.unsupported:
        print_warning(f"{len(result.unsupported)} unsupported path(s) would be skipped:")
        for path in result.unsupported:
            console.print(f"  [ignored]{escape(str(path))}[/ignored]")
