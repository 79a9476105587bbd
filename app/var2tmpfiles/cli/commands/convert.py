"""Convert command implementation.

Translates /var below a root into a generated tmpfiles.d file and
removes what was translated.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from var2tmpfiles.cli.common import (
    exit_on_tmpfiles_error,
    open_root,
    require_settings,
)
from var2tmpfiles.tmpfiles.errors import TmpfilesError
from var2tmpfiles.tmpfiles.models import TmpfilesWrittenResult
from var2tmpfiles.tmpfiles.run import var_to_tmpfiles
from var2tmpfiles.utils.formatting import print_info, print_success, print_warning

app = typer.Typer(
    help="Convert /var into tmpfiles.d entries.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def convert(
    ctx: typer.Context,
    root: Annotated[
        Path,
        typer.Option(
            "--root",
            "-r",
            help="Root filesystem containing /var and usr/lib/tmpfiles.d.",
        ),
    ] = Path("/"),
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be generated without changing anything."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Declare /var content in tmpfiles.d and remove it from disk.

    Directories and symlinks become entries in a new generated file
    under usr/lib/tmpfiles.d; other file types are skipped and listed
    as comments in that file.

    Examples:
        var2tmpfiles convert --root /sysroot --dry-run
        var2tmpfiles convert --root /sysroot --yes
    """
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    settings = require_settings()
    rootfs, identities = open_root(root)

    if not dry_run and not yes:
        confirmed = typer.confirm(
            f"Remove translated content of {rootfs.host_path('var')}?",
            default=False,
        )
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    try:
        result = var_to_tmpfiles(rootfs, identities, settings, dry_run=dry_run)
    except TmpfilesError as e:
        raise exit_on_tmpfiles_error(e) from e

    _print_summary(result, quiet)


def _print_summary(result: TmpfilesWrittenResult, quiet: bool) -> None:
    """Display the outcome of a conversion run."""
    if result.generated is None:
        if not quiet:
            print_info("No new tmpfiles.d entries to generate.")
    else:
        count, path = result.generated
        target = escape(str(path))
        if result.dry_run:
            print_info(f"Dry-run: would write {count} entries to {target}")
        else:
            print_success(f"Wrote {count} entries to {target}")

    if result.unsupported:
        print_warning(f"Skipped {result.unsupported} unsupported path(s)")
