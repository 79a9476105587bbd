"""Shared helpers for CLI commands.

Resolves the target root, its identity source and the effective
conversion settings in one place so that every command treats them
the same way.
"""

from pathlib import Path

import typer
from rich.markup import escape

from var2tmpfiles.core.config import ConfigError, ConverterSettings, load_config_or_default
from var2tmpfiles.tmpfiles.errors import PreconditionError, TmpfilesError
from var2tmpfiles.tmpfiles.identity import Identities, IdentitySnapshot
from var2tmpfiles.tmpfiles.rootfs import RootDir
from var2tmpfiles.utils.formatting import print_error, print_info

# Exit code for a root that cannot be converted as-is
EXIT_PRECONDITION = 2


def open_root(root: Path) -> tuple[RootDir, Identities]:
    """Open the target root and snapshot its users and groups.

    The running system's user database is used for ``/``; any other
    root is resolved through its own passwd and group files.

    Raises:
        typer.Exit: If the root is not a directory or cannot be read.
    """
    root = root.resolve()
    if not root.is_dir():
        print_error(f"Root is not a directory: {escape(str(root))}")
        raise typer.Exit(code=1)

    rootfs = RootDir(root)
    if root == Path("/"):
        return rootfs, IdentitySnapshot.from_system()
    try:
        return rootfs, IdentitySnapshot.from_root(rootfs)
    except TmpfilesError as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from e


def require_settings() -> ConverterSettings:
    """Load conversion settings or exit with a helpful error message.

    Raises:
        typer.Exit: If the config file exists but is invalid.
    """
    try:
        return load_config_or_default().converter
    except ConfigError as e:
        print_error(escape(str(e)))
        print_info("Run 'var2tmpfiles config init --force' to reset the config file.")
        raise typer.Exit(code=1) from e


def exit_on_tmpfiles_error(e: TmpfilesError) -> typer.Exit:
    """Report a failed run and build the matching typer.Exit."""
    print_error(escape(str(e)))
    if isinstance(e, PreconditionError):
        print_info("The root filesystem must be fixed before /var can be converted.")
        return typer.Exit(code=EXIT_PRECONDITION)
    return typer.Exit(code=1)
