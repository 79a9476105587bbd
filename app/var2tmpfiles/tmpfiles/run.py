"""Full conversion runs of a root's /var into tmpfiles.d.

A run reads the existing tmpfiles.d state, checks the preconditions,
walks /var and finally writes one new generated file atomically. A
crash mid-walk can leave /var partially converted, but never produces
a truncated tmpfiles.d file.
"""

import logging
import stat
from itertools import islice
from pathlib import Path, PurePosixPath
from typing import IO

from var2tmpfiles.core.config import ConverterSettings
from var2tmpfiles.tmpfiles.converter import TreeConverter
from var2tmpfiles.tmpfiles.errors import (
    GeneratedFileExistsError,
    MissingTmpfilesDirError,
    VarRunNotSymlinkError,
)
from var2tmpfiles.tmpfiles.escape import escape_path
from var2tmpfiles.tmpfiles.generation import generated_path, read_tmpfiles
from var2tmpfiles.tmpfiles.identity import Identities, IdentitySnapshot
from var2tmpfiles.tmpfiles.models import TmpfilesResult, TmpfilesWrittenResult
from var2tmpfiles.tmpfiles.rootfs import RootDir

logger = logging.getLogger(__name__)

VAR_PREFIX = PurePosixPath("/var")
VAR_RUN = PurePosixPath("var/run")
IGNORED_COMMENT = "# bootc ignored:"
GENERATED_FILE_MODE = 0o644


def _check_preconditions(rootfs: RootDir, settings: ConverterSettings) -> None:
    # /var/run must be a symlink to /run; never recurse into a real one.
    meta = rootfs.symlink_metadata_optional(VAR_RUN)
    if meta is not None and not stat.S_ISLNK(meta.st_mode):
        raise VarRunNotSymlinkError()

    # The tmpfiles.d directory is part of systemd; it is never created here.
    if not rootfs.try_exists(settings.tmpfiles_dir):
        raise MissingTmpfilesDirError(settings.tmpfiles_dir)


def format_ignored_comments(unsupported: list[PurePosixPath], limit: int) -> list[str]:
    """Build the trailing comment lines listing unsupported paths.

    Args:
        unsupported: Paths that were skipped during the walk.
        limit: Maximum number of paths listed by name.

    Returns:
        Up to ``limit`` comment lines, plus one summary line for the rest.
    """
    ordered = sorted(unsupported)
    lines = [f"{IGNORED_COMMENT} {escape_path(str(p))}" for p in islice(ordered, limit)]
    rest = len(ordered) - len(lines)
    if rest > 0:
        lines.append(f"{IGNORED_COMMENT} ...and {rest} more")
    return lines


def var_to_tmpfiles(
    rootfs: RootDir,
    identities: Identities,
    settings: ConverterSettings | None = None,
    *,
    dry_run: bool = False,
) -> TmpfilesWrittenResult:
    """Translate the content of /var below the target root to tmpfiles.d.

    Args:
        rootfs: Root of the system being converted.
        identities: Name source for owner uids and gids.
        settings: Conversion settings; defaults if None.
        dry_run: If True, compute the result without removing or writing
            anything.

    Returns:
        TmpfilesWrittenResult describing the generated file, if any.

    Raises:
        VarRunNotSymlinkError: If /var/run exists and is not a symlink.
        MissingTmpfilesDirError: If the tmpfiles.d directory is missing.
        GeneratedFileExistsError: If the next generated file already exists.
        TmpfilesError: On malformed existing entries, identity or I/O failures.
    """
    settings = settings or ConverterSettings()
    existing, generation = read_tmpfiles(rootfs, settings)
    _check_preconditions(rootfs, settings)

    # Must hold before the destructive walk starts.
    relpath = generated_path(settings, generation.next_index)
    if rootfs.try_exists(relpath):
        raise GeneratedFileExistsError(relpath)

    converter = TreeConverter(
        rootfs,
        identities,
        existing,
        readonly=dry_run,
        max_depth=settings.max_depth,
    )
    converter.convert(VAR_PREFIX)

    entries = converter.sorted_entries()
    unsupported = converter.unsupported
    if not entries:
        logger.info("No new tmpfiles.d entries for %s", rootfs)
        return TmpfilesWrittenResult(unsupported=len(unsupported), dry_run=dry_run)

    comments = format_ignored_comments(unsupported, settings.ignored_sample_limit)

    def write(f: IO[str]) -> None:
        for line in entries:
            f.write(line)
            f.write("\n")
        for line in comments:
            f.write(line)
            f.write("\n")

    if dry_run:
        output: Path = rootfs.host_path(relpath)
        logger.info("Dry-run: would write %d entries to %s", len(entries), output)
    else:
        output = rootfs.atomic_replace_with(relpath, write, mode=GENERATED_FILE_MODE)
        logger.info("Wrote %d entries to %s", len(entries), output)

    return TmpfilesWrittenResult(
        generated=(len(entries), output),
        unsupported=len(unsupported),
        dry_run=dry_run,
    )


def find_missing_tmpfiles(
    rootfs: RootDir,
    identities: Identities,
    settings: ConverterSettings | None = None,
) -> TmpfilesResult:
    """List the tmpfiles.d entries /var would need, without changing anything.

    Unlike var_to_tmpfiles(), no preconditions are enforced; this is a
    query, not a conversion.
    """
    settings = settings or ConverterSettings()
    existing, _ = read_tmpfiles(rootfs, settings)

    converter = TreeConverter(
        rootfs,
        identities,
        existing,
        readonly=True,
        max_depth=settings.max_depth,
    )
    converter.convert(VAR_PREFIX)
    return TmpfilesResult(
        tmpfiles=converter.sorted_entries(),
        unsupported=list(converter.unsupported),
    )


def convert_var_to_tmpfiles_current_root(
    settings: ConverterSettings | None = None,
) -> TmpfilesWrittenResult:
    """Convert /var of the running system to tmpfiles.d."""
    return var_to_tmpfiles(RootDir("/"), IdentitySnapshot.from_system(), settings)


def find_missing_tmpfiles_current_root(
    settings: ConverterSettings | None = None,
) -> TmpfilesResult:
    """List missing tmpfiles.d entries for /var of the running system."""
    return find_missing_tmpfiles(RootDir("/"), IdentitySnapshot.from_system(), settings)
