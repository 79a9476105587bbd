"""Bookkeeping of existing and previously generated tmpfiles.d files.

Every conversion run writes a new ``<prefix>-<N>.conf`` file instead of
editing earlier ones, so layered image builds accumulate generations.
Reading the tmpfiles.d directory yields both the paths that are already
declared and the number to use for the next generation.
"""

import logging
from pathlib import PurePosixPath

from var2tmpfiles.core.config import ConverterSettings
from var2tmpfiles.tmpfiles.entry import tmpfiles_entry_get_path
from var2tmpfiles.tmpfiles.errors import MalformedTmpfilesEntryError, TmpfilesIOError
from var2tmpfiles.tmpfiles.models import ExistingEntries, TmpfilesGeneration
from var2tmpfiles.tmpfiles.rootfs import RootDir

logger = logging.getLogger(__name__)

CONF_SUFFIX = ".conf"


def generated_path(settings: ConverterSettings, index: int) -> PurePosixPath:
    """Root-relative path of the generated file with the given number."""
    return settings.tmpfiles_dir / f"{settings.generated_prefix}-{index}{CONF_SUFFIX}"


def _generation_index(stem: str, prefix: str) -> int | None:
    """Numeric suffix of a generated file stem, or None if it has none."""
    suffix = stem[len(prefix) :].removeprefix("-")
    if suffix.isascii() and suffix.isdigit():
        return int(suffix)
    return None


def read_tmpfiles(
    rootfs: RootDir,
    settings: ConverterSettings,
) -> tuple[ExistingEntries, TmpfilesGeneration]:
    """Read all tmpfiles.d entries in the target root.

    Files are read in sorted name order; when several files declare the
    same path, the entry read last is kept.

    Args:
        rootfs: Root of the system being converted.
        settings: Location of tmpfiles.d and the generated file prefix.

    Returns:
        Tuple of (declared path to its line, generation counter). A
        missing tmpfiles.d directory yields an empty map and generation 0.

    Raises:
        MalformedTmpfilesEntryError: If any line cannot be parsed.
        TmpfilesIOError: If the directory or a file cannot be read.
    """
    tmpfiles_dir = settings.tmpfiles_dir
    existing: ExistingEntries = {}
    generation = TmpfilesGeneration()

    if not rootfs.try_exists(tmpfiles_dir):
        logger.debug("No %s in %s", tmpfiles_dir, rootfs)
        return existing, generation

    entries = sorted(rootfs.read_dir(tmpfiles_dir), key=lambda e: e.name)
    for entry in entries:
        name = PurePosixPath(entry.name)
        if name.suffix != CONF_SUFFIX or not name.stem:
            continue
        relpath = tmpfiles_dir / entry.name
        try:
            is_file = entry.is_file()
        except OSError as e:
            raise TmpfilesIOError(relpath, e) from e
        if not is_file:
            logger.debug("Skipping non-file %s", relpath)
            continue

        if name.stem.startswith(settings.generated_prefix):
            generation.record(_generation_index(name.stem, settings.generated_prefix))

        _read_tmpfiles_file(rootfs, relpath, existing)

    logger.debug(
        "Found %d declared paths and %d generated files in %s",
        len(existing),
        generation.count,
        tmpfiles_dir,
    )
    return existing, generation


def _read_tmpfiles_file(rootfs: RootDir, relpath: PurePosixPath, out: ExistingEntries) -> None:
    with rootfs.open_text(relpath) as f:
        try:
            lines = [line.removesuffix("\n") for line in f]
        except OSError as e:
            raise TmpfilesIOError(relpath, e) from e

    for line_num, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            path = tmpfiles_entry_get_path(line)
        except MalformedTmpfilesEntryError as e:
            where = f"{relpath}:{line_num}"
            raise MalformedTmpfilesEntryError(
                line, f"{where}: {e.detail}" if e.detail else where
            ) from e
        out[PurePosixPath(path)] = line
