"""Recursive translation of a directory tree into tmpfiles.d entries.

The walk is depth-first. Each directory and symlink that is not yet
declared becomes one tmpfiles.d line; in destructive mode the object is
removed as soon as its subtree has been handled. Other file types are
recorded as unsupported and left for the enclosing directory's removal.
Mount points are declared but never entered or removed, and the
directories leading to a nested mount point are kept.
"""

import logging
import os
import stat
from pathlib import PurePosixPath
from typing import assert_never

from var2tmpfiles.tmpfiles.entry import translate_to_tmpfiles_d
from var2tmpfiles.tmpfiles.errors import DepthLimitExceededError
from var2tmpfiles.tmpfiles.identity import Identities, resolve_owner
from var2tmpfiles.tmpfiles.models import (
    Directory,
    ExistingEntries,
    Symlink,
    Unsupported,
    classify,
)
from var2tmpfiles.tmpfiles.rootfs import RootDir

logger = logging.getLogger(__name__)


def _relpath(path: PurePosixPath) -> PurePosixPath:
    return path.relative_to("/")


class TreeConverter:
    """Translates a subtree of a root filesystem into tmpfiles.d lines.

    Results accumulate across calls to convert() in ``entries`` (a set,
    so duplicates collapse) and ``unsupported`` (in walk order).

    Args:
        rootfs: Root of the system being converted.
        identities: Name source for owner uids and gids.
        existing: Paths that already have a tmpfiles.d entry.
        readonly: If True, only compute entries; never remove anything.
        max_depth: Optional limit on directory nesting below the start path.
    """

    def __init__(
        self,
        rootfs: RootDir,
        identities: Identities,
        existing: ExistingEntries,
        *,
        readonly: bool = False,
        max_depth: int | None = None,
    ) -> None:
        self._rootfs = rootfs
        self._identities = identities
        self._existing = existing
        self._readonly = readonly
        self._max_depth = max_depth

        self.entries: set[str] = set()
        self.unsupported: list[PurePosixPath] = []

    def convert(self, prefix: PurePosixPath) -> None:
        """Translate everything below an absolute directory path.

        The directory itself is neither declared nor removed.

        Raises:
            TmpfilesError: On any I/O, identity or depth limit failure.
        """
        self._recurse(prefix, 0)

    def sorted_entries(self) -> list[str]:
        """Return the collected entries in lexicographic order."""
        return sorted(self.entries)

    def _recurse(self, prefix: PurePosixPath, depth: int) -> None:
        for dirent in self._rootfs.read_dir(_relpath(prefix)):
            path = prefix / dirent.name
            relpath = _relpath(path)
            st = self._rootfs.symlink_metadata(relpath)

            if path in self._existing:
                logger.debug("Already declared: %s", path)
            elif not self._translate(path, relpath, st):
                continue

            if stat.S_ISDIR(st.st_mode):
                if self._rootfs.is_mount_point(relpath):
                    logger.info("Not descending into mount point %s", path)
                    continue
                if self._max_depth is not None and depth + 1 > self._max_depth:
                    raise DepthLimitExceededError(path, self._max_depth)
                self._recurse(path, depth + 1)
                if not self._readonly:
                    logger.debug("Removing directory %s", path)
                    if not self._rootfs.remove_dir_all(relpath):
                        logger.info("Keeping %s, it holds a mount point", path)
            elif not self._readonly:
                logger.debug("Removing %s", path)
                self._rootfs.remove_file(relpath)

    def _translate(self, path: PurePosixPath, relpath: PurePosixPath, st: os.stat_result) -> bool:
        """Add the entry for one object; return False if it is unsupported."""
        meta = classify(st.st_mode, lambda: self._rootfs.read_link(relpath))
        match meta:
            case Unsupported():
                logger.debug("Unsupported file type: %s", path)
                self.unsupported.append(path)
                return False
            case Directory() | Symlink():
                username, groupname = resolve_owner(self._identities, st.st_uid, st.st_gid)
                entry = translate_to_tmpfiles_d(str(path), meta, username, groupname)
                logger.debug("Declaring %s", entry)
                self.entries.add(entry)
                return True
            case _:
                assert_never(meta)
