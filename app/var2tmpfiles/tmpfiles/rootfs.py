"""Root-relative filesystem access.

RootDir wraps a directory that acts as the root of the image being
converted. All paths handed to it are relative to that root, so the
same code works on the running system and on a mounted image tree.
"""

import logging
import os
import re
import shutil
import stat
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from tempfile import NamedTemporaryFile
from typing import IO

from var2tmpfiles.tmpfiles.errors import TmpfilesIOError

logger = logging.getLogger(__name__)

MOUNTINFO = "/proc/self/mountinfo"

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def parse_mountinfo(text: str) -> frozenset[str]:
    """Collect the mount point column of a mountinfo table.

    The kernel writes space, tab, newline and backslash in paths as
    three-digit octal escapes such as ``\\040``.
    """
    mounts = set()
    for line in text.splitlines():
        fields = line.split(" ")
        if len(fields) < 5:
            continue
        mounts.add(_OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), fields[4]))
    return frozenset(mounts)


class RootDir:
    """Filesystem operations scoped to a root directory.

    Every OSError is re-raised as TmpfilesIOError naming the
    root-relative path that failed.

    Attributes:
        path: Host path of the root directory.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._mount_points: frozenset[str] | None = None

    def __repr__(self) -> str:
        return f"RootDir({str(self.path)!r})"

    def host_path(self, relpath: PurePosixPath | str) -> Path:
        """Map a root-relative path to a host path."""
        rel = PurePosixPath(relpath)
        if rel.is_absolute():
            rel = rel.relative_to("/")
        return self.path / rel

    @contextmanager
    def _io(self, relpath: PurePosixPath | str) -> Iterator[None]:
        try:
            yield
        except OSError as e:
            raise TmpfilesIOError(relpath, e) from e

    def read_dir(self, relpath: PurePosixPath | str) -> list[os.DirEntry[str]]:
        """List a directory in iteration order (no sorting)."""
        with self._io(relpath), os.scandir(self.host_path(relpath)) as it:
            return list(it)

    def symlink_metadata(self, relpath: PurePosixPath | str) -> os.stat_result:
        """lstat() a path without following a final symlink."""
        with self._io(relpath):
            return os.lstat(self.host_path(relpath))

    def symlink_metadata_optional(self, relpath: PurePosixPath | str) -> os.stat_result | None:
        """Like symlink_metadata, but return None if the path does not exist."""
        try:
            return os.lstat(self.host_path(relpath))
        except FileNotFoundError:
            return None
        except OSError as e:
            raise TmpfilesIOError(relpath, e) from e

    def read_link(self, relpath: PurePosixPath | str) -> str:
        """Return the contents of a symlink, unresolved."""
        with self._io(relpath):
            return os.readlink(self.host_path(relpath))

    def try_exists(self, relpath: PurePosixPath | str) -> bool:
        """Check whether a path exists, without following a final symlink."""
        return self.symlink_metadata_optional(relpath) is not None

    def mount_points(self) -> frozenset[str]:
        """Host paths of all mounts in the kernel mount table.

        The table is read once per RootDir. Without /proc it is empty and
        only the device comparison in is_mount_point() applies.
        """
        if self._mount_points is None:
            try:
                with open(MOUNTINFO, encoding="utf-8", errors="surrogateescape") as f:
                    self._mount_points = parse_mountinfo(f.read())
            except OSError as e:
                logger.debug("Cannot read %s: %s", MOUNTINFO, e)
                self._mount_points = frozenset()
        return self._mount_points

    def is_mount_point(self, relpath: PurePosixPath | str) -> bool:
        """Check whether a directory is the root of a mount.

        A directory is a mount point if its resolved path is listed in the
        kernel mount table, which also catches bind mounts from the same
        filesystem. Otherwise the rule of os.path.ismount() applies: the
        directory lives on a different device than its parent, or it is
        its own parent.
        """
        host = self.host_path(relpath)
        if os.path.realpath(host) in self.mount_points():
            return True
        with self._io(relpath):
            st = os.lstat(host)
            parent = os.lstat(host.parent)
        return st.st_dev != parent.st_dev or st.st_ino == parent.st_ino

    def remove_file(self, relpath: PurePosixPath | str) -> None:
        """Remove a file or symlink (never its target)."""
        with self._io(relpath):
            os.unlink(self.host_path(relpath))

    def remove_dir_all(self, relpath: PurePosixPath | str) -> bool:
        """Remove a directory and everything below it, except mounts.

        Mount points below the directory are left alone together with
        their content, and so are the directories leading to them.

        Returns:
            True if the directory was removed, False if a mount kept it.
        """
        if not self._holds_mount(PurePosixPath(relpath)):
            with self._io(relpath):
                shutil.rmtree(self.host_path(relpath))
            return True

        for dirent in self.read_dir(relpath):
            child = PurePosixPath(relpath) / dirent.name
            if not stat.S_ISDIR(self.symlink_metadata(child).st_mode):
                self.remove_file(child)
            elif self.is_mount_point(child):
                logger.info("Keeping mount point %s", child)
            else:
                self.remove_dir_all(child)
        return False

    def _holds_mount(self, relpath: PurePosixPath) -> bool:
        for dirent in self.read_dir(relpath):
            child = relpath / dirent.name
            if not dirent.is_dir(follow_symlinks=False):
                continue
            if self.is_mount_point(child) or self._holds_mount(child):
                return True
        return False

    def open_text(self, relpath: PurePosixPath | str) -> IO[str]:
        """Open a file for reading as UTF-8 text.

        Undecodable bytes are kept in surrogateescape form so they can be
        re-encoded losslessly.
        """
        with self._io(relpath):
            return open(self.host_path(relpath), encoding="utf-8", errors="surrogateescape")

    def atomic_replace_with(
        self,
        relpath: PurePosixPath | str,
        writer: Callable[[IO[str]], None],
        mode: int = 0o644,
    ) -> Path:
        """Write a file atomically.

        The content is produced by writer into a temporary file in the
        target directory, flushed to disk, given the requested mode and
        then renamed over the destination. The temporary file is removed
        on any failure.

        Args:
            relpath: Root-relative destination path.
            writer: Callback writing the complete file content.
            mode: Permission bits of the final file.

        Returns:
            Host path of the written file.
        """
        target = self.host_path(relpath)
        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                errors="surrogateescape",
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                writer(f)
                f.flush()
                os.fchmod(f.fileno(), mode)
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
        except BaseException as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            if isinstance(e, OSError):
                raise TmpfilesIOError(relpath, e) from e
            raise
        logger.debug("Wrote %s", target)
        return target
