"""Data structures for tmpfiles.d translation.

FileMeta is the closed set of classifications a filesystem object can
receive. Only directories and symlinks have a tmpfiles.d equivalent;
everything else is Unsupported and is reported instead of translated.
"""

import stat
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

# Mapping from declared path to the single tmpfiles.d line declaring it
ExistingEntries = dict[PurePosixPath, str]


@dataclass(frozen=True, slots=True)
class Directory:
    """A directory; only its permission bits are carried over.

    Attributes:
        mode: Permission bits including setuid, setgid and sticky.
    """

    mode: int


@dataclass(frozen=True, slots=True)
class Symlink:
    """A symbolic link, recorded by its unresolved target.

    Attributes:
        target: Link contents as returned by readlink.
    """

    target: str


@dataclass(frozen=True, slots=True)
class Unsupported:
    """Any other file type (regular file, device, fifo, socket)."""


FileMeta = Directory | Symlink | Unsupported


def classify(st_mode: int, read_link: Callable[[], str]) -> FileMeta:
    """Classify a filesystem object from its lstat() mode.

    Args:
        st_mode: The st_mode field of an lstat() result.
        read_link: Called to fetch the link target for symlinks.

    Returns:
        The matching FileMeta variant.
    """
    if stat.S_ISDIR(st_mode):
        return Directory(mode=stat.S_IMODE(st_mode))
    if stat.S_ISLNK(st_mode):
        return Symlink(target=read_link())
    return Unsupported()


@dataclass(slots=True)
class TmpfilesGeneration:
    """Number of generated tmpfiles.d files already present.

    Attributes:
        count: How many generated files were found.
        highest: Largest numeric suffix among them, -1 if none.
    """

    count: int = 0
    highest: int = -1

    def record(self, index: int | None) -> None:
        """Account for one more generated file with the given suffix."""
        self.count += 1
        if index is not None and index > self.highest:
            self.highest = index

    @property
    def next_index(self) -> int:
        """Suffix for the next generated file."""
        return max(self.count, self.highest + 1)


@dataclass(frozen=True, slots=True)
class TmpfilesResult:
    """Result of a read-only tmpfiles.d query.

    Attributes:
        tmpfiles: Entries that would be generated, sorted and unique.
        unsupported: Absolute paths that could not be translated.
    """

    tmpfiles: list[str] = field(default_factory=list)
    unsupported: list[PurePosixPath] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TmpfilesWrittenResult:
    """Result of a tmpfiles.d generation run.

    Attributes:
        generated: Entry count and output file, None when nothing was
            generated. For dry runs this names the file that would have
            been written.
        unsupported: Number of unsupported paths that were skipped.
        dry_run: Whether the run left the filesystem untouched.
    """

    generated: tuple[int, Path] | None = None
    unsupported: int = 0
    dry_run: bool = False
