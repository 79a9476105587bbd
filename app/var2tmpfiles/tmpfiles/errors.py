"""Exceptions raised while reading or generating tmpfiles.d entries.

Every failure mode of a conversion run maps to one subclass of
TmpfilesError. Unsupported file types are not errors; they are
collected and reported with the run result instead.
"""

from pathlib import PurePosixPath


class TmpfilesError(Exception):
    """Base exception for tmpfiles.d translation errors."""


class MalformedTmpfilesPathError(TmpfilesError):
    """Raised when an escaped tmpfiles.d path cannot be decoded."""


class MalformedTmpfilesEntryError(TmpfilesError):
    """Raised when an existing tmpfiles.d line cannot be parsed.

    Attributes:
        line: The offending line, verbatim.
    """

    def __init__(self, line: str, detail: str | None = None) -> None:
        self.line = line
        self.detail = detail
        msg = f"Malformed tmpfiles.d line {line!r}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class PreconditionError(TmpfilesError):
    """Base exception for a root filesystem that cannot be converted."""


class MissingTmpfilesDirError(PreconditionError):
    """Raised when the tmpfiles.d directory does not exist in the root."""

    def __init__(self, tmpfiles_dir: PurePosixPath) -> None:
        self.tmpfiles_dir = tmpfiles_dir
        super().__init__(f"Missing {tmpfiles_dir}")


class VarRunNotSymlinkError(PreconditionError):
    """Raised when /var/run exists and is not a symlink."""

    def __init__(self) -> None:
        super().__init__("Found /var/run as a non-symlink")


class IdentityError(TmpfilesError):
    """Base exception for uid/gid resolution failures."""


class UserNotFoundError(IdentityError):
    """Raised when no user name is known for a uid."""

    def __init__(self, uid: int) -> None:
        self.uid = uid
        super().__init__(f"User not found for id {uid}")


class GroupNotFoundError(IdentityError):
    """Raised when no group name is known for a gid."""

    def __init__(self, gid: int) -> None:
        self.gid = gid
        super().__init__(f"Group not found for id {gid}")


class NonUtf8UserError(IdentityError):
    """Raised when a user name cannot be encoded as UTF-8."""

    def __init__(self, uid: int, name: str) -> None:
        self.uid = uid
        self.name = name
        super().__init__(f"Invalid non-UTF8 username: {uid} {name!r}")


class NonUtf8GroupError(IdentityError):
    """Raised when a group name cannot be encoded as UTF-8."""

    def __init__(self, gid: int, name: str) -> None:
        self.gid = gid
        self.name = name
        super().__init__(f"Invalid non-UTF8 groupname: {gid} {name!r}")


class TmpfilesIOError(TmpfilesError):
    """Raised when a filesystem operation fails.

    Attributes:
        path: Root-relative path the operation was applied to.
        err: The underlying OSError.
    """

    def __init__(self, path: PurePosixPath | str, err: OSError) -> None:
        self.path = PurePosixPath(path)
        self.err = err
        super().__init__(f"I/O error on {path}: {err.strerror or err}")


class GeneratedFileExistsError(TmpfilesError):
    """Raised when the next generated file name is already taken."""

    def __init__(self, path: PurePosixPath) -> None:
        self.path = path
        super().__init__(f"Generated tmpfiles.d file already exists: {path}")


class DepthLimitExceededError(TmpfilesError):
    """Raised when the tree walk goes deeper than the configured limit."""

    def __init__(self, path: PurePosixPath, max_depth: int) -> None:
        self.path = path
        self.max_depth = max_depth
        super().__init__(f"Directory nesting deeper than {max_depth} at {path}")
