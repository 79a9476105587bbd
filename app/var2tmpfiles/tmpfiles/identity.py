"""User and group name resolution.

Conversion needs the names behind numeric uids and gids. Callers build
one snapshot per run and pass it down explicitly, either from the
running system's user database or from the passwd/group files inside
the image root being converted.
"""

import grp
import logging
import pwd
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import PurePosixPath
from types import MappingProxyType

from var2tmpfiles.tmpfiles.errors import (
    GroupNotFoundError,
    NonUtf8GroupError,
    NonUtf8UserError,
    TmpfilesIOError,
    UserNotFoundError,
)
from var2tmpfiles.tmpfiles.rootfs import RootDir

logger = logging.getLogger(__name__)

# Databases read by from_root(), in lookup priority order. The usr/lib
# copies are used by nss-altfiles on image-based systems.
PASSWD_FILES: tuple[str, ...] = ("etc/passwd", "usr/lib/passwd")
GROUP_FILES: tuple[str, ...] = ("etc/group", "usr/lib/group")


class Identities(ABC):
    """Source of user and group names for numeric ids."""

    @abstractmethod
    def get_user_name(self, uid: int) -> str | None:
        """Return the user name for uid, or None if unknown."""

    @abstractmethod
    def get_group_name(self, gid: int) -> str | None:
        """Return the group name for gid, or None if unknown."""


class IdentitySnapshot(Identities):
    """Immutable uid/gid to name mapping.

    Example:
        >>> ids = IdentitySnapshot(users={0: "root"}, groups={0: "root"})
        >>> ids.get_user_name(0)
        'root'
    """

    def __init__(self, users: Mapping[int, str], groups: Mapping[int, str]) -> None:
        self._users = MappingProxyType(dict(users))
        self._groups = MappingProxyType(dict(groups))

    def __repr__(self) -> str:
        return f"IdentitySnapshot({len(self._users)} users, {len(self._groups)} groups)"

    def get_user_name(self, uid: int) -> str | None:
        return self._users.get(uid)

    def get_group_name(self, gid: int) -> str | None:
        return self._groups.get(gid)

    @classmethod
    def from_system(cls) -> "IdentitySnapshot":
        """Snapshot the user database of the running system."""
        users: dict[int, str] = {}
        for pw in pwd.getpwall():
            users.setdefault(pw.pw_uid, pw.pw_name)
        groups: dict[int, str] = {}
        for gr in grp.getgrall():
            groups.setdefault(gr.gr_gid, gr.gr_name)
        return cls(users, groups)

    @classmethod
    def from_root(cls, rootfs: RootDir) -> "IdentitySnapshot":
        """Snapshot the passwd and group files inside an image root.

        Missing files are skipped. When an id appears more than once, the
        first entry found wins, matching how NSS resolves lookups.
        """
        return cls(_read_id_file(rootfs, PASSWD_FILES), _read_id_file(rootfs, GROUP_FILES))


def _read_id_file(rootfs: RootDir, relpaths: Iterable[str]) -> dict[int, str]:
    """Parse name:x:id:... colon-separated databases into an id to name map."""
    result: dict[int, str] = {}
    for relpath in relpaths:
        if not rootfs.try_exists(relpath):
            continue
        with rootfs.open_text(relpath) as f:
            try:
                lines = f.readlines()
            except OSError as e:
                raise TmpfilesIOError(PurePosixPath(relpath), e) from e
        for line_num, line in enumerate(lines, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            fields = line.split(":")
            if len(fields) < 3 or not fields[2].isdigit():
                logger.warning("Skipping malformed line %d in %s", line_num, relpath)
                continue
            result.setdefault(int(fields[2]), fields[0])
    return result


def _check_utf8(name: str) -> bool:
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def resolve_owner(identities: Identities, uid: int, gid: int) -> tuple[str, str]:
    """Resolve the owning user and group names of a filesystem object.

    Args:
        identities: Name source for the run.
        uid: Numeric owner from lstat().
        gid: Numeric group from lstat().

    Returns:
        Tuple of (username, groupname).

    Raises:
        UserNotFoundError: If uid has no name.
        GroupNotFoundError: If gid has no name.
        NonUtf8UserError: If the user name is not valid UTF-8.
        NonUtf8GroupError: If the group name is not valid UTF-8.
    """
    username = identities.get_user_name(uid)
    if username is None:
        raise UserNotFoundError(uid)
    if not _check_utf8(username):
        raise NonUtf8UserError(uid, username)

    groupname = identities.get_group_name(gid)
    if groupname is None:
        raise GroupNotFoundError(gid)
    if not _check_utf8(groupname):
        raise NonUtf8GroupError(gid, groupname)

    return username, groupname
