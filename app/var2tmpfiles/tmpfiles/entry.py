"""Parsing and formatting of single tmpfiles.d lines."""

from typing import assert_never

from var2tmpfiles.tmpfiles.errors import MalformedTmpfilesEntryError, MalformedTmpfilesPathError
from var2tmpfiles.tmpfiles.escape import (
    ASCII_WHITESPACE,
    ByteCursor,
    canonicalize_escape_path,
    unescape_path,
)
from var2tmpfiles.tmpfiles.models import Directory, FileMeta, Symlink, Unsupported


def _is_space(c: int) -> bool:
    return c in ASCII_WHITESPACE


def _is_not_space(c: int) -> bool:
    return c not in ASCII_WHITESPACE


def tmpfiles_entry_get_path(line: str) -> str:
    """Extract the declared path from a tmpfiles.d line.

    The type field may carry modifier characters (``a+``, ``L+``, ``d!``),
    so the whole first whitespace-delimited token is skipped rather than
    a single character.

    Args:
        line: A non-blank, non-comment tmpfiles.d line.

    Returns:
        The unescaped path of the entry.

    Raises:
        MalformedTmpfilesEntryError: If the line has no type field or its
            path cannot be decoded.
    """
    src = ByteCursor(line.encode("utf-8", "surrogateescape"))
    src.skip_while(_is_space)
    if not src.skip_while(_is_not_space):
        raise MalformedTmpfilesEntryError(line, "missing type field")
    src.skip_while(_is_space)
    try:
        return unescape_path(src)
    except MalformedTmpfilesPathError as e:
        raise MalformedTmpfilesEntryError(line, str(e)) from e


def translate_to_tmpfiles_d(
    abs_path: str,
    meta: FileMeta,
    username: str,
    groupname: str,
) -> str:
    """Translate a filesystem object into an equivalent tmpfiles.d line.

    Args:
        abs_path: Absolute path of the object as seen from the target root.
        meta: Classification of the object; must not be Unsupported.
        username: Owning user name.
        groupname: Owning group name.

    Returns:
        The formatted line, without a trailing newline.

    Raises:
        TypeError: If meta is Unsupported.
    """
    path = canonicalize_escape_path(abs_path)
    match meta:
        case Directory(mode=mode):
            return f"d {path} {mode:04o} {username} {groupname} - -"
        case Symlink(target=target):
            return f"L {path} - - - - {canonicalize_escape_path(target)}"
        case Unsupported():
            msg = f"No tmpfiles.d equivalent for unsupported path {abs_path}"
            raise TypeError(msg)
        case _:
            assert_never(meta)
