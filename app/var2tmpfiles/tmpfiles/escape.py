"""Escaping and unescaping of paths in tmpfiles.d lines.

tmpfiles.d paths are either bare (terminated by whitespace) or quoted
with double quotes. Inside either form the escape alphabet is exactly
``\\\\``, ``\\n``, ``\\r``, ``\\t`` and ``\\xHH``. Paths are handled as
bytes so that names which are not valid UTF-8 survive a round trip.
"""

import os
import string
from collections.abc import Callable

from var2tmpfiles.tmpfiles.errors import MalformedTmpfilesPathError

# Bytes considered whitespace by the tmpfiles.d field splitter
ASCII_WHITESPACE: frozenset[int] = frozenset(b" \t\n\r\x0c")

_FAST_PATH_CHARS: frozenset[str] = frozenset(string.ascii_letters + string.digits + "/")
_LITERAL_BYTES: frozenset[int] = frozenset(
    (string.ascii_letters + string.digits + string.punctuation).encode("ascii")
) - {ord("\\")}
_HEX_DIGITS: frozenset[int] = frozenset(string.hexdigits.encode("ascii"))

_NAMED_ESCAPES: dict[int, bytes] = {
    ord("\\"): b"\\\\",
    ord("\n"): b"\\n",
    ord("\t"): b"\\t",
    ord("\r"): b"\\r",
}
_NAMED_UNESCAPES: dict[int, int] = {
    ord("\\"): ord("\\"),
    ord("n"): ord("\n"),
    ord("r"): ord("\r"),
    ord("t"): ord("\t"),
}


class ByteCursor:
    """Forward-only cursor over a byte string.

    Attributes:
        data: The bytes being consumed.
        pos: Index of the next unconsumed byte.
    """

    def __init__(self, data: bytes, pos: int = 0) -> None:
        self.data = data
        self.pos = pos

    def peek(self) -> int | None:
        """Return the next byte without consuming it, or None at the end."""
        if self.pos < len(self.data):
            return self.data[self.pos]
        return None

    def advance(self) -> int | None:
        """Consume and return the next byte, or None at the end."""
        c = self.peek()
        if c is not None:
            self.pos += 1
        return c

    def next_if(self, predicate: Callable[[int], bool]) -> int | None:
        """Consume the next byte only if it satisfies predicate."""
        c = self.peek()
        if c is not None and predicate(c):
            self.pos += 1
            return c
        return None

    def skip_while(self, predicate: Callable[[int], bool]) -> int:
        """Consume bytes while predicate holds; return how many were consumed."""
        start = self.pos
        while self.next_if(predicate) is not None:
            pass
        return self.pos - start


def escape_path(path: str) -> str:
    """Escape a filesystem path for use in a tmpfiles.d line.

    Args:
        path: Path to escape. Non-UTF-8 names are expected in the
            surrogateescape form produced by os.fsdecode().

    Returns:
        The escaped path; pure ASCII, never containing whitespace.

    Raises:
        ValueError: If the path is empty.
    """
    if not path:
        msg = "Cannot escape an empty path"
        raise ValueError(msg)

    if all(c in _FAST_PATH_CHARS for c in path):
        return path

    out = bytearray()
    for c in os.fsencode(path):
        if c in _LITERAL_BYTES:
            out.append(c)
        elif c in _NAMED_ESCAPES:
            out += _NAMED_ESCAPES[c]
        else:
            out += b"\\x%02x" % c
    return out.decode("ascii")


def canonicalize_escape_path(path: str) -> str:
    """Canonicalize and escape a path for tmpfiles.d.

    The only canonicalization is remapping /var/run to /run, since
    systemd-tmpfiles warns about every entry below the legacy location.
    """
    if path == "/var/run" or path.startswith("/var/run/"):
        path = path[len("/var") :]
    return escape_path(path)


def _unescape_until(src: ByteCursor, buf: bytearray, quoted: bool) -> None:
    def should_take(c: int) -> bool:
        if quoted:
            return c != ord('"')
        return c not in ASCII_WHITESPACE

    while (c := src.next_if(should_take)) is not None:
        if c != ord("\\"):
            buf.append(c)
            continue
        c = src.advance()
        if c is None:
            msg = "Trailing backslash in path"
            raise MalformedTmpfilesPathError(msg)
        if c in _NAMED_UNESCAPES:
            buf.append(_NAMED_UNESCAPES[c])
        elif c == ord("x"):
            hi = src.advance()
            lo = src.advance()
            if hi is None or lo is None or hi not in _HEX_DIGITS or lo not in _HEX_DIGITS:
                msg = "Invalid \\x escape in path"
                raise MalformedTmpfilesPathError(msg)
            buf.append(int(bytes((hi, lo)), 16))
        else:
            msg = f"Unknown escape sequence \\{chr(c)} in path"
            raise MalformedTmpfilesPathError(msg)


def unescape_path(src: ByteCursor) -> str:
    """Decode one tmpfiles.d path starting at the cursor.

    A leading double quote selects the quoted form, which runs up to the
    closing quote (consumed). Otherwise the path runs up to the next
    ASCII whitespace byte or the end of input.

    Args:
        src: Cursor positioned at the first byte of the path field.

    Returns:
        The decoded path, with undecodable bytes in surrogateescape form.

    Raises:
        MalformedTmpfilesPathError: On a bad escape or a missing closing quote.
    """
    buf = bytearray()
    if src.next_if(lambda c: c == ord('"')) is not None:
        _unescape_until(src, buf, quoted=True)
        if src.advance() is None:
            msg = "Unterminated quoted path"
            raise MalformedTmpfilesPathError(msg)
    else:
        _unescape_until(src, buf, quoted=False)
    return os.fsdecode(bytes(buf))
