# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/rawpath.py

"""Reversible escape encoding for archive path names.

Paths inside an archive are arbitrary byte strings: they may not be valid
UTF-8 and may contain spaces or quotes. Text formats such as the manifest
write them as a single whitespace-free token. A path that contains no
special byte is written as is; otherwise it is wrapped in double quotes
and every special byte is replaced by ``\\xNN``.

Special bytes are ASCII whitespace, control characters, DEL, both quote
characters and the backslash. Bytes >= 0x80 are written raw.
"""

import re

_SPECIAL = frozenset(range(0x00, 0x21)) | {0x22, 0x27, 0x5C, 0x7F}
_HEX_ESCAPE = re.compile(rb"\\x([0-9a-fA-F]{2})")


def _is_special(byte: int) -> bool:
    return byte in _SPECIAL


def needs_quoting(path: bytes) -> bool:
    """Return True if ``path`` must be written in quoted form."""
    return not path or any(_is_special(b) for b in path)


def escape(path: bytes) -> bytes:
    """Encode a raw path as a single token.

    The empty path is written as ``""`` so that it stays a token.
    """
    if not needs_quoting(path):
        return path
    out = bytearray(b'"')
    for b in path:
        if _is_special(b):
            out += b"\\x%02x" % b
        else:
            out.append(b)
    out += b'"'
    return bytes(out)


def unescape(token: bytes) -> bytes:
    """Decode a token written by :func:`escape`.

    Raises:
        ValueError: if the token is quoted but malformed (unterminated
            quote, stray backslash or invalid hex escape).
    """
    if not token.startswith(b'"'):
        if b"\\" in token:
            raise ValueError(f"escape sequence in unquoted path {token!r}")
        return token
    if len(token) < 2 or not token.endswith(b'"'):
        raise ValueError(f"unterminated quoted path {token!r}")

    body = token[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        b = body[i]
        if b == 0x5C:
            match = _HEX_ESCAPE.match(body, i)
            if match is None:
                raise ValueError(f"invalid escape at offset {i} in {token!r}")
            out.append(int(match.group(1), 16))
            i = match.end()
        elif b == 0x22:
            raise ValueError(f"unescaped quote inside {token!r}")
        else:
            out.append(b)
            i += 1
    return bytes(out)


def to_display(path: bytes) -> str:
    """Human-readable form of a raw path; undecodable bytes become ``\\xNN``."""
    if not path:
        return "."
    return path.decode("utf-8", errors="backslashreplace")


def to_bytes(name: str) -> bytes:
    """Inverse of decoding a path with ``surrogateescape``."""
    return name.encode("utf-8", errors="surrogateescape")
