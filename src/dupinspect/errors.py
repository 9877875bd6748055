# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/errors.py

"""Exceptions raised while interpreting a backup archive."""

from typing import Optional


class DupInspectError(Exception):
    """Base class for all dupinspect errors."""


class UnrecognizedName(DupInspectError):
    """A backend entry name is not part of the archive naming grammar."""

    def __init__(self, name: str):
        super().__init__(f"not an archive file name: {name!r}")
        self.name = name


class MalformedManifest(DupInspectError):
    """A manifest could not be parsed; the whole manifest is rejected."""

    def __init__(self, name: str, reason: str, line: Optional[int] = None):
        where = f"{name}:{line}" if line is not None else name
        super().__init__(f"malformed manifest {where}: {reason}")
        self.name = name
        self.reason = reason
        self.line = line


class MalformedSignatureEntry(DupInspectError):
    """A signature archive contains an entry that cannot be decoded."""

    def __init__(self, name: str, reason: str, entry: Optional[bytes] = None):
        where = f"{name} ({entry!r})" if entry is not None else name
        super().__init__(f"malformed signature archive {where}: {reason}")
        self.name = name
        self.reason = reason
        self.entry = entry


class BrokenChain(DupInspectError):
    """Backup sets do not form a temporally continuous chain."""

    def __init__(self, reason: str):
        super().__init__(f"broken backup chain: {reason}")
        self.reason = reason


class DecodeFailure(DupInspectError):
    """A payload could not be decompressed or decrypted."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"cannot decode {name}: {reason}")
        self.name = name
        self.reason = reason


class IoFailure(DupInspectError):
    """The backend failed to list or read a file."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"I/O error on {name}: {reason}")
        self.name = name
        self.reason = reason


class IncompleteSet(DupInspectError):
    """A query needs a file that the backup set does not have."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
