# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/manifest.py

"""Parsing of backup set manifests.

A manifest is a small text file describing which source paths each data
volume of a backup set covers::

    Hostname myhost
    Localdir /home/me
    Filelist 2
        changed  docs/a.txt
        new      "docs/with\\x20space"
    Volume 1:
        StartingPath   .
        EndingPath     docs/big.iso 12
        Hash SHA1 e4a2e8e2abfba2cb24772e5ff9da4b85b3c19a0c
    Volume 2:
        StartingPath   docs/big.iso 13
        EndingPath     docs/zzz
        Hash SHA1 ...

Parsing is strict: any structural problem rejects the whole manifest with
:class:`~dupinspect.errors.MalformedManifest`.
"""

import hashlib
import io
import re
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterator, List, Optional, Tuple, Union

from loguru import logger

from .errors import MalformedManifest
from .rawpath import escape, unescape

_DIGITS = re.compile(rb"^[0-9]+$")
_HEX = re.compile(rb"^(?:[0-9a-fA-F]{2})+$")
_HASH_CHUNK = 1024 * 1024


@dataclass(frozen=True)
class VolumeHash:
    algorithm: str  # e.g. "SHA1"
    digest: bytes


@dataclass(frozen=True)
class ManifestRecord:
    """Path range stored in one data volume.

    ``starting_block`` / ``ending_block`` are set when a large file is split
    across volumes and the volume starts or ends inside it.
    """
    volume_number: int
    starting_path: bytes
    ending_path: bytes
    hashes: Tuple[VolumeHash, ...] = ()
    starting_block: Optional[int] = None
    ending_block: Optional[int] = None

    @property
    def hash(self) -> Optional[VolumeHash]:
        return self.hashes[0] if self.hashes else None

    def contains(self, path: bytes) -> bool:
        key = _path_key(path)
        return _path_key(self.starting_path) <= key <= _path_key(self.ending_path)


class ChangeType(Enum):
    NEW = "new"
    CHANGED = "changed"
    DELETED = "deleted"


@dataclass(frozen=True)
class FileChange:
    change: ChangeType
    path: bytes


@dataclass(frozen=True)
class Manifest:
    """Parsed content of one manifest file."""
    hostname: Optional[str] = None
    local_dir: Optional[bytes] = None
    volumes: Tuple[ManifestRecord, ...] = ()
    files: Tuple[FileChange, ...] = ()

    @property
    def last_volume_number(self) -> int:
        return len(self.volumes)

    def volume(self, number: int) -> Optional[ManifestRecord]:
        """Volume by its number; numbers start from one."""
        if 1 <= number <= len(self.volumes):
            return self.volumes[number - 1]
        return None

    def first_volume_of_path(self, path: bytes) -> Optional[int]:
        """Number of the first volume holding data of ``path``, if any."""
        for record in self.volumes:
            if record.contains(path):
                return record.volume_number
        return None

    def last_volume_of_path(self, path: bytes) -> Optional[int]:
        """Number of the last volume holding data of ``path``, if any."""
        for record in reversed(self.volumes):
            if record.contains(path):
                return record.volume_number
        return None

    def verify_volume(self, number: int, stream: BinaryIO) -> bool:
        """Check the raw bytes of a volume against its recorded hash.

        Raises:
            KeyError: if the manifest has no such volume or no hash for it
            ValueError: if the hash algorithm is not supported by hashlib
        """
        record = self.volume(number)
        if record is None or record.hash is None:
            raise KeyError(f"no hash recorded for volume {number}")
        hasher = hashlib.new(record.hash.algorithm.lower())
        while True:
            chunk = stream.read(_HASH_CHUNK)
            if not chunk:
                break
            hasher.update(chunk)
        return hasher.digest() == record.hash.digest

    def to_bytes(self) -> bytes:
        """Canonical text form of this manifest."""
        lines = []
        if self.hostname is not None:
            lines.append(b"Hostname " + self.hostname.encode("utf-8"))
        if self.local_dir is not None:
            lines.append(b"Localdir " + escape(self.local_dir))
        if self.files:
            lines.append(b"Filelist %d" % len(self.files))
            for change in self.files:
                lines.append(b"    %-7s  %s" % (change.change.value.encode(), escape(change.path)))
        for record in self.volumes:
            lines.append(b"Volume %d:" % record.volume_number)
            lines.append(b"    StartingPath   " + _path_with_block(record.starting_path, record.starting_block))
            lines.append(b"    EndingPath     " + _path_with_block(record.ending_path, record.ending_block))
            for volume_hash in record.hashes:
                lines.append(b"    Hash %s %s" % (volume_hash.algorithm.encode(), volume_hash.digest.hex().encode()))
        return b"\n".join(lines) + b"\n"


def _path_with_block(path: bytes, block: Optional[int]) -> bytes:
    token = escape(path)
    if block is None:
        return token
    return token + b" %d" % block


def _path_key(path: bytes) -> Tuple[bytes, ...]:
    # paths sort component-wise, "." is the backup root
    if path in (b"", b"."):
        return ()
    return tuple(path.split(b"/"))


class _VolumeBuilder:
    def __init__(self, number: int):
        self.number = number
        self.starting: Optional[Tuple[bytes, Optional[int]]] = None
        self.ending: Optional[Tuple[bytes, Optional[int]]] = None
        self.hashes: List[VolumeHash] = []

    def build(self) -> ManifestRecord:
        return ManifestRecord(
            volume_number=self.number,
            starting_path=self.starting[0],
            ending_path=self.ending[0],
            hashes=tuple(self.hashes),
            starting_block=self.starting[1],
            ending_block=self.ending[1],
        )


class _ManifestParser:
    """Line-oriented parser; the input is consumed as a stream."""

    def __init__(self, stream: BinaryIO, name: str):
        self.stream = stream
        self.name = name
        self.lineno = 0

    def fail(self, reason: str):
        raise MalformedManifest(self.name, reason, line=self.lineno or None)

    def lines(self) -> Iterator[List[bytes]]:
        for raw in self.stream:
            self.lineno += 1
            words = raw.rstrip(b"\r\n").split()
            if words:
                yield words

    def parse(self) -> Manifest:
        hostname = None
        local_dir = None
        files: List[FileChange] = []
        volumes: List[ManifestRecord] = []
        current: Optional[_VolumeBuilder] = None
        pending_files = 0

        for words in self.lines():
            keyword = words[0]
            if pending_files:
                files.append(self.parse_change(words))
                pending_files -= 1
                continue

            if keyword in (b"Hostname", b"Localdir", b"Filelist"):
                if current is not None or volumes:
                    self.fail(f"{keyword.decode()} after the first volume")
                if keyword == b"Hostname":
                    if hostname is not None:
                        self.fail("duplicate Hostname")
                    hostname = self.parse_text(words)
                elif keyword == b"Localdir":
                    if local_dir is not None:
                        self.fail("duplicate Localdir")
                    if len(words) != 2:
                        self.fail("Localdir takes exactly one path")
                    local_dir = self.parse_path(words[1:])
                else:
                    pending_files = self.parse_number(words, "Filelist")
            elif keyword == b"Volume":
                if current is not None:
                    volumes.append(self.finish(current))
                number = self.parse_volume_number(words)
                expected = len(volumes) + 1
                if number != expected:
                    self.fail(f"volume {number} out of sequence, expected {expected}")
                current = _VolumeBuilder(number)
            elif keyword in (b"StartingPath", b"EndingPath", b"Hash"):
                if current is None:
                    self.fail(f"{keyword.decode()} outside of a volume block")
                self.parse_volume_line(current, keyword, words)
            else:
                self.fail(f"unknown keyword {keyword!r}")

        if pending_files:
            self.fail(f"file list ends {pending_files} entries early")
        if current is not None:
            volumes.append(self.finish(current))

        return Manifest(
            hostname=hostname,
            local_dir=local_dir,
            volumes=tuple(volumes),
            files=tuple(files),
        )

    def finish(self, builder: _VolumeBuilder) -> ManifestRecord:
        if builder.starting is None or builder.ending is None:
            self.fail(f"volume {builder.number} lacks a starting or ending path")
        return builder.build()

    def parse_volume_line(self, builder: _VolumeBuilder, keyword: bytes, words: List[bytes]):
        if keyword == b"StartingPath":
            if builder.starting is not None:
                self.fail("duplicate StartingPath")
            builder.starting = self.parse_path_block(words)
        elif keyword == b"EndingPath":
            if builder.starting is None or builder.ending is not None:
                self.fail("EndingPath must follow a single StartingPath")
            builder.ending = self.parse_path_block(words)
        else:
            if builder.ending is None:
                self.fail("Hash before EndingPath")
            builder.hashes.append(self.parse_hash(words))

    def parse_text(self, words: List[bytes]) -> str:
        if len(words) != 2:
            self.fail(f"{words[0].decode()} takes exactly one value")
        try:
            return unescape(words[1]).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            self.fail(str(e))

    def parse_path(self, words: List[bytes]) -> bytes:
        if not words:
            self.fail("missing path")
        try:
            return unescape(words[0])
        except ValueError as e:
            self.fail(str(e))

    def parse_number(self, words: List[bytes], what: str) -> int:
        if len(words) != 2 or not _DIGITS.match(words[1]):
            self.fail(f"{what} needs a number")
        return int(words[1])

    def parse_volume_number(self, words: List[bytes]) -> int:
        if len(words) != 2:
            self.fail("Volume needs a number")
        token = words[1][:-1] if words[1].endswith(b":") else words[1]
        if not _DIGITS.match(token):
            self.fail(f"volume number {token!r} is not numeric")
        return int(token)

    def parse_path_block(self, words: List[bytes]) -> Tuple[bytes, Optional[int]]:
        if len(words) not in (2, 3):
            self.fail(f"{words[0].decode()} takes a path and an optional block")
        path = self.parse_path(words[1:2])
        block = None
        if len(words) == 3:
            if not _DIGITS.match(words[2]):
                self.fail(f"block number {words[2]!r} is not numeric")
            block = int(words[2])
        return path, block

    def parse_hash(self, words: List[bytes]) -> VolumeHash:
        if len(words) != 3:
            self.fail("Hash takes a type and a hex digest")
        if not _HEX.match(words[2]):
            self.fail(f"hash {words[2]!r} is not hexadecimal")
        return VolumeHash(words[1].decode("ascii", errors="replace"), bytes.fromhex(words[2].decode("ascii")))

    def parse_change(self, words: List[bytes]) -> FileChange:
        if len(words) != 2:
            self.fail("file list entries take a change type and a path")
        try:
            change = ChangeType(words[0].decode("ascii"))
        except (ValueError, UnicodeDecodeError):
            self.fail(f"unknown change type {words[0]!r}")
        return FileChange(change, self.parse_path(words[1:]))


def parse_manifest(source: Union[bytes, BinaryIO], name: str = "<manifest>") -> Manifest:
    """Parse a manifest from bytes or from a binary stream.

    Args:
        source: Decoded manifest content, or a stream yielding it
        name: File name used in error messages

    Returns:
        The parsed manifest

    Raises:
        MalformedManifest: if the content does not follow the grammar
    """
    stream = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    manifest = _ManifestParser(stream, name).parse()
    logger.debug(f"Parsed manifest {name}: {len(manifest.volumes)} volumes, {len(manifest.files)} listed files")
    return manifest
