# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/signatures/sigtar.py

"""Streaming decoder for signature archives.

A signature archive is a tar stream. The first component of each member
name tells what the member describes:

- ``signature/<path>``: librsync signature of a regular file
- ``snapshot/<path>``: full copy of a small or non-regular entry
- ``deleted/<path>``: the path no longer exists

The tar header of each member carries the stat data of the source path
(type, permissions, mtime, owner). Members under any other root are
skipped.

Headers are decoded one 512-byte block at a time with
``tarfile.TarInfo.frombuf``; payloads are skipped without being held in
memory, apart from the first bytes of librsync signatures which give the
size of the source file.
"""

import struct
import tarfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import BinaryIO, Dict, Iterator, Optional, Tuple

from loguru import logger

from ..errors import MalformedSignatureEntry
from ..rawpath import to_bytes

BLOCKSIZE = tarfile.BLOCKSIZE
_NUL_BLOCK = bytes(BLOCKSIZE)
_SKIP_CHUNK = 64 * 1024

# librsync signature magics: MD4, BLAKE2, and their rabin-karp variants
_SIGNATURE_MAGICS = frozenset({0x72730136, 0x72730137, 0x72730146, 0x72730147})
_SIGNATURE_HEADER = struct.Struct(">III")


class RecordRole(Enum):
    """How a record changes the set of live paths."""
    BASELINE = "baseline"  # present in the full snapshot
    CHANGED = "changed"  # added or modified by an increment
    DELETED = "deleted"  # removed by an increment


class EntryType(Enum):
    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    SPECIAL = "special"  # fifo, character or block device

    @property
    def symbol(self) -> str:
        """Type letter as shown by ``ls -l``."""
        return {"file": "-", "dir": "d", "symlink": "l", "special": "p"}[self.value]


_ENTRY_TYPES = {
    tarfile.REGTYPE: EntryType.FILE,
    tarfile.AREGTYPE: EntryType.FILE,
    tarfile.CONTTYPE: EntryType.FILE,
    tarfile.LNKTYPE: EntryType.FILE,
    tarfile.GNUTYPE_SPARSE: EntryType.FILE,
    tarfile.DIRTYPE: EntryType.DIR,
    tarfile.SYMTYPE: EntryType.SYMLINK,
    tarfile.FIFOTYPE: EntryType.SPECIAL,
    tarfile.CHRTYPE: EntryType.SPECIAL,
    tarfile.BLKTYPE: EntryType.SPECIAL,
}

_ROOTS = (b"signature", b"snapshot", b"deleted")
_XATTR_PREFIX = b"SCHILY.xattr."


@dataclass(frozen=True)
class StatBlock:
    """Metadata of a source path, as stored in its tar header.

    ``raw_header`` is the unmodified 512-byte header block, so fields not
    interpreted here (device numbers, header format details) are not lost.
    For pax members, ``extended_header`` holds the extended header payload
    as stored and ``pax_headers`` its records in order (``atime``,
    ``SCHILY.xattr.*`` and others included).
    """
    entry_type: EntryType
    permissions: int
    modified_time: datetime
    size: Optional[int]
    size_hint: Optional[Tuple[int, int]]
    uid: int = 0
    gid: int = 0
    uname: str = ""
    gname: str = ""
    link_target: Optional[bytes] = None
    type_flag: bytes = tarfile.REGTYPE
    raw_header: bytes = field(default=b"", repr=False)
    extended_header: bytes = field(default=b"", repr=False)
    pax_headers: Tuple[Tuple[bytes, bytes], ...] = field(default=(), repr=False)

    @property
    def xattrs(self) -> Dict[bytes, bytes]:
        return {
            key[len(_XATTR_PREFIX):]: value
            for key, value in self.pax_headers
            if key.startswith(_XATTR_PREFIX)
        }


@dataclass(frozen=True)
class SignatureRecord:
    """One path described by a signature archive.

    Deleted records carry no stat data.
    """
    path: bytes
    role: RecordRole
    stat: Optional[StatBlock] = None

    @property
    def entry_type(self) -> Optional[EntryType]:
        return self.stat.entry_type if self.stat else None

    @property
    def size(self) -> Optional[int]:
        return self.stat.size if self.stat else None

    @property
    def permissions(self) -> Optional[int]:
        return self.stat.permissions if self.stat else None

    @property
    def modified_time(self) -> Optional[datetime]:
        return self.stat.modified_time if self.stat else None


def split_member_name(name: bytes) -> Optional[Tuple[bytes, bytes]]:
    """Split a member name into (root, path); None for unknown roots."""
    root, _, rest = name.partition(b"/")
    if root not in _ROOTS:
        return None
    if rest.endswith(b"/"):
        rest = rest[:-1]
    return root, rest


def signature_size_hint(head: bytes, payload_size: int) -> Optional[Tuple[int, int]]:
    """Bounds on the size of a file, from the start of its librsync signature.

    A signature is a 12-byte header (magic, block length, strong sum
    length) followed by one ``4 + strong_len`` byte entry per block of the
    source file; the last block may be short.
    """
    if len(head) < _SIGNATURE_HEADER.size:
        return None
    magic, block_len, strong_len = _SIGNATURE_HEADER.unpack(head[:_SIGNATURE_HEADER.size])
    if magic not in _SIGNATURE_MAGICS or block_len == 0:
        return None
    num_blocks = (payload_size - _SIGNATURE_HEADER.size) // (4 + strong_len)
    max_len = block_len * num_blocks
    if max_len > block_len:
        return (max_len - block_len + 1, max_len)
    return (0, max_len)


class SignatureArchiveReader:
    """Lazy sequence of :class:`SignatureRecord` read from a tar stream.

    Args:
        stream: Decompressed, decrypted archive content
        incremental: True for the archive of an incremental set; decides
            whether described paths are baseline or changed records
        name: File name used in log and error messages
    """

    def __init__(self, stream: BinaryIO, incremental: bool, name: str = "<sigtar>"):
        self.stream = stream
        self.incremental = incremental
        self.name = name
        self.records_read = 0

    def __iter__(self) -> Iterator[SignatureRecord]:
        return self._records()

    def _fail(self, reason: str, entry: Optional[bytes] = None):
        raise MalformedSignatureEntry(self.name, reason, entry=entry)

    def _read(self, size: int) -> bytes:
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self.stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _read_exact(self, size: int, entry: Optional[bytes] = None) -> bytes:
        data = self._read(size)
        if len(data) != size:
            self._fail("archive ends in the middle of an entry", entry)
        return data

    def _skip(self, size: int, entry: Optional[bytes] = None):
        while size > 0:
            chunk = self.stream.read(min(size, _SKIP_CHUNK))
            if not chunk:
                self._fail("archive ends in the middle of an entry", entry)
            size -= len(chunk)

    @staticmethod
    def _padding(size: int) -> int:
        return (BLOCKSIZE - size % BLOCKSIZE) % BLOCKSIZE

    def _read_payload(self, size: int, entry: Optional[bytes] = None) -> bytes:
        data = self._read_exact(size, entry)
        self._skip(self._padding(size), entry)
        return data

    def _parse_header(self, block: bytes) -> tarfile.TarInfo:
        try:
            return tarfile.TarInfo.frombuf(block, "utf-8", "surrogateescape")
        except tarfile.HeaderError as e:
            self._fail(f"invalid tar header after {self.records_read} records: {e}")

    def _parse_pax(self, data: bytes) -> Dict[bytes, bytes]:
        headers = {}
        pos = 0
        while pos < len(data) and data[pos] != 0:
            space = data.find(b" ", pos)
            if space < 0 or not data[pos:space].isdigit():
                self._fail("invalid pax header record")
            length = int(data[pos:space])
            record = data[space + 1:pos + length]
            if length <= space - pos or not record.endswith(b"\n") or b"=" not in record:
                self._fail("invalid pax header record")
            key, _, value = record[:-1].partition(b"=")
            headers[key] = value
            pos += length
        return headers

    def _pax_value(self, pax: Dict[bytes, bytes], key: bytes, default, convert, member: bytes):
        value = pax.get(key)
        if value is None:
            return default
        try:
            return convert(value.decode("ascii"))
        except (UnicodeDecodeError, ValueError):
            self._fail(f"invalid pax {key.decode()} value {value!r}", member)

    def _records(self) -> Iterator[SignatureRecord]:
        long_name: Optional[bytes] = None
        long_link: Optional[bytes] = None
        pax_raw = b""
        pax: Dict[bytes, bytes] = {}

        while True:
            block = self._read(BLOCKSIZE)
            if not block or block == _NUL_BLOCK:
                break
            if len(block) < BLOCKSIZE:
                self._fail("truncated tar header")
            info = self._parse_header(block)

            if info.type == tarfile.GNUTYPE_LONGNAME:
                long_name = self._read_payload(info.size).rstrip(b"\0")
                continue
            if info.type == tarfile.GNUTYPE_LONGLINK:
                long_link = self._read_payload(info.size).rstrip(b"\0")
                continue
            if info.type == tarfile.XHDTYPE:
                pax_raw = self._read_payload(info.size)
                pax = self._parse_pax(pax_raw)
                continue
            if info.type in (tarfile.XGLTYPE, tarfile.SOLARIS_XHDTYPE):
                logger.debug(f"{self.name}: ignoring global pax header")
                self._read_payload(info.size)
                continue

            member = long_name or pax.get(b"path") or to_bytes(info.name)
            size = self._pax_value(pax, b"size", info.size, int, member)
            if size < 0:
                self._fail(f"negative member size {size}", member)
            record, consumed = self._make_record(info, block, member, long_link, size, pax_raw, pax)
            long_name = long_link = None
            pax_raw = b""
            pax = {}

            self._skip(size - consumed, member)
            self._skip(self._padding(size), member)
            self.records_read += 1
            if record is not None:
                yield record

    def _make_record(
        self,
        info: tarfile.TarInfo,
        block: bytes,
        member: bytes,
        long_link: Optional[bytes],
        size: int,
        pax_raw: bytes,
        pax: Dict[bytes, bytes],
    ) -> Tuple[Optional[SignatureRecord], int]:
        """Build the record of one member; returns it and the payload bytes consumed.

        Values from a pax extended header override the ustar fields, as in
        ``tarfile``; the extended header itself is kept unparsed as well.
        """
        split = split_member_name(member)
        if split is None:
            logger.debug(f"{self.name}: skipping member with unknown root {member!r}")
            return None, 0
        root, path = split

        if root == b"deleted":
            if not self.incremental:
                logger.debug(f"{self.name}: ignoring deletion of {path!r} in a full archive")
                return None, 0
            return SignatureRecord(path, RecordRole.DELETED), 0

        entry_type = _ENTRY_TYPES.get(info.type)
        if entry_type is None:
            self._fail(f"unsupported entry type {info.type!r}", member)

        mtime = self._pax_value(pax, b"mtime", info.mtime, float, member)
        try:
            modified_time = datetime.fromtimestamp(mtime, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            self._fail(f"invalid modification time: {e}", member)
        uid = self._pax_value(pax, b"uid", info.uid, int, member)
        gid = self._pax_value(pax, b"gid", info.gid, int, member)
        uname = pax[b"uname"].decode("utf-8", "surrogateescape") if b"uname" in pax else info.uname
        gname = pax[b"gname"].decode("utf-8", "surrogateescape") if b"gname" in pax else info.gname
        link = long_link or pax.get(b"linkpath") or (to_bytes(info.linkname) or None)

        consumed = 0
        if entry_type is not EntryType.FILE:
            size_hint = (0, 0)
        elif root == b"snapshot":
            size_hint = (size, size)
        else:
            head = self._read_exact(min(size, _SIGNATURE_HEADER.size), member)
            consumed = len(head)
            size_hint = signature_size_hint(head, size)

        stat = StatBlock(
            entry_type=entry_type,
            permissions=info.mode & 0o7777,
            modified_time=modified_time,
            size=size_hint[1] if size_hint else None,
            size_hint=size_hint,
            uid=uid,
            gid=gid,
            uname=uname,
            gname=gname,
            link_target=link if entry_type is EntryType.SYMLINK else None,
            type_flag=info.type,
            raw_header=block,
            extended_header=pax_raw,
            pax_headers=tuple(pax.items()),
        )
        role = RecordRole.CHANGED if self.incremental else RecordRole.BASELINE
        return SignatureRecord(path, role, stat), consumed


def iter_signature_records(
    stream: BinaryIO, incremental: bool, name: str = "<sigtar>"
) -> Iterator[SignatureRecord]:
    """Iterate over the records of one signature archive."""
    return iter(SignatureArchiveReader(stream, incremental, name=name))
