# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# dupinspect/tests/conftest.py

"""Builders for archive files used across the tests."""

import gzip
import io
import struct
import tarfile
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from dupinspect.clients.memory import MemoryBackend
from dupinspect.collections.file_naming import FileDescriptor, FileKind, TimeRange

T0 = datetime(2015, 1, 1, tzinfo=timezone.utc)
T1 = T0 + timedelta(days=1)
T2 = T0 + timedelta(days=2)
T3 = T0 + timedelta(days=3)
MTIME = int(datetime(2014, 12, 31, 12, 0, tzinfo=timezone.utc).timestamp())

RS_SIG_MAGIC = 0x72730136


def set_names(
    time: datetime,
    start: Optional[datetime] = None,
    volumes: int = 1,
    prefix: str = "duplicity",
    manifest: bool = True,
    signature: bool = True,
) -> List[str]:
    """File names of one backup set; incremental when ``start`` is given."""
    time_range = TimeRange(start, time) if start is not None else None
    names = []
    if manifest:
        names.append(FileDescriptor(FileKind.MANIFEST, time, time_range, prefix=prefix).to_name())
    if signature:
        names.append(
            FileDescriptor(FileKind.SIGNATURE, time, time_range, compressed=True, prefix=prefix).to_name()
        )
    kind = FileKind.INCREMENTAL if time_range else FileKind.FULL
    for n in range(1, volumes + 1):
        names.append(
            FileDescriptor(kind, time, time_range, volume_number=n, compressed=True, prefix=prefix).to_name()
        )
    return names


def rsync_signature(blocks: int, block_len: int = 2048, strong_len: int = 8) -> bytes:
    """librsync signature payload for a file of ``blocks`` blocks."""
    header = struct.pack(">III", RS_SIG_MAGIC, block_len, strong_len)
    return header + bytes((4 + strong_len) * blocks)


def member(
    name: str,
    data: bytes = b"",
    type: bytes = tarfile.REGTYPE,
    mode: int = 0o644,
    mtime: int = MTIME,
    linkname: str = "",
    uname: str = "pb",
    gname: str = "hrdag",
) -> Tuple[tarfile.TarInfo, bytes]:
    info = tarfile.TarInfo(name)
    info.type = type
    info.size = len(data)
    info.mode = mode
    info.mtime = mtime
    info.linkname = linkname
    info.uid = 1000
    info.gid = 1000
    info.uname = uname
    info.gname = gname
    return info, data


def make_sigtar(members: Iterable[Tuple[tarfile.TarInfo, bytes]], compress: bool = True) -> bytes:
    """GNU tar stream of ``members``, gzipped unless ``compress`` is False."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.GNU_FORMAT) as tar:
        for info, data in members:
            tar.addfile(info, io.BytesIO(data) if data else None)
    raw = buf.getvalue()
    return gzip.compress(raw) if compress else raw


def make_manifest(volumes: Iterable[Tuple[int, str, str]], hostname: str = "pbnas") -> bytes:
    lines = [f"Hostname {hostname}", "Localdir /home/pb"]
    for number, start, end in volumes:
        lines.append(f"Volume {number}:")
        lines.append(f"    StartingPath   {start}")
        lines.append(f"    EndingPath     {end}")
    return ("\n".join(lines) + "\n").encode()


def add_set(
    backend: MemoryBackend,
    time: datetime,
    members: Iterable[Tuple[tarfile.TarInfo, bytes]],
    start: Optional[datetime] = None,
    volumes: int = 1,
    manifest: Optional[bytes] = None,
):
    """Put the manifest, signature archive and volumes of a set in ``backend``."""
    for name in set_names(time, start=start, volumes=volumes):
        descriptor = FileDescriptor.from_name(name)
        if descriptor.kind is FileKind.MANIFEST:
            content = manifest if manifest is not None else make_manifest(
                (n, ".", "home") for n in range(1, volumes + 1)
            )
        elif descriptor.kind is FileKind.SIGNATURE:
            content = make_sigtar(members)
        else:
            content = gzip.compress(b"volume data")
        backend.add(name, content)


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def three_snapshot_backend(backend):
    """Full set at T0, increments T0->T1 and T1->T2."""
    add_set(backend, T0, [
        member("snapshot/", type=tarfile.DIRTYPE, mode=0o755),
        member("snapshot/home", type=tarfile.DIRTYPE, mode=0o755),
        member("signature/home/a.txt", rsync_signature(3)),
        member("signature/home/b.txt", rsync_signature(1)),
        member("snapshot/home/link", type=tarfile.SYMTYPE, mode=0o777, linkname="a.txt"),
    ])
    add_set(backend, T1, [
        member("signature/home/a.txt", rsync_signature(5)),
        member("snapshot/home/c.txt", b"hello"),
        member("deleted/home/b.txt"),
    ], start=T0)
    add_set(backend, T2, [
        member("snapshot/home/b.txt", b"back again"),
        member("deleted/home/link"),
    ], start=T1)
    return backend


def pax_member(records: Dict[str, bytes]) -> Tuple[tarfile.TarInfo, bytes]:
    """Pax extended header member applying ``records`` to the next member."""
    payload = b""
    for key, value in records.items():
        body = key.encode() + b"=" + value + b"\n"
        length = len(body) + 1
        digits = 0
        while True:
            total = length + len(str(digits))
            if total == digits:
                break
            digits = total
        payload += str(digits).encode() + b" " + body
    info = tarfile.TarInfo("././@PaxHeader")
    info.type = tarfile.XHDTYPE
    info.size = len(payload)
    return info, payload
