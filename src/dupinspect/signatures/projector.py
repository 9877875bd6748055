# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/signatures/projector.py

"""Point-in-time view of the paths stored in a backup chain."""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from loguru import logger

from ..errors import MalformedSignatureEntry
from ..rawpath import to_display
from ..timefmt import format_time
from .sigtar import EntryType, RecordRole, SignatureRecord

# Returns the records of the signature archive of snapshot ``index``.
RecordSource = Callable[[int], Iterable[SignatureRecord]]


@dataclass(frozen=True)
class Entry:
    """State of a path at one snapshot. Only live paths have entries."""
    path: bytes
    entry_type: EntryType
    size: Optional[int]
    permissions: int
    modified_time: datetime
    size_hint: Optional[Tuple[int, int]] = None
    uid: int = 0
    gid: int = 0
    uname: str = ""
    gname: str = ""
    link_target: Optional[bytes] = None

    @classmethod
    def from_record(cls, record: SignatureRecord) -> "Entry":
        stat = record.stat
        return cls(
            path=record.path,
            entry_type=stat.entry_type,
            size=stat.size,
            permissions=stat.permissions,
            modified_time=stat.modified_time,
            size_hint=stat.size_hint,
            uid=stat.uid,
            gid=stat.gid,
            uname=stat.uname,
            gname=stat.gname,
            link_target=stat.link_target,
        )

    @property
    def display_path(self) -> str:
        return to_display(self.path)

    def __str__(self):
        return format_entry(self)


def mode_string(mode: Optional[int]) -> str:
    """Permission bits in ``ls -l`` style, e.g. ``rwxr-sr-t``."""
    if mode is None:
        return "?"
    special = mode >> 9
    out = []
    # user, group, other
    for i in (2, 1, 0):
        bits = mode >> (i * 3)
        out.append("r" if bits & 0b100 else "-")
        out.append("w" if bits & 0b010 else "-")
        executable = bool(bits & 0b001)
        if special & (1 << i):
            letter = "t" if i == 0 else "s"
            out.append(letter if executable else letter.upper())
        else:
            out.append("x" if executable else "-")
    return "".join(out)


def format_entry(entry: Entry, now: Optional[datetime] = None) -> str:
    """One ``ls -l`` like line, tab separated."""
    size = "?" if entry.size is None else str(entry.size)
    line = "\t".join([
        entry.entry_type.symbol + mode_string(entry.permissions),
        entry.uname or str(entry.uid),
        entry.gname or str(entry.gid),
        size,
        format_time(entry.modified_time, now=now),
        entry.display_path,
    ])
    if entry.link_target is not None:
        line += " -> " + to_display(entry.link_target)
    return line


class SnapshotProjector:
    """Folds the signature records of a chain into a live entry table.

    The table only moves forward: querying snapshot ``i`` after ``j < i``
    applies increments ``j+1..i``; going back replays from the full set.
    Each projector owns its table; use one projector per concurrent reader.

    Args:
        num_snapshots: Number of snapshots in the chain
        record_source: Callable returning the records of one snapshot
    """

    def __init__(self, num_snapshots: int, record_source: RecordSource):
        if num_snapshots < 1:
            raise ValueError("a chain has at least one snapshot")
        self.num_snapshots = num_snapshots
        self.record_source = record_source
        self._table: Dict[bytes, Entry] = {}
        self._index = -1

    @property
    def index(self) -> int:
        """Snapshot currently held in the table, -1 before the first query."""
        return self._index

    def reset(self):
        self._table = {}
        self._index = -1

    def advance(self) -> int:
        """Apply the next snapshot to the table and return its index.

        Records of a snapshot are decoded completely before any of them is
        applied; on error the table stays at the previous snapshot.
        """
        index = self._index + 1
        if index >= self.num_snapshots:
            raise IndexError(f"chain has only {self.num_snapshots} snapshots")

        changed: Dict[bytes, Entry] = {}
        deleted: List[bytes] = []
        for record in self.record_source(index):
            expected = RecordRole.BASELINE if index == 0 else RecordRole.CHANGED
            if record.role is RecordRole.DELETED and index > 0:
                deleted.append(record.path)
            elif record.role is expected:
                changed[record.path] = Entry.from_record(record)
            else:
                raise MalformedSignatureEntry(
                    f"snapshot {index}", f"{record.role.value} record in wrong archive", entry=record.path
                )

        if index == 0:
            self._table = changed
        else:
            self._table.update(changed)
            for path in deleted:
                self._table.pop(path, None)
        self._index = index
        logger.debug(f"Snapshot {index}: {len(changed)} changed, {len(deleted)} deleted, {len(self._table)} live")
        return index

    def seek(self, index: int):
        """Bring the table to snapshot ``index``."""
        if not 0 <= index < self.num_snapshots:
            raise IndexError(f"snapshot {index} not in chain of {self.num_snapshots}")
        if index < self._index:
            self.reset()
        while self._index < index:
            self.advance()

    def entries(self, index: int) -> Iterator[Entry]:
        """Live entries at snapshot ``index``, ordered by path."""
        self.seek(index)
        items = sorted(self._table.items())
        return (entry for _, entry in items)

    def paths(self, index: int) -> List[bytes]:
        self.seek(index)
        return sorted(self._table)


def project(record_sets: List[Iterable[SignatureRecord]], index: int) -> List[Entry]:
    """One-shot projection of already available per-snapshot records."""
    projector = SnapshotProjector(len(record_sets), lambda i: record_sets[i])
    return list(projector.entries(index))
