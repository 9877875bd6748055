# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/collections/backup.py

"""Grouping of archive files into backup sets and chains."""

from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from loguru import logger

from ..errors import BrokenChain
from .file_naming import FileDescriptor, FileKind, TimeRange, parse_filename


@dataclass(frozen=True)
class BackupSet:
    """All files of one dated snapshot.

    A full set is dated by ``time``; an incremental set covers
    ``time_range`` and ``time`` is the end of that range. A set without a
    manifest or a signature file, or with recorded ``issues``, is
    incomplete but still part of the collection.
    """
    prefix: str
    time: datetime
    time_range: Optional[TimeRange] = None
    manifest: Optional[FileDescriptor] = None
    signature: Optional[FileDescriptor] = None
    volumes: Tuple[FileDescriptor, ...] = ()
    issues: Tuple[str, ...] = ()

    @property
    def key(self) -> tuple:
        return (self.prefix, self.time_range or self.time)

    @property
    def is_full(self) -> bool:
        return self.time_range is None

    @property
    def is_incremental(self) -> bool:
        return self.time_range is not None

    @property
    def start_time(self) -> datetime:
        return self.time if self.time_range is None else self.time_range.start

    @property
    def end_time(self) -> datetime:
        return self.time

    @property
    def is_complete(self) -> bool:
        return self.manifest is not None and self.signature is not None and not self.issues

    @property
    def compressed(self) -> bool:
        return any(v.compressed for v in self.volumes)

    @property
    def encrypted(self) -> bool:
        return any(d.encrypted for d in self.files())

    @property
    def volume_numbers(self) -> List[int]:
        return [v.volume_number for v in self.volumes]

    def files(self) -> List[FileDescriptor]:
        """Every file of the set: manifest, signature, then volumes."""
        result = [d for d in (self.manifest, self.signature) if d is not None]
        result.extend(self.volumes)
        return result

    def volume(self, number: int) -> Optional[FileDescriptor]:
        for descriptor in self.volumes:
            if descriptor.volume_number == number:
                return descriptor
        return None

    def missing_parts(self) -> List[str]:
        missing = []
        if self.manifest is None:
            missing.append("manifest")
        if self.signature is None:
            missing.append("signature")
        return missing

    def with_issue(self, issue: str) -> "BackupSet":
        """Copy of this set with one more recorded problem."""
        return replace(self, issues=self.issues + (issue,))

    def __str__(self):
        if self.time_range is None:
            return f"full {self.time.isoformat()}"
        return f"inc {self.time_range.start.isoformat()} -> {self.time_range.end.isoformat()}"


@dataclass(frozen=True)
class BackupChain:
    """A full set followed by temporally contiguous incremental sets.

    Snapshot ``0`` is the full set, snapshot ``i`` is the i-th incremental.

    Raises:
        BrokenChain: on construction, if the sets violate continuity.
    """
    sets: Tuple[BackupSet, ...]

    def __post_init__(self):
        if not self.sets:
            raise BrokenChain("a chain needs at least a full set")
        if not self.sets[0].is_full:
            raise BrokenChain(f"chain starts with {self.sets[0]}, not a full set")
        end = self.sets[0].time
        for backup_set in self.sets[1:]:
            if not backup_set.is_incremental:
                raise BrokenChain(f"{backup_set} inside a chain is not incremental")
            if backup_set.prefix != self.sets[0].prefix:
                raise BrokenChain(f"{backup_set} has prefix {backup_set.prefix!r}")
            if backup_set.start_time != end:
                raise BrokenChain(f"{backup_set} does not start at {end.isoformat()}")
            end = backup_set.end_time

    @property
    def prefix(self) -> str:
        return self.full_set.prefix

    @property
    def full_set(self) -> BackupSet:
        return self.sets[0]

    @property
    def incremental_sets(self) -> Tuple[BackupSet, ...]:
        return self.sets[1:]

    @property
    def start_time(self) -> datetime:
        return self.full_set.time

    @property
    def end_time(self) -> datetime:
        return self.sets[-1].end_time

    @property
    def is_complete(self) -> bool:
        return all(s.is_complete for s in self.sets)

    def snapshot_times(self) -> List[datetime]:
        """Point in time of each snapshot, by snapshot index."""
        return [s.end_time for s in self.sets]

    def __len__(self):
        return len(self.sets)

    def __getitem__(self, index: int) -> BackupSet:
        return self.sets[index]


class OrphanedSet(NamedTuple):
    """A set that could not be attached to any chain."""
    backup_set: BackupSet
    reason: str


@dataclass(frozen=True)
class Collections:
    """Everything reconstructed from one backend listing.

    Chains are ordered by start time; the last one is the primary chain.
    """
    chains: Tuple[BackupChain, ...] = ()
    orphans: Tuple[OrphanedSet, ...] = ()
    skipped_names: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def from_names(cls, names: Iterable[str], prefix: Optional[str] = None) -> "Collections":
        """Classify backend entry names and build the collections."""
        descriptors = []
        skipped = []
        for name in names:
            descriptor = parse_filename(name, prefix=prefix)
            if descriptor is None:
                logger.debug(f"Skipping unrecognized file {name!r}")
                skipped.append(name)
                continue
            descriptors.append(descriptor)
        collections = build_collections(descriptors)
        return replace(collections, skipped_names=tuple(sorted(skipped)))

    @property
    def primary_chain(self) -> Optional[BackupChain]:
        return self.chains[-1] if self.chains else None

    @property
    def num_snapshots(self) -> int:
        return sum(len(chain) for chain in self.chains)

    def all_sets(self) -> List[BackupSet]:
        result = [s for chain in self.chains for s in chain.sets]
        result.extend(orphan.backup_set for orphan in self.orphans)
        return result

    def incomplete_sets(self) -> List[BackupSet]:
        return [s for s in self.all_sets() if not s.is_complete]

    def find_set(self, key: tuple) -> Optional[BackupSet]:
        for backup_set in self.all_sets():
            if backup_set.key == key:
                return backup_set
        return None

    def replace_set(self, updated: BackupSet) -> "Collections":
        """Copy of the collections where the set with the same key is swapped."""
        def swap(s: BackupSet) -> BackupSet:
            return updated if s.key == updated.key else s

        chains = tuple(BackupChain(tuple(swap(s) for s in chain.sets)) for chain in self.chains)
        orphans = tuple(OrphanedSet(swap(o.backup_set), o.reason) for o in self.orphans)
        return replace(self, chains=chains, orphans=orphans)

    def mark_incomplete(self, backup_set: BackupSet, issue: str) -> "Collections":
        current = self.find_set(backup_set.key)
        if current is None:
            raise KeyError(f"set {backup_set} is not part of these collections")
        return self.replace_set(current.with_issue(issue))


class _SetBuilder:
    """Accumulates the files of one backup set."""

    def __init__(self, first: FileDescriptor):
        self.prefix = first.prefix
        self.time = first.time
        self.time_range = first.time_range
        self.manifest: Optional[FileDescriptor] = None
        self.signature: Optional[FileDescriptor] = None
        self.volumes: Dict[int, FileDescriptor] = {}

    def add(self, descriptor: FileDescriptor):
        if descriptor.kind is FileKind.MANIFEST:
            if self.manifest is not None:
                logger.warning(f"Ignoring duplicate manifest {descriptor.name!r}, keeping {self.manifest.name!r}")
                return
            self.manifest = descriptor
        elif descriptor.kind is FileKind.SIGNATURE:
            if self.signature is not None:
                logger.warning(f"Ignoring duplicate signature {descriptor.name!r}, keeping {self.signature.name!r}")
                return
            self.signature = descriptor
        else:
            existing = self.volumes.get(descriptor.volume_number)
            if existing is not None:
                logger.warning(f"Ignoring duplicate volume {descriptor.name!r}, keeping {existing.name!r}")
                return
            self.volumes[descriptor.volume_number] = descriptor

    def build(self) -> BackupSet:
        return BackupSet(
            prefix=self.prefix,
            time=self.time,
            time_range=self.time_range,
            manifest=self.manifest,
            signature=self.signature,
            volumes=tuple(self.volumes[n] for n in sorted(self.volumes)),
        )


def _descriptor_order(descriptor: FileDescriptor) -> tuple:
    # non-partial files win over partial ones, then the name decides
    return (descriptor.partial, descriptor.name, descriptor.to_name())


def group_backup_sets(descriptors: Iterable[FileDescriptor]) -> List[BackupSet]:
    """Group descriptors that share prefix and time (or time range).

    The result does not depend on the order of ``descriptors``.
    """
    builders: Dict[tuple, _SetBuilder] = {}
    for descriptor in sorted(descriptors, key=_descriptor_order):
        builder = builders.get(descriptor.set_key)
        if builder is None:
            builder = builders[descriptor.set_key] = _SetBuilder(descriptor)
        builder.add(descriptor)

    sets = [builder.build() for builder in builders.values()]
    sets.sort(key=_set_order)
    return sets


def _set_order(backup_set: BackupSet) -> tuple:
    return (backup_set.start_time, backup_set.end_time, backup_set.prefix)


def build_collections(descriptors: Iterable[FileDescriptor]) -> Collections:
    """Group descriptors into sets and link the sets into chains.

    Each full set, earliest first, starts a chain which is extended with
    the incremental set that starts where the chain currently ends. When
    several incrementals start at the same time, the one ending last wins.
    Incremental sets that end up in no chain are reported as orphans.
    """
    sets = group_backup_sets(descriptors)
    full_sets = [s for s in sets if s.is_full]
    by_start: Dict[tuple, List[BackupSet]] = defaultdict(list)
    orphans: List[OrphanedSet] = []

    for backup_set in sets:
        if backup_set.is_full:
            continue
        if backup_set.time_range.end <= backup_set.time_range.start:
            orphans.append(OrphanedSet(backup_set, "time range does not move forward"))
            continue
        by_start[(backup_set.prefix, backup_set.start_time)].append(backup_set)

    consumed = set()
    chains = []
    for full_set in full_sets:
        members = [full_set]
        end = full_set.time
        while True:
            candidates = [s for s in by_start.get((full_set.prefix, end), []) if s.key not in consumed]
            if not candidates:
                break
            chosen = max(candidates, key=lambda s: s.end_time)
            consumed.add(chosen.key)
            members.append(chosen)
            end = chosen.end_time
        chains.append(BackupChain(tuple(members)))

    for candidates in by_start.values():
        for backup_set in candidates:
            if backup_set.key in consumed:
                continue
            chain = _chain_passing(chains, backup_set)
            if chain is not None:
                reason = f"superseded by a longer increment in chain starting {chain.start_time.isoformat()}"
            else:
                reason = f"no chain ends at {backup_set.start_time.isoformat()}"
            orphans.append(OrphanedSet(backup_set, reason))

    orphans.sort(key=lambda o: _set_order(o.backup_set))
    chains.sort(key=lambda c: (c.start_time, c.prefix))
    for orphan in orphans:
        logger.warning(f"Orphaned backup set {orphan.backup_set}: {orphan.reason}")
    logger.info(f"Found {len(sets)} backup sets in {len(chains)} chains, {len(orphans)} orphaned")
    return Collections(chains=tuple(chains), orphans=tuple(orphans))


def _chain_passing(chains: List[BackupChain], backup_set: BackupSet) -> Optional[BackupChain]:
    """Chain that already has a snapshot at the start of ``backup_set``."""
    for chain in chains:
        if chain.prefix == backup_set.prefix and backup_set.start_time in chain.snapshot_times()[:-1]:
            return chain
    return None
