# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/archive.py

"""Query surface over one backup location."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

from loguru import logger

from .clients.base import Backend
from .clients.decode import PayloadDecoder
from .clients.local import LocalBackend
from .collections.backup import BackupChain, BackupSet, Collections, OrphanedSet
from .collections.file_naming import FileDescriptor
from .errors import DecodeFailure, IncompleteSet, IoFailure, MalformedManifest
from .manifest import Manifest, parse_manifest
from .signatures.projector import Entry, SnapshotProjector
from .signatures.sigtar import SignatureRecord, iter_signature_records


@dataclass(frozen=True)
class Snapshot:
    """View on snapshot ``index`` of a chain; holds no entries itself."""
    chain: BackupChain
    index: int

    def __post_init__(self):
        if not 0 <= self.index < len(self.chain):
            raise IndexError(f"snapshot {self.index} not in chain of {len(self.chain)}")

    @property
    def backup_set(self) -> BackupSet:
        return self.chain[self.index]

    @property
    def time(self) -> datetime:
        return self.backup_set.end_time

    @property
    def is_full(self) -> bool:
        return self.index == 0


class Archive:
    """Read-only model of a backup location.

    Use :meth:`open` to list the backend and reconstruct chains. Building
    always succeeds as long as the listing does; unreadable manifests only
    mark their set incomplete. Snapshot queries raise if the signature data
    they need cannot be read.
    """

    def __init__(
        self,
        backend: Backend,
        collections: Collections,
        decoder: Optional[PayloadDecoder] = None,
    ):
        self.backend = backend
        self.collections = collections
        self.decoder = decoder or PayloadDecoder()
        self._manifests: Dict[tuple, Manifest] = {}

    @classmethod
    def open(
        cls,
        backend: Backend,
        decoder: Optional[PayloadDecoder] = None,
        prefix: Optional[str] = None,
        verify_manifests: bool = True,
    ) -> "Archive":
        """List a backend and build its chains.

        Args:
            backend: Where the archive files are
            decoder: Decode hook; defaults to gzip support without decryption
            prefix: Only consider files with this prefix
            verify_manifests: Parse every manifest now and flag sets whose
                manifest is unusable or lists missing volumes

        Raises:
            IoFailure: if the backend cannot be listed
        """
        logger.info(f"Reading backup location {backend.describe()}")
        collections = Collections.from_names(backend.list_names(), prefix=prefix)
        archive = cls(backend, collections, decoder=decoder)
        if verify_manifests:
            archive.verify_manifests()
        return archive

    @classmethod
    def from_path(cls, path: Path, **kwargs) -> "Archive":
        return cls.open(LocalBackend(Path(path)), **kwargs)

    @property
    def chains(self) -> Tuple[BackupChain, ...]:
        return self.collections.chains

    @property
    def orphans(self) -> Tuple[OrphanedSet, ...]:
        return self.collections.orphans

    @property
    def primary_chain(self) -> Optional[BackupChain]:
        return self.collections.primary_chain

    def verify_manifests(self):
        """Parse all manifests; flag the sets whose manifest is unusable."""
        collections = self.collections
        for backup_set in collections.all_sets():
            if backup_set.manifest is None:
                continue
            try:
                manifest = self.manifest(backup_set)
            except (MalformedManifest, DecodeFailure, IoFailure) as e:
                logger.warning(f"Backup set {backup_set} is incomplete: {e}")
                collections = collections.mark_incomplete(backup_set, f"manifest unusable: {e}")
                continue

            missing = [
                n for n in range(1, manifest.last_volume_number + 1)
                if backup_set.volume(n) is None
            ]
            if missing:
                logger.warning(f"Backup set {backup_set} is missing volumes {missing}")
                collections = collections.mark_incomplete(
                    backup_set, f"missing volumes {', '.join(map(str, missing))}"
                )
        self.collections = collections

    def _open_decoded(self, descriptor: FileDescriptor) -> BinaryIO:
        raw = self.backend.open(descriptor.name)
        return self.decoder.open(raw, descriptor)

    def manifest(self, backup_set: BackupSet) -> Manifest:
        """Parsed manifest of a set, cached after the first read.

        Raises:
            IncompleteSet: if the set has no manifest file
            MalformedManifest, DecodeFailure, IoFailure: if it cannot be read
        """
        cached = self._manifests.get(backup_set.key)
        if cached is not None:
            return cached
        if backup_set.manifest is None:
            raise IncompleteSet(f"backup set {backup_set} has no manifest")

        descriptor = backup_set.manifest
        with self._open_decoded(descriptor) as stream:
            manifest = parse_manifest(stream, name=descriptor.name)
        self._manifests[backup_set.key] = manifest
        return manifest

    def signature_records(self, backup_set: BackupSet) -> Iterator[SignatureRecord]:
        """Stream the records of a set's signature archive.

        Raises:
            IncompleteSet: if the set has no signature file
            MalformedSignatureEntry, DecodeFailure, IoFailure: while iterating
        """
        if backup_set.signature is None:
            raise IncompleteSet(f"backup set {backup_set} has no signature file")
        return self._iter_records(backup_set)

    def _iter_records(self, backup_set: BackupSet) -> Iterator[SignatureRecord]:
        descriptor = backup_set.signature
        with self._open_decoded(descriptor) as stream:
            yield from iter_signature_records(
                stream, incremental=backup_set.is_incremental, name=descriptor.name
            )

    def snapshots(self, chain: Optional[BackupChain] = None) -> List[Snapshot]:
        """Snapshots of a chain (default: the primary chain), oldest first."""
        chain = chain or self.primary_chain
        if chain is None:
            return []
        return [Snapshot(chain, i) for i in range(len(chain))]

    def projector(self, chain: BackupChain) -> SnapshotProjector:
        """A new projector with its own entry table, reading from this archive."""
        return SnapshotProjector(len(chain), lambda i: self.signature_records(chain[i]))

    def entries(self, snapshot: Snapshot) -> Iterator[Entry]:
        """Live entries of one snapshot, ordered by path."""
        return self.projector(snapshot.chain).entries(snapshot.index)

    def walk_snapshots(self, chain: BackupChain) -> Iterator[Tuple[Snapshot, List[Entry]]]:
        """All snapshots of a chain with their entries, applying each increment once."""
        projector = self.projector(chain)
        for i in range(len(chain)):
            entries = list(projector.entries(i))
            logger.info(f"Snapshot {i} of chain {chain.start_time.isoformat()}: {len(entries):,} entries")
            yield Snapshot(chain, i), entries
