# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/__init__.py

"""Read-only inspection of duplicity backup archives."""

__version__ = "0.1.0"

from .archive import Archive, Snapshot
from .collections import BackupChain, BackupSet, Collections, FileDescriptor, FileKind, parse_filename
from .manifest import Manifest, parse_manifest
from .signatures import Entry, SnapshotProjector

__all__ = [
    "Archive",
    "BackupChain",
    "BackupSet",
    "Collections",
    "Entry",
    "FileDescriptor",
    "FileKind",
    "Manifest",
    "Snapshot",
    "SnapshotProjector",
    "parse_filename",
    "parse_manifest",
]
