# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/signatures/__init__.py

"""Signature archives and the snapshots they describe."""

from .projector import Entry, SnapshotProjector, format_entry, mode_string, project
from .sigtar import (
    EntryType,
    RecordRole,
    SignatureArchiveReader,
    SignatureRecord,
    StatBlock,
    iter_signature_records,
    signature_size_hint,
    split_member_name,
)

__all__ = [
    "Entry",
    "EntryType",
    "RecordRole",
    "SignatureArchiveReader",
    "SignatureRecord",
    "SnapshotProjector",
    "StatBlock",
    "format_entry",
    "iter_signature_records",
    "mode_string",
    "project",
    "signature_size_hint",
    "split_member_name",
]
