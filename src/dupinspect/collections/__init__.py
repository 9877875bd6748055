# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/collections/__init__.py

"""Reconstruction of backup sets and chains from a file listing."""

from .backup import (
    BackupChain,
    BackupSet,
    Collections,
    OrphanedSet,
    build_collections,
    group_backup_sets,
)
from .file_naming import (
    FileDescriptor,
    FileKind,
    TimeRange,
    format_time_str,
    parse_filename,
    parse_time_str,
)

__all__ = [
    "BackupChain",
    "BackupSet",
    "Collections",
    "FileDescriptor",
    "FileKind",
    "OrphanedSet",
    "TimeRange",
    "build_collections",
    "format_time_str",
    "group_backup_sets",
    "parse_filename",
    "parse_time_str",
]
