# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/cli/common.py

"""Helpers shared by the commands."""

from pathlib import Path
from typing import Optional

import typer

from dupinspect.archive import Archive, Snapshot
from dupinspect.clients.local import LocalBackend
from dupinspect.collections.backup import BackupChain
from dupinspect.config import Settings


def fail(message: str):
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def open_archive(ctx: typer.Context, location: Optional[Path]) -> Archive:
    """Open the location given on the command line, or the configured one."""
    settings: Settings = ctx.obj or Settings()
    settings = settings.with_location(location)
    if settings.location is None:
        fail("no backup location given and none configured")
    return Archive.open(
        LocalBackend(settings.location),
        prefix=settings.prefix,
        verify_manifests=settings.verify_manifests,
    )


def select_chain(archive: Archive, number: Optional[int]) -> BackupChain:
    """Chain by position (0 is the oldest, negative counts from the end)."""
    if not archive.chains:
        fail("no backup chains found")
    if number is None:
        return archive.primary_chain
    try:
        return archive.chains[number]
    except IndexError:
        fail(f"chain {number} does not exist, there are {len(archive.chains)}")


def select_snapshot(archive: Archive, chain: BackupChain, number: Optional[int]) -> Snapshot:
    """Snapshot by position in the chain; the latest when not given."""
    snapshots = archive.snapshots(chain)
    if number is None:
        return snapshots[-1]
    try:
        return snapshots[number]
    except IndexError:
        fail(f"snapshot {number} does not exist, the chain has {len(snapshots)}")
