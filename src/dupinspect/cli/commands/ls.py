# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/cli/commands/ls.py

"""Ls command: files of one snapshot, from the signature archives."""

import typer
from pathlib import Path
from typing import Optional

from loguru import logger

from dupinspect.cli.common import fail, open_archive, select_chain, select_snapshot
from dupinspect.errors import DupInspectError
from dupinspect.timefmt import format_size


def main(
    ctx: typer.Context,
    location: Optional[Path] = typer.Argument(None, help="Backup directory"),
    chain_number: Optional[int] = typer.Option(None, "--chain", "-C", help="Chain number (default: primary)"),
    snapshot_number: Optional[int] = typer.Option(None, "--snapshot", "-s", help="Snapshot number (default: latest)"),
    summary: bool = typer.Option(False, "--summary", help="Only print counts and total size"),
):
    """List the files of a snapshot in ls -l style."""
    try:
        archive = open_archive(ctx, location)
        chain = select_chain(archive, chain_number)
        snapshot = select_snapshot(archive, chain, snapshot_number)
        logger.debug(f"Listing snapshot {snapshot.index} at {snapshot.time.isoformat()}")

        count = 0
        total = 0
        for entry in archive.entries(snapshot):
            count += 1
            total += entry.size or 0
            if not summary:
                typer.echo(str(entry))
    except DupInspectError as e:
        fail(str(e))

    if summary:
        typer.echo(f"{count:,} entries, {format_size(total)}")
