# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/cli/commands/snapshots.py

"""Snapshots command."""

import typer
from pathlib import Path
from typing import Optional

from dupinspect.cli.common import fail, open_archive, select_chain
from dupinspect.errors import DupInspectError
from dupinspect.timefmt import format_age, format_time


def main(
    ctx: typer.Context,
    location: Optional[Path] = typer.Argument(None, help="Backup directory"),
    chain_number: Optional[int] = typer.Option(None, "--chain", "-C", help="Chain number (default: primary)"),
):
    """List the snapshots of a chain, oldest first."""
    try:
        archive = open_archive(ctx, location)
    except DupInspectError as e:
        fail(str(e))

    chain = select_chain(archive, chain_number)
    for snapshot in archive.snapshots(chain):
        kind = "full" if snapshot.is_full else "inc"
        state = "" if snapshot.backup_set.is_complete else "  [incomplete]"
        typer.echo(
            f"{snapshot.index:>4}  {kind:<4}  {format_time(snapshot.time)}  "
            f"{snapshot.time.isoformat()}  {format_age(snapshot.time)}{state}"
        )
