# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/cli/commands/chains.py

"""Chains command: what the backup location holds."""

import typer
from pathlib import Path
from typing import Optional

from dupinspect.cli.common import fail, open_archive
from dupinspect.collections.backup import BackupSet
from dupinspect.errors import DupInspectError
from dupinspect.timefmt import format_age, format_time


def _describe_set(backup_set: BackupSet) -> str:
    kind = "full" if backup_set.is_full else "inc "
    volumes = len(backup_set.volume_numbers)
    line = f"  {kind}  {format_time(backup_set.end_time)}  {volumes:>4} vol"
    problems = [f"no {part}" for part in backup_set.missing_parts()] + list(backup_set.issues)
    if problems:
        line += "  [incomplete: " + "; ".join(problems) + "]"
    return line


def main(
    ctx: typer.Context,
    location: Optional[Path] = typer.Argument(None, help="Backup directory"),
):
    """List backup chains and orphaned sets."""
    try:
        archive = open_archive(ctx, location)
    except DupInspectError as e:
        fail(str(e))

    if not archive.chains and not archive.orphans:
        typer.echo("No backup sets found")
        return

    for number, chain in enumerate(archive.chains):
        marker = " (primary)" if chain is archive.primary_chain else ""
        typer.echo(
            f"Chain {number}{marker}: {chain.prefix}, {len(chain)} snapshots, "
            f"{format_time(chain.start_time)} to {format_time(chain.end_time)} "
            f"(last {format_age(chain.end_time)})"
        )
        for backup_set in chain.sets:
            typer.echo(_describe_set(backup_set))

    if archive.orphans:
        typer.echo(f"Orphaned sets: {len(archive.orphans)}")
        for orphan in archive.orphans:
            typer.echo(_describe_set(orphan.backup_set) + f"  ({orphan.reason})")

    skipped = archive.collections.skipped_names
    if skipped:
        typer.echo(f"Ignored {len(skipped)} unrelated files")
