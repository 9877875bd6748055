# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/cli/commands/manifest.py

"""Manifest command."""

import typer
from pathlib import Path
from typing import Optional

from dupinspect.cli.common import fail, open_archive, select_chain, select_snapshot
from dupinspect.errors import DupInspectError
from dupinspect.rawpath import to_display


def main(
    ctx: typer.Context,
    location: Optional[Path] = typer.Argument(None, help="Backup directory"),
    chain_number: Optional[int] = typer.Option(None, "--chain", "-C", help="Chain number (default: primary)"),
    snapshot_number: Optional[int] = typer.Option(None, "--snapshot", "-s", help="Snapshot number (default: latest)"),
    raw: bool = typer.Option(False, "--raw", help="Print the manifest in its file format"),
):
    """Show the volume table of a backup set's manifest."""
    try:
        archive = open_archive(ctx, location)
        chain = select_chain(archive, chain_number)
        snapshot = select_snapshot(archive, chain, snapshot_number)
        manifest = archive.manifest(snapshot.backup_set)
    except DupInspectError as e:
        fail(str(e))

    if raw:
        typer.echo(manifest.to_bytes().decode("utf-8", "backslashreplace"), nl=False)
        return

    if manifest.hostname:
        typer.echo(f"Hostname: {manifest.hostname}")
    if manifest.local_dir is not None:
        typer.echo(f"Local dir: {to_display(manifest.local_dir)}")
    typer.echo(f"Volumes: {manifest.last_volume_number}")
    for volume in manifest.volumes:
        digest = volume.hash
        hash_text = f"{digest.algorithm}:{digest.digest.hex()}" if digest else "-"
        typer.echo(
            f"{volume.volume_number:>5}  {to_display(volume.starting_path)}"
            f"  ..  {to_display(volume.ending_path)}  {hash_text}"
        )
    if manifest.files:
        typer.echo(f"Changed files: {len(manifest.files)}")
