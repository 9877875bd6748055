# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/cli/main.py

"""Main CLI entry point for dupinspect."""

import typer
from typing import Optional

from dupinspect.cli.commands.chains import main as chains_command
from dupinspect.cli.commands.ls import main as ls_command
from dupinspect.cli.commands.manifest import main as manifest_command
from dupinspect.cli.commands.snapshots import main as snapshots_command
from dupinspect.config import load_settings
from dupinspect.logging.setup import setup_logging

app = typer.Typer(
    name="dupinspect",
    help="Read-only inspection of duplicity backup archives",
    no_args_is_help=True,
)

app.command("chains", help="List backup chains and orphaned sets")(chains_command)
app.command("snapshots", help="List the snapshots of a chain")(snapshots_command)
app.command("ls", help="List the files of a snapshot")(ls_command)
app.command("manifest", help="Show the manifest of a backup set")(manifest_command)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """dupinspect: browse backup chains without restoring them."""
    try:
        settings = load_settings(config)
    except (OSError, ValueError) as e:
        typer.echo(f"Error: bad configuration: {e}", err=True)
        raise typer.Exit(2)
    setup_logging(verbose=verbose, level=settings.log_level)
    ctx.obj = settings


if __name__ == "__main__":
    app()
