# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/clients/local.py

"""Backend for a backup location on the local file system."""

import os
from pathlib import Path
from typing import BinaryIO, List

from loguru import logger

from ..errors import IoFailure
from .base import Backend


class LocalBackend(Backend):
    """Backend that reads archive files from a local directory."""

    def __init__(self, root_path: Path):
        """Initialize with the directory holding the archive files."""
        self.root_path = Path(root_path)

    def list_names(self) -> List[str]:
        """List regular files directly inside the backup directory."""
        logger.debug(f"Listing backup files in {self.root_path}...")
        names = []
        try:
            with os.scandir(self.root_path) as entries:
                for entry in entries:
                    try:
                        if entry.is_file():
                            names.append(entry.name)
                    except OSError as e:
                        logger.warning(f"Skipping {entry.path}: {e}")
                        continue
        except OSError as e:
            raise IoFailure(str(self.root_path), str(e)) from e

        logger.debug(f"Found {len(names):,} files in {self.root_path}")
        return names

    def open(self, name: str) -> BinaryIO:
        if Path(name).name != name:
            raise IoFailure(name, "not a plain file name")
        try:
            return open(self.root_path / name, "rb")
        except OSError as e:
            raise IoFailure(name, str(e)) from e

    def describe(self) -> str:
        return str(self.root_path)
