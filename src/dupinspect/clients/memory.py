# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/clients/memory.py

"""In-memory backend, for tests and for archives already fetched."""

import io
from typing import BinaryIO, Dict, List, Optional

from ..errors import IoFailure
from .base import Backend


class MemoryBackend(Backend):
    """Backend serving file contents held in a dict."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None):
        self.files: Dict[str, bytes] = dict(files or {})

    def add(self, name: str, content: bytes):
        self.files[name] = content

    def list_names(self) -> List[str]:
        return list(self.files)

    def open(self, name: str) -> BinaryIO:
        try:
            return io.BytesIO(self.files[name])
        except KeyError:
            raise IoFailure(name, "no such file") from None

    def describe(self) -> str:
        return f"memory ({len(self.files)} files)"
