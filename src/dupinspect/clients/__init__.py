# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/clients/__init__.py

"""Access to backup locations and decoding of their files."""

from .base import Backend
from .decode import Decryptor, PayloadDecoder
from .local import LocalBackend
from .memory import MemoryBackend

__all__ = ["Backend", "Decryptor", "LocalBackend", "MemoryBackend", "PayloadDecoder"]
