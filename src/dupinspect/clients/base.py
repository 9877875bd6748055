# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/clients/base.py

"""Backend interface: where the archive files live."""

from abc import ABC, abstractmethod
from typing import BinaryIO, List


class Backend(ABC):
    """Abstract read-only access to the files of one backup location.

    Implementations raise :class:`~dupinspect.errors.IoFailure` for
    transport errors. No ordering or completeness of the listing is
    assumed by callers.
    """

    @abstractmethod
    def list_names(self) -> List[str]:
        """Return the names of the files at the backup location.

        Returns:
            Plain file names, without directory part
        """
        pass

    @abstractmethod
    def open(self, name: str) -> BinaryIO:
        """Open a file for reading as a buffered binary stream."""
        pass

    def describe(self) -> str:
        return type(self).__name__
