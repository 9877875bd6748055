# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/timefmt.py

"""Display helpers for times and sizes."""

from datetime import datetime, timezone
from typing import Optional

import humanize


def format_time(time: datetime, now: Optional[datetime] = None, local: bool = True) -> str:
    """Short ``ls -l`` style time.

    ``Feb 22 14:53`` for a time in the current year, ``Feb 22  2012``
    otherwise (the double space is intended).
    """
    now = now or datetime.now(timezone.utc)
    shown = time.astimezone() if local else time.astimezone(timezone.utc)
    if shown.year == now.astimezone(shown.tzinfo).year:
        return shown.strftime("%b %d %H:%M")
    return shown.strftime("%b %d  %Y")


def format_age(time: datetime, now: Optional[datetime] = None) -> str:
    """How long ago, e.g. ``3 days ago``."""
    now = now or datetime.now(timezone.utc)
    return humanize.naturaltime(now - time)


def format_size(size: Optional[int]) -> str:
    if size is None:
        return "?"
    return humanize.naturalsize(size, binary=True)
