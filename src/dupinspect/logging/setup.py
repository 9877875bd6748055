# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/logging/setup.py

"""Loguru configuration for the console."""

import sys
from typing import Optional

from loguru import logger


def setup_logging(verbose: bool = False, level: Optional[str] = None):
    """Replace loguru's default sink with one stderr sink.

    Args:
        verbose: DEBUG level, with module and line number
        level: Level used when not verbose (default INFO)
    """
    logger.remove()
    if verbose:
        logger.add(
            sys.stderr,
            level="DEBUG",
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} | <level>{message}</level>",
        )
    else:
        logger.add(
            sys.stderr,
            level=level or "INFO",
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        )
