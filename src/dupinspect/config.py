# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/config.py

"""Configuration for the inspection console."""

import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Settings, from defaults, a TOML file and environment variables."""
    location: Optional[Path] = None  # backup directory
    prefix: Optional[str] = None  # None accepts any file prefix
    verify_manifests: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, base: Optional["Settings"] = None) -> "Settings":
        """Overlay DUPINSPECT_* environment variables on ``base``."""
        base = base or cls()
        location = os.getenv("DUPINSPECT_LOCATION")
        return cls(
            location=Path(location) if location else base.location,
            prefix=os.getenv("DUPINSPECT_PREFIX", base.prefix),
            verify_manifests=_as_bool(os.getenv("DUPINSPECT_VERIFY_MANIFESTS", base.verify_manifests)),
            log_level=os.getenv("DUPINSPECT_LOG_LEVEL", base.log_level).upper(),
        )

    @classmethod
    def from_file(cls, path: Path) -> "Settings":
        """Read the ``[dupinspect]`` table of a TOML file."""
        with open(path, "rb") as f:
            data = tomllib.load(f).get("dupinspect", {})
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"unknown settings in {path}: {', '.join(sorted(unknown))}")
        if "location" in data:
            data["location"] = Path(data["location"])
        if "verify_manifests" in data:
            data["verify_manifests"] = _as_bool(data["verify_manifests"])
        if "log_level" in data:
            data["log_level"] = str(data["log_level"]).upper()
        return cls(**data)

    def __post_init__(self):
        """Validate configuration."""
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level!r}")
        if self.prefix is not None and (not self.prefix or "." in self.prefix):
            raise ValueError(f"prefix must be non-empty and contain no dot, got {self.prefix!r}")

    def with_location(self, location: Optional[Path]) -> "Settings":
        if location is None:
            return self
        return replace(self, location=Path(location))


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Defaults, then the config file if given, then the environment."""
    base = Settings.from_file(Path(config_path)) if config_path else Settings()
    return Settings.from_env(base)
