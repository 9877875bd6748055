# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/collections/file_naming.py

"""Classification of backend file names.

An archive directory holds four families of files, each in a full and an
incremental flavour::

    <prefix>-full.<time>.vol<N>.difftar[.part][.gz|.z][.gpg|.g]
    <prefix>-full.<time>.manifest[...]
    <prefix>-full-signatures.<time>.sigtar[...]
    <prefix>-inc.<start>.to.<end>.vol<N>.difftar[...]
    <prefix>-inc.<start>.to.<end>.manifest[...]
    <prefix>-new-signatures.<start>.to.<end>.sigtar[...]

Anything else is not part of the archive and is skipped.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import NamedTuple, Optional

from ..errors import UnrecognizedName


class FileKind(Enum):
    """What a single backend file holds."""
    FULL = "full"  # data volume of a full backup
    INCREMENTAL = "inc"  # data volume of an incremental backup
    MANIFEST = "manifest"
    SIGNATURE = "signature"


class TimeRange(NamedTuple):
    """Time span covered by an incremental backup."""
    start: datetime
    end: datetime


_COMPACT_TIME_RE = re.compile(
    r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})(Z|[+-]\d{2}:?\d{2})$"
)
_EXTENDED_TIME_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(Z|[+-]\d{2}:\d{2})$"
)


def _parse_offset(text: str) -> Optional[timezone]:
    if text == "Z":
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    hours, minutes = int(digits[:2]), int(digits[2:])
    if hours > 23 or minutes > 59:
        return None
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def parse_time_str(text: str) -> Optional[datetime]:
    """Parse an archive timestamp into an aware UTC datetime.

    Accepts the compact form written by the backup tool
    (``20150617T182545Z``) and the extended form
    (``2015-06-17T18:25:45+02:00``). Letters are case-insensitive.
    Returns None if the string is not a complete, valid date-time with an
    offset.
    """
    text = text.upper()
    match = _COMPACT_TIME_RE.match(text) or _EXTENDED_TIME_RE.match(text)
    if match is None:
        return None
    tz = _parse_offset(match.group(7))
    if tz is None:
        return None
    try:
        parsed = datetime(*(int(g) for g in match.groups()[:6]), tzinfo=tz)
    except ValueError:
        return None
    return parsed.astimezone(timezone.utc)


def format_time_str(time: datetime) -> str:
    """Compact UTC form used in file names, e.g. ``20150617T182545Z``."""
    return time.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _normalize_time(time: datetime) -> datetime:
    if time.tzinfo is None or time.utcoffset() is None:
        raise ValueError(f"archive timestamps must carry an offset: {time!r}")
    if time.microsecond:
        raise ValueError(f"archive timestamps have whole seconds: {time!r}")
    return time.astimezone(timezone.utc)


@dataclass(frozen=True)
class FileDescriptor:
    """Typed description of one archive file, derived from its name.

    For incremental files ``time`` equals ``time_range.end``. The original
    file name is kept in ``name`` but does not take part in equality.
    """
    kind: FileKind
    time: datetime
    time_range: Optional[TimeRange] = None
    volume_number: Optional[int] = None
    compressed: bool = False
    encrypted: bool = False
    partial: bool = False
    prefix: str = "duplicity"
    name: str = field(default="", compare=False)

    def __post_init__(self):
        object.__setattr__(self, "time", _normalize_time(self.time))
        if self.time_range is not None:
            start = _normalize_time(self.time_range.start)
            end = _normalize_time(self.time_range.end)
            object.__setattr__(self, "time_range", TimeRange(start, end))
            if self.time != end:
                raise ValueError("incremental time must equal the end of its range")

        is_volume = self.kind in (FileKind.FULL, FileKind.INCREMENTAL)
        if is_volume and (self.volume_number is None or self.volume_number < 1):
            raise ValueError(f"{self.kind.value} volume needs a volume number >= 1")
        if not is_volume and self.volume_number is not None:
            raise ValueError(f"{self.kind.value} file has no volume number")
        if self.kind is FileKind.FULL and self.time_range is not None:
            raise ValueError("full volume cannot have a time range")
        if self.kind is FileKind.INCREMENTAL and self.time_range is None:
            raise ValueError("incremental volume needs a time range")
        if not self.prefix or "." in self.prefix:
            raise ValueError(f"invalid file prefix {self.prefix!r}")

    @property
    def is_incremental(self) -> bool:
        return self.time_range is not None

    @property
    def set_key(self) -> tuple:
        """Files with the same key belong to the same backup set."""
        return (self.prefix, self.time_range or self.time)

    @classmethod
    def from_name(cls, name: str, prefix: Optional[str] = None) -> "FileDescriptor":
        """Strict variant of :func:`parse_filename`.

        Raises:
            UnrecognizedName: if the name is not an archive file name.
        """
        descriptor = parse_filename(name, prefix=prefix)
        if descriptor is None:
            raise UnrecognizedName(name)
        return descriptor

    def to_name(self) -> str:
        """Encode this descriptor as a file name."""
        if self.time_range is not None:
            stamp = f"{format_time_str(self.time_range.start)}.to.{format_time_str(self.time_range.end)}"
        else:
            stamp = format_time_str(self.time)

        if self.kind is FileKind.FULL:
            base = f"{self.prefix}-full.{stamp}.vol{self.volume_number}.difftar"
        elif self.kind is FileKind.INCREMENTAL:
            base = f"{self.prefix}-inc.{stamp}.vol{self.volume_number}.difftar"
        elif self.kind is FileKind.MANIFEST:
            family = "inc" if self.is_incremental else "full"
            base = f"{self.prefix}-{family}.{stamp}.manifest"
        else:
            family = "new" if self.is_incremental else "full"
            base = f"{self.prefix}-{family}-signatures.{stamp}.sigtar"

        suffix = ""
        if self.partial:
            suffix += ".part"
        if self.compressed:
            suffix += ".gz"
        if self.encrypted:
            suffix += ".gpg"
        return base + suffix


_PREFIX = r"(?P<prefix>[^.]+?)"
_TIME = r"(?P<time>[^.]+)"
_RANGE = r"(?P<start>[^.]+)\.to\.(?P<end>[^.]+)"
_SUFFIX = r"(?P<partial>\.part)?(?P<compressed>\.gz|\.z)?(?P<encrypted>\.gpg|\.g)?$"

_PATTERNS = (
    (FileKind.FULL, re.compile(rf"^{_PREFIX}-full\.{_TIME}\.vol(?P<num>[0-9]+)\.difftar{_SUFFIX}", re.I)),
    (FileKind.MANIFEST, re.compile(rf"^{_PREFIX}-full\.{_TIME}\.manifest{_SUFFIX}", re.I)),
    (FileKind.SIGNATURE, re.compile(rf"^{_PREFIX}-full-signatures\.{_TIME}\.sigtar{_SUFFIX}", re.I)),
    (FileKind.INCREMENTAL, re.compile(rf"^{_PREFIX}-inc\.{_RANGE}\.vol(?P<num>[0-9]+)\.difftar{_SUFFIX}", re.I)),
    (FileKind.MANIFEST, re.compile(rf"^{_PREFIX}-inc\.{_RANGE}\.manifest{_SUFFIX}", re.I)),
    (FileKind.SIGNATURE, re.compile(rf"^{_PREFIX}-new-signatures\.{_RANGE}\.sigtar{_SUFFIX}", re.I)),
)


def _descriptor_from_match(kind: FileKind, match: re.Match, name: str) -> Optional[FileDescriptor]:
    groups = match.groupdict()
    time_range = None
    if groups.get("time") is not None:
        time = parse_time_str(groups["time"])
        if time is None:
            return None
    else:
        start = parse_time_str(groups["start"])
        end = parse_time_str(groups["end"])
        if start is None or end is None:
            return None
        time_range = TimeRange(start, end)
        time = end

    volume_number = None
    if groups.get("num") is not None:
        volume_number = int(groups["num"])
        if volume_number < 1:
            return None

    return FileDescriptor(
        kind=kind,
        time=time,
        time_range=time_range,
        volume_number=volume_number,
        compressed=groups["compressed"] is not None,
        encrypted=groups["encrypted"] is not None,
        partial=groups["partial"] is not None,
        prefix=groups["prefix"],
        name=name,
    )


def parse_filename(name: str, prefix: Optional[str] = None) -> Optional[FileDescriptor]:
    """Classify a backend entry name.

    Args:
        name: File name as listed by the backend (no directory part)
        prefix: If given, only names with exactly this prefix are recognized

    Returns:
        The descriptor, or None if the name is not an archive file name.
        A name whose timestamps do not parse is never partially recognized.
    """
    for kind, pattern in _PATTERNS:
        match = pattern.match(name)
        if match is None:
            continue
        if prefix is not None and match.group("prefix") != prefix:
            return None
        return _descriptor_from_match(kind, match, name)
    return None
