"""Timestamp comparison and date filtering.

This module provides:
- FileTimes: Creation, access and modification times of an entry
- compare_file_times: Exact or tolerant comparison of two timestamps
- DateBound: A calendar date parsed from ``mm/dd/yyyy``

All timestamps are integer nanoseconds since the epoch (``st_mtime_ns``),
broken down in UTC for calendar comparisons.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone

from dirmirror.core.types import ConfigError

# Default tolerance for non-exact comparisons. FAT timestamps have a
# 2-second resolution, so copies between FAT and NTFS/ext4 drift by that much.
DEFAULT_TIME_SKEW = 3  # seconds

_DATE_RE = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*$")


@dataclass(frozen=True)
class FileTimes:
    """The three timestamps of a filesystem entry, in nanoseconds."""

    created: int = 0
    accessed: int = 0
    modified: int = 0


def to_datetime(ns: int) -> datetime:
    """Convert a nanosecond timestamp to an aware UTC datetime."""
    return datetime.fromtimestamp(ns / 1_000_000_000, tz=timezone.utc)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def compare_file_times(
    t1: int,
    t2: int,
    exact: bool = False,
    skew: int = DEFAULT_TIME_SKEW,
) -> int:
    """Compare two timestamps field by field.

    Year, month, day and hour must always agree. In exact mode minute,
    second and millisecond must agree too; otherwise the minute and second
    of the hour may differ by up to ``skew`` seconds.

    Args:
        t1: First timestamp (ns).
        t2: Second timestamp (ns).
        exact: Require millisecond equality.
        skew: Tolerance in seconds for the non-exact mode.

    Returns:
        0 if the times are considered equal, 1 if t1 is later, -1 if earlier.
    """
    d1 = to_datetime(t1)
    d2 = to_datetime(t2)

    head1 = (d1.year, d1.month, d1.day, d1.hour)
    head2 = (d2.year, d2.month, d2.day, d2.hour)
    if head1 != head2:
        return 1 if head1 > head2 else -1

    if exact:
        tail1 = (d1.minute, d1.second, (t1 // 1_000_000) % 1000)
        tail2 = (d2.minute, d2.second, (t2 // 1_000_000) % 1000)
        if tail1 != tail2:
            return 1 if tail1 > tail2 else -1
        return 0

    secs1 = d1.minute * 60 + d1.second
    secs2 = d2.minute * 60 + d2.second
    if abs(secs1 - secs2) > skew:
        return _sign(secs1 - secs2)
    return 0


@dataclass(frozen=True)
class DateBound:
    """A calendar day used for ``--newer``/``--older`` filtering."""

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        """Reject impossible dates."""
        try:
            date(self.year, self.month, self.day)
        except ValueError as e:
            raise ConfigError(f"Invalid date {self}: {e}") from e

    def __str__(self) -> str:
        return f"{self.month:02d}/{self.day:02d}/{self.year:04d}"

    @classmethod
    def parse(cls, text: str) -> DateBound:
        """Parse a ``mm/dd/yyyy`` date.

        Raises:
            ConfigError: If the text is not a valid date.
        """
        match = _DATE_RE.match(text)
        if not match:
            raise ConfigError(f"Invalid date '{text}', expected mm/dd/yyyy")
        month, day, year = (int(part) for part in match.groups())
        return cls(year=year, month=month, day=day)

    def _key(self) -> tuple[int, int, int]:
        return (self.year, self.month, self.day)

    def allows_older(self, ns: int) -> bool:
        """Check a timestamp falls on or before this day."""
        d = to_datetime(ns)
        return (d.year, d.month, d.day) <= self._key()

    def allows_newer(self, ns: int) -> bool:
        """Check a timestamp falls on or after this day."""
        d = to_datetime(ns)
        return (d.year, d.month, d.day) >= self._key()
