"""Shared types for directory mirroring.

This module provides:
- FileAttribute: Attribute bitset carried by every directory entry
- EntryTag: Transient tag bits set by the planner
- MatchResult: Three-way result of the wildcard matcher
- CopyStatus: Outcome codes of the copy engine
- MirrorError, TreeError, ScanAbortedError, InvalidPathError,
  ConfigError, PlanError: Exception classes
- Type aliases for callbacks
"""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum, IntFlag
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dirmirror.core.tree import DirectoryEntry


# =============================================================================
# Attribute and tag bitsets
# =============================================================================


class FileAttribute(IntFlag):
    """Attribute bits of a directory entry.

    Values follow the classic FAT/NTFS attribute word so they survive a
    round trip through ``st_file_attributes`` on Windows.
    """

    NONE = 0x0000
    READONLY = 0x0001
    HIDDEN = 0x0002
    SYSTEM = 0x0004
    DIRECTORY = 0x0010

    @classmethod
    def protection(cls) -> FileAttribute:
        """Attributes that prevent a file from being overwritten or deleted."""
        return cls.READONLY | cls.HIDDEN | cls.SYSTEM


class EntryTag(IntFlag):
    """Application-defined tag bits, only meaningful during one run."""

    NONE = 0x0000
    EXISTS_IN_SOURCE = 0x0001


class MatchResult(IntEnum):
    """Result of evaluating a wildcard pattern."""

    ERROR = -1  # Pattern violates the grammar
    NO_MATCH = 0
    MATCH = 1


class CopyStatus(IntEnum):
    """Outcome of a single file copy."""

    SUCCESS = 0
    OPEN_READ_FAILED = -1
    OPEN_WRITE_FAILED = -2
    WRITE_FAILED = -3
    READ_FAILED = -4
    ABORTED = -5


# =============================================================================
# Exceptions
# =============================================================================


class MirrorError(Exception):
    """Base exception for mirror errors."""


class TreeError(MirrorError):
    """A directory tree operation failed.

    Attributes:
        path: Path of the directory where the failure occurred.
    """

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class ScanAbortedError(TreeError):
    """The directory-visited callback asked the scan to stop."""


class InvalidPathError(TreeError):
    """An empty or missing root path was given to a tree operation."""


class ConfigError(MirrorError):
    """Invalid mirror options (bad date, bad skew, missing paths)."""


class PlanError(MirrorError):
    """Source and destination disagree in a way that cannot be mirrored."""


# =============================================================================
# Callback type aliases
# =============================================================================

# Called once per directory before descending; return False to abort the scan
ScanCallback = Callable[[str], bool]

# Called per entry with (full path, entry, is_directory); return False to stop
EnumCallback = Callable[[str, "DirectoryEntry", bool], bool]

# Called per entry with (full path, entry, is_directory); return False to drop it
PruneCallback = Callable[[str, "DirectoryEntry", bool], bool]

# Called with (source, destination, bytes so far, total bytes); return False to abort
CopyProgressCallback = Callable[[str, str, int, int], bool]
