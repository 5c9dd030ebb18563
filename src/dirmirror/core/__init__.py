"""Core module - Path matching, directory trees, and the copy engine."""

from dirmirror.core.config import MirrorOptions
from dirmirror.core.copier import CHUNK_SIZE, CopyEngine, CopyResult
from dirmirror.core.matching import check_wildcard, substring_match, wildcard_match
from dirmirror.core.timestamps import (
    DEFAULT_TIME_SKEW,
    DateBound,
    FileTimes,
    compare_file_times,
)
from dirmirror.core.tree import DirectoryEntry, DirectoryNode, TreeCounts, scan_tree
from dirmirror.core.types import (
    ConfigError,
    CopyStatus,
    EntryTag,
    FileAttribute,
    InvalidPathError,
    MatchResult,
    MirrorError,
    PlanError,
    ScanAbortedError,
    TreeError,
)

__all__ = [
    # Config
    "MirrorOptions",
    # Copy engine
    "CHUNK_SIZE",
    "CopyEngine",
    "CopyResult",
    # Matching
    "check_wildcard",
    "substring_match",
    "wildcard_match",
    # Timestamps
    "DEFAULT_TIME_SKEW",
    "DateBound",
    "FileTimes",
    "compare_file_times",
    # Tree
    "DirectoryEntry",
    "DirectoryNode",
    "TreeCounts",
    "scan_tree",
    # Types
    "ConfigError",
    "CopyStatus",
    "EntryTag",
    "FileAttribute",
    "InvalidPathError",
    "MatchResult",
    "MirrorError",
    "PlanError",
    "ScanAbortedError",
    "TreeError",
]
