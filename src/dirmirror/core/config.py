"""Configuration for a mirror run.

This module defines MirrorOptions, the single settings object passed from the
command line through the runner and planner down to the copy engine.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import PureWindowsPath

from dirmirror.core.timestamps import DEFAULT_TIME_SKEW, DateBound
from dirmirror.core.types import ConfigError


def strip_separators(path: str) -> str:
    """Remove trailing separators, keeping a bare filesystem root intact."""
    stripped = path.rstrip("/\\")
    if not stripped:
        return path[:1]
    if stripped.endswith(":"):
        # Drive root such as "C:\"
        return stripped + path[len(stripped):len(stripped) + 1]
    return stripped


def without_anchor(path: str) -> str:
    """Return ``path`` without its drive and leading separators.

    ``C:\\data\\photos`` and ``/data/photos`` both become ``data/photos``
    (with the original separators).
    """
    drive = PureWindowsPath(path).drive if ":" in path[:3] else ""
    return path[len(drive):].lstrip("/\\")


@dataclass
class MirrorOptions:
    """Settings of a mirror run.

    Attributes:
        source: Directory to copy from.
        destination: Directory to copy into.
        wildcards: Keep only paths matching at least one wildcard.
        includes: Keep only paths containing at least one of these substrings.
        excludes: Drop paths containing any of these substrings.
        newer_than: Keep only entries modified on or after this day.
        older_than: Keep only entries modified on or before this day.
        update: Skip files whose size and modification time already match.
        verify: Compare every copied file with its source.
        continue_after_error: Keep going after a per-entry error.
        quiet: Suppress per-file output and progress.
        verbose: Report skipped and created entries.
        debug: Dump both trees before copying.
        no_copy: Report what would be done without touching anything.
        show_path: Report full source and destination paths.
        list_only: List the filtered source tree and stop.
        hidden: Include hidden and system entries.
        overwrite: Replace read-only, hidden or system destination files.
        move: Delete source files and directories after copying.
        clean: Delete destination entries that do not exist in the source.
        wait: Ask for confirmation before copying.
        root: Append the source path (without drive) to the destination.
        low_priority: Yield the CPU between copy chunks.
        exact_times: Require millisecond-exact timestamps for update skips.
        time_skew: Seconds of tolerance for non-exact timestamp comparison.
    """

    source: str
    destination: str
    wildcards: list[str] = field(default_factory=list)
    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    newer_than: DateBound | None = None
    older_than: DateBound | None = None
    update: bool = False
    verify: bool = False
    continue_after_error: bool = False
    quiet: bool = False
    verbose: bool = False
    debug: bool = False
    no_copy: bool = False
    show_path: bool = False
    list_only: bool = False
    hidden: bool = False
    overwrite: bool = False
    move: bool = False
    clean: bool = False
    wait: bool = False
    root: bool = False
    low_priority: bool = False
    exact_times: bool = False
    time_skew: int = DEFAULT_TIME_SKEW

    def __post_init__(self) -> None:
        """Validate and normalize paths and lists."""
        if not self.source:
            raise ConfigError("No source directory given")
        if not self.destination:
            raise ConfigError("No destination directory given")
        if self.time_skew < 0:
            raise ConfigError(f"Time skew must not be negative, got {self.time_skew}")

        self.source = strip_separators(os.path.abspath(os.path.expanduser(self.source)))
        destination = os.path.abspath(os.path.expanduser(self.destination))
        if self.root:
            destination = os.path.join(destination, without_anchor(self.source))
        self.destination = strip_separators(destination)

        self.wildcards = [w for w in self.wildcards if w]
        self.includes = [i for i in self.includes if i]
        self.excludes = [x for x in self.excludes if x]

        if os.path.normcase(self.source) == os.path.normcase(self.destination):
            raise ConfigError("Source and destination are the same directory")

    @property
    def has_date_filter(self) -> bool:
        return self.newer_than is not None or self.older_than is not None
