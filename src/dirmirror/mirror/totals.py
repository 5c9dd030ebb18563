"""Counters and results of a mirror run.

This module provides:
- MirrorTotals: Mutable accumulator owned by the caller of a run
- MirrorResult: Final outcome handed back to the command line
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dirmirror.core.tree import TreeCounts


@dataclass
class MirrorTotals:
    """What a run copied, skipped and deleted.

    Error and warning messages are kept in order so they can be summarized
    after the run.
    """

    bytes_copied: int = 0
    bytes_already_exist: int = 0
    files_copied: int = 0
    files_already_exist: int = 0
    dirs_copied: int = 0
    dirs_created: int = 0
    dirs_already_exist: int = 0
    source_files_deleted: int = 0
    source_dirs_deleted: int = 0
    source_bytes_deleted: int = 0
    dest_files_deleted: int = 0
    dest_dirs_deleted: int = 0
    dest_bytes_deleted: int = 0
    error_messages: list[str] = field(default_factory=list)
    warning_messages: list[str] = field(default_factory=list)

    @property
    def errors(self) -> int:
        return len(self.error_messages)

    @property
    def warnings(self) -> int:
        return len(self.warning_messages)

    def add_error(self, message: str) -> None:
        self.error_messages.append(message)

    def add_warning(self, message: str) -> None:
        self.warning_messages.append(message)


@dataclass
class MirrorResult:
    """Outcome of a complete run.

    Attributes:
        totals: Counters accumulated during the run.
        source_counts: Filtered source tree totals (None if not scanned).
        dest_counts: Destination tree totals before copying.
        elapsed: Seconds spent after scanning.
        scan_time: Seconds spent scanning both trees.
        completed: False if the run stopped early.
        listed: Paths reported in list mode.
    """

    totals: MirrorTotals
    source_counts: TreeCounts | None = None
    dest_counts: TreeCounts | None = None
    elapsed: float = 0.0
    scan_time: float = 0.0
    completed: bool = True
    listed: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.completed and self.totals.errors == 0

    @property
    def rate_kb_per_second(self) -> float | None:
        """Average copy rate, or None when no time was measured."""
        if self.elapsed <= 0:
            return None
        return self.totals.bytes_copied / 1024.0 / self.elapsed
