"""Orchestration of a complete mirror run.

This module provides:
- MirrorRunner: Scan, tag, filter, copy, move and clean in two phases
- dump_tree: Debug listing of every entry in a tree

The run is split so a caller can inspect totals between scanning and
copying (to display them or ask for confirmation):

    runner = MirrorRunner(options)
    runner.prepare()       # scan both trees, tag, filter, count
    result = runner.execute()  # copy, then move/clean
"""

from __future__ import annotations

import logging
import os
import time

from dirmirror.core.config import MirrorOptions
from dirmirror.core.copier import CopyEngine
from dirmirror.core.timestamps import to_datetime
from dirmirror.core.tree import DirectoryEntry, DirectoryNode, scan_tree
from dirmirror.core.types import MirrorError, PlanError, ScanCallback, TreeError
from dirmirror.mirror.planner import ActionCallback, MirrorPlanner, PhaseProgressCallback
from dirmirror.mirror.totals import MirrorResult, MirrorTotals

logger = logging.getLogger(__name__)


def dump_tree(tree: DirectoryNode, root_path: str) -> list[str]:
    """Describe every entry of a tree, one pair of lines per entry."""
    lines: list[str] = []

    def describe(path: str, entry: DirectoryEntry, is_directory: bool) -> bool:
        kind = "d" if is_directory else "f"
        modified = to_datetime(entry.modified).strftime("%Y-%m-%d %H:%M:%S")
        lines.append(
            f"{kind} S:{entry.size:>10} A:{int(entry.attributes):08X} "
            f"U:{int(entry.tag):08X} LW:{modified} N:{entry.name:<40}"
        )
        lines.append(f"    P: '{path}'")
        return True

    tree.enum_files(root_path, describe)
    return lines


class MirrorRunner:
    """Runs one mirror from source to destination.

    Errors that make the run impossible (missing source, empty source,
    unreadable tree) are raised as MirrorError subclasses. Per-entry
    problems are counted in the result's totals instead.
    """

    def __init__(
        self,
        options: MirrorOptions,
        on_scan: ScanCallback | None = None,
        on_action: ActionCallback | None = None,
        on_progress: PhaseProgressCallback | None = None,
        engine: CopyEngine | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            options: Settings of the run.
            on_scan: Called with each directory while scanning; returning
                False aborts the scan.
            on_action: Receives one line per copy/create/delete action.
            on_progress: Receives copy and verify progress.
            engine: Copy engine to use (default honors ``low_priority``).
        """
        self.options = options
        self.totals = MirrorTotals()
        self.result = MirrorResult(totals=self.totals)
        self.source_tree: DirectoryNode | None = None
        self.dest_tree: DirectoryNode | None = None
        self._on_scan = on_scan
        self._on_action = on_action
        self._on_progress = on_progress
        self._engine = engine or CopyEngine(low_priority=options.low_priority)
        self._planner: MirrorPlanner | None = None

    @property
    def planner(self) -> MirrorPlanner:
        if self._planner is None:
            raise MirrorError("prepare() must be called before execute()")
        return self._planner

    def _scan_destination(self) -> DirectoryNode:
        dest = self.options.destination
        if os.path.isdir(dest):
            logger.info(f"Scanning destination {dest}")
            return scan_tree(dest, self._on_scan)
        if os.path.exists(dest):
            raise PlanError(f"Destination exists and is not a directory: {dest}")
        logger.info(f"Destination {dest} does not exist yet")
        return DirectoryNode()

    def prepare(self) -> MirrorResult:
        """Scan both trees, tag the destination, filter and count the source.

        Raises:
            MirrorError: If the source is missing or empty.
            TreeError: If a tree could not be scanned or filtered.
        """
        opts = self.options
        start = time.monotonic()

        if not os.path.isdir(opts.source):
            raise MirrorError(f"Source directory not found: {opts.source}")

        logger.info(f"Scanning source {opts.source}")
        source_tree = scan_tree(opts.source, self._on_scan)
        if source_tree.is_empty:
            raise MirrorError(f"Nothing in source directory to copy: {opts.source}")
        dest_tree = self._scan_destination()

        self._planner = MirrorPlanner(
            opts,
            source_tree,
            dest_tree,
            self.totals,
            engine=self._engine,
            on_action=self._on_action,
            on_progress=self._on_progress,
        )

        # Tags must come from the unfiltered source
        self._planner.tag_destination()
        if not self._planner.prune_source():
            raise TreeError(f"Failed filtering source: {source_tree.error}", opts.source)

        self.source_tree = source_tree
        self.dest_tree = dest_tree
        self.result.source_counts = source_tree.count(opts.source)
        self.result.dest_counts = (
            dest_tree.count(opts.destination) if os.path.isdir(opts.destination) else None
        )
        self.result.scan_time = time.monotonic() - start
        logger.info(
            f"Source contains {self.result.source_counts.dirs} directories, "
            f"{self.result.source_counts.files} files, "
            f"{self.result.source_counts.bytes} bytes after filtering"
        )

        if opts.list_only:
            self.result.listed = self.list_source()
        return self.result

    def list_source(self) -> list[str]:
        """Paths that would be copied; directories are shown in brackets."""
        if self.source_tree is None:
            return []
        listed: list[str] = []

        def collect(path: str, entry: DirectoryEntry, is_directory: bool) -> bool:
            listed.append(f"[{path}]" if is_directory else path)
            return True

        self.source_tree.enum_files(self.options.source, collect)
        return listed

    def execute(self) -> MirrorResult:
        """Copy the filtered source, then delete moved or stray entries.

        Does nothing in list mode.
        """
        opts = self.options
        planner = self.planner
        if opts.list_only:
            return self.result

        start = time.monotonic()
        logger.info(f"Mirroring {opts.source} -> {opts.destination}")

        completed = planner.copy_all()
        if not completed:
            logger.error(f"Failed copying files: {planner.stop_reason}")

        if completed and opts.move:
            completed = planner.delete_source_dirs()

        if completed and opts.clean:
            completed = planner.clean_destination()
            if not completed:
                logger.error(f"Failed deleting files: {planner.stop_reason}")

        self.result.completed = completed
        self.result.elapsed = time.monotonic() - start
        logger.info(
            f"Completed with {self.totals.errors} errors, {self.totals.warnings} warnings"
        )
        return self.result

    def run(self) -> MirrorResult:
        """Prepare and execute in one go."""
        self.prepare()
        return self.execute()
