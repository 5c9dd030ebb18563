"""Cross-tree decisions for mirroring a source tree onto a destination.

This module provides:
- MirrorPlanner: Tags, filters, copies, moves and cleans using two trees
- ActionCallback, PhaseProgressCallback: Type aliases for reporting hooks

The planner works on two snapshots taken before anything is changed on disk.
Every per-entry method follows the enumeration visitor contract: it returns
False to stop the enumeration, True to move on to the next entry.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from functools import partial

from dirmirror.core.attributes import clear_protection, copy_attributes, copy_times
from dirmirror.core.config import MirrorOptions
from dirmirror.core.copier import CopyEngine, CopyResult
from dirmirror.core.matching import substring_match, wildcard_match
from dirmirror.core.timestamps import compare_file_times
from dirmirror.core.tree import DirectoryEntry, DirectoryNode
from dirmirror.core.types import CopyProgressCallback, CopyStatus, EntryTag, FileAttribute
from dirmirror.mirror.totals import MirrorTotals

logger = logging.getLogger(__name__)

# Receives one human-readable line per action ("Copying a.txt")
ActionCallback = Callable[[str], None]

# Receives (phase, source, destination, bytes so far, total); phase is
# "C" while copying and "V" while verifying
PhaseProgressCallback = Callable[[str, str, str, int, int], bool]

COPY_PHASE = "C"
VERIFY_PHASE = "V"

_COPY_FAILURES = {
    CopyStatus.OPEN_READ_FAILED: "Open for read failed",
    CopyStatus.OPEN_WRITE_FAILED: "Open for write failed",
    CopyStatus.WRITE_FAILED: "File write failed",
    CopyStatus.READ_FAILED: "File read failed",
    CopyStatus.ABORTED: "Aborted by user",
}


class MirrorPlanner:
    """Applies mirror options to a source and destination tree.

    The totals accumulator is owned by the caller and updated in place.

    Usage:
        planner = MirrorPlanner(options, source_tree, dest_tree, totals)
        planner.tag_destination()
        planner.prune_source()
        planner.copy_all()
        if options.clean:
            planner.clean_destination()
    """

    def __init__(
        self,
        options: MirrorOptions,
        source_tree: DirectoryNode,
        dest_tree: DirectoryNode,
        totals: MirrorTotals,
        engine: CopyEngine | None = None,
        on_action: ActionCallback | None = None,
        on_progress: PhaseProgressCallback | None = None,
    ) -> None:
        self.options = options
        self.source_tree = source_tree
        self.dest_tree = dest_tree
        self.totals = totals
        self.engine = engine or CopyEngine(low_priority=options.low_priority)
        self._on_action = on_action
        self._on_progress = on_progress
        self.stop_reason = ""

    # =========================================================================
    # Reporting helpers
    # =========================================================================

    def _action(self, message: str) -> None:
        logger.debug(message)
        if self._on_action is not None and not self.options.quiet:
            self._on_action(message)

    def _error(self, message: str, path: str) -> None:
        text = f"{message}: {path}"
        logger.error(text)
        self.totals.add_error(text)

    def _warning(self, message: str, path: str) -> None:
        text = f"{message}: {path}"
        logger.warning(text)
        self.totals.add_warning(text)

    def _after_error(self, message: str, path: str) -> bool:
        """Record an error and decide whether the enumeration continues."""
        self._error(message, path)
        if self.options.continue_after_error:
            return True
        self.stop_reason = f"{message}: {path}"
        return False

    def _progress(self, phase: str) -> CopyProgressCallback | None:
        if self._on_progress is None or self.options.quiet:
            return None
        return partial(self._on_progress, phase)

    # =========================================================================
    # Paths
    # =========================================================================

    def relative_path(self, path: str) -> str:
        """Path of ``path`` relative to the source root."""
        return path[len(self.options.source):].lstrip("/\\")

    def destination_path(self, relative: str) -> str:
        return os.path.join(self.options.destination, relative)

    # =========================================================================
    # Tagging and filtering
    # =========================================================================

    def _tag_entry(self, path: str, entry: DirectoryEntry, is_directory: bool) -> bool:
        existing = self.dest_tree.file_exists(self.relative_path(path))
        if existing is not None:
            existing.tag |= EntryTag.EXISTS_IN_SOURCE
        return True

    def tag_destination(self) -> bool:
        """Tag every destination entry that also exists in the source.

        Must run on the unfiltered source tree so that files excluded from
        copying are still protected from cleaning.
        """
        return self.source_tree.enum_files(self.options.source, self._tag_entry)

    def should_keep(self, path: str, entry: DirectoryEntry, is_directory: bool) -> bool:
        """Filter predicate applied to the source tree.

        Checks run in order: includes, excludes, wildcards, date bounds,
        hidden/system. Every check applies to directories as well, so a
        rejected directory is dropped together with everything below it.
        """
        opts = self.options

        if opts.includes:
            if not any(substring_match(include, path) for include in opts.includes):
                return False

        if opts.excludes:
            if any(substring_match(exclude, path) for exclude in opts.excludes):
                return False

        if opts.wildcards:
            if not any(wildcard_match(wild, path) for wild in opts.wildcards):
                return False

        if opts.has_date_filter:
            if opts.older_than is not None and not opts.older_than.allows_older(entry.modified):
                return False
            if opts.newer_than is not None and not opts.newer_than.allows_newer(entry.modified):
                return False

        if not opts.hidden:
            if entry.attributes & (FileAttribute.HIDDEN | FileAttribute.SYSTEM):
                return False

        return True

    def prune_source(self) -> bool:
        """Drop source entries rejected by ``should_keep``."""
        return self.source_tree.prune_files(self.options.source, self.should_keep)

    # =========================================================================
    # Copying
    # =========================================================================

    def make_destination_root(self) -> bool:
        """Create the destination root directory if needed."""
        dest = self.options.destination
        if os.path.isdir(dest):
            self.totals.dirs_already_exist += 1
        elif self.options.no_copy:
            self._action(f"Would be creating directory {dest}")
        else:
            logger.info(f"Creating directory {dest}")
            try:
                os.makedirs(dest, exist_ok=True)
            except OSError as e:
                self._error(f"Failed creating directory ({e.strerror or e})", dest)
                self.stop_reason = f"Failed creating directory: {dest}"
                return False
            self.totals.dirs_created += 1
        self.totals.dirs_copied += 1
        return True

    def copy_all(self) -> bool:
        """Create the destination root, then copy the filtered source tree.

        Returns:
            False if the run stopped early (see ``stop_reason``).
        """
        if not self.make_destination_root():
            return False
        return self.source_tree.enum_files(self.options.source, self.copy_entry)

    def copy_entry(self, path: str, entry: DirectoryEntry, is_directory: bool) -> bool:
        """Mirror one source entry onto the destination."""
        relative = self.relative_path(path)
        dest = self.destination_path(relative)
        existing = self.dest_tree.file_exists(relative)

        if existing is not None:
            if is_directory and not existing.is_directory:
                return self._after_error(
                    "Directory in source has same name as a file in destination", relative
                )
            if not is_directory and existing.is_directory:
                return self._after_error(
                    "File in source has same name as a directory in destination", relative
                )

        if is_directory:
            return self._copy_directory(path, dest, existing)
        return self._copy_file(path, relative, dest, entry, existing)

    def _copy_directory(self, path: str, dest: str, existing: DirectoryEntry | None) -> bool:
        if existing is not None:
            self.totals.dirs_already_exist += 1
        elif self.options.no_copy:
            self._action(f"Would be creating directory {dest}")
        else:
            try:
                os.makedirs(dest, exist_ok=True)
            except OSError as e:
                return self._after_error(
                    f"Failed creating directory ({e.strerror or e})", dest
                )
            logger.info(f"Created directory {dest}")
            try:
                copy_attributes(path, dest, is_directory=True)
            except OSError:
                self._warning("Failed resetting file attributes on new directory", dest)
            self.totals.dirs_created += 1

        if not self.options.no_copy:
            self.totals.dirs_copied += 1
        return True

    def is_up_to_date(self, entry: DirectoryEntry, existing: DirectoryEntry) -> bool:
        """Check size and modification time match closely enough to skip."""
        if entry.size != existing.size:
            return False
        return compare_file_times(
            entry.modified,
            existing.modified,
            exact=self.options.exact_times,
            skew=self.options.time_skew,
        ) == 0

    def _copy_file(
        self,
        path: str,
        relative: str,
        dest: str,
        entry: DirectoryEntry,
        existing: DirectoryEntry | None,
    ) -> bool:
        opts = self.options

        if opts.update and existing is not None and self.is_up_to_date(entry, existing):
            logger.info(f"Already exists and has same size and date: {dest}")
            self.totals.files_already_exist += 1
            self.totals.bytes_already_exist += existing.size
            return True

        if existing is not None and existing.is_protected:
            if not opts.overwrite:
                self._warning("Already exists and is read-only, hidden, or system", dest)
                return True
            if not opts.no_copy:
                try:
                    clear_protection(dest)
                except OSError:
                    self._warning(
                        "Failed changing existing read-only or hidden or system file to writable",
                        dest,
                    )

        shown = f"{path} -> {dest}" if opts.show_path else relative
        self._action(f"Would be copying {shown}" if opts.no_copy else f"Copying {shown}")
        if opts.no_copy:
            return True

        result = self.engine.copy(path, dest, self._progress(COPY_PHASE))
        if not result.ok:
            return self._copy_failed(result, path, dest)

        try:
            copy_times(entry.times, dest)
        except OSError as e:
            if not self._after_error(f"Failed setting timestamp ({e.strerror or e})", dest):
                return False
        try:
            copy_attributes(path, dest)
        except OSError:
            self._warning("Failed resetting file attributes", dest)

        self.totals.files_copied += 1
        self.totals.bytes_copied += result.bytes_copied

        if opts.verify and not self.engine.compare(path, dest, self._progress(VERIFY_PHASE)):
            # The source stays when its copy is bad, even in move mode
            return self._after_error("Verify error; files are different", relative)

        if opts.move:
            try:
                os.unlink(path)
            except OSError:
                self._warning("Couldn't delete original file", path)
            else:
                self.totals.source_files_deleted += 1
                self.totals.source_bytes_deleted += entry.size
        return True

    def _copy_failed(self, result: CopyResult, path: str, dest: str) -> bool:
        message = _COPY_FAILURES[result.status]
        culprit = path if result.status in (CopyStatus.OPEN_READ_FAILED, CopyStatus.READ_FAILED) else dest
        if result.status == CopyStatus.ABORTED:
            self._error(message, path)
            self.stop_reason = f"{message}: {path}"
            return False
        detail = f" ({result.error})" if result.error else ""
        return self._after_error(f"{message}{detail}", culprit)

    # =========================================================================
    # Deleting
    # =========================================================================

    def _delete_source_dir(self, path: str, entry: DirectoryEntry, is_directory: bool) -> bool:
        if not is_directory:
            return True
        if self.options.no_copy:
            self._action(f"Would be deleting directory {path}")
            return True
        self._action(f"Deleting directory {path}")
        try:
            os.rmdir(path)
        except OSError:
            self._warning("Couldn't delete original directory", path)
        else:
            self.totals.source_dirs_deleted += 1
        return True

    def delete_source_dirs(self) -> bool:
        """Remove the emptied source directories after a move.

        Directories are visited bottom-up so children go before parents.
        The source root is removed last.
        """
        if not self.source_tree.enum_files_reverse(self.options.source, self._delete_source_dir):
            return False
        root = DirectoryEntry(name="", attributes=FileAttribute.DIRECTORY)
        return self._delete_source_dir(self.options.source, root, True)

    def _delete_untagged(self, path: str, entry: DirectoryEntry, is_directory: bool) -> bool:
        if os.path.normcase(path) == os.path.normcase(self.options.destination):
            return True
        if entry.tag & EntryTag.EXISTS_IN_SOURCE:
            return True

        if self.options.no_copy:
            self._action(f"Would be deleting {path}")
            return True
        self._action(f"Deleting {path}")

        if is_directory:
            try:
                os.rmdir(path)
            except OSError:
                self._warning("Couldn't delete directory", path)
            else:
                self.totals.dest_dirs_deleted += 1
            return True

        try:
            os.unlink(path)
        except OSError:
            try:
                clear_protection(path)
            except OSError:
                self._warning(
                    "Failed changing existing read-only or hidden or system file to writable",
                    path,
                )
            try:
                os.unlink(path)
            except OSError:
                self._warning("Couldn't delete file", path)
                return True
        self.totals.dest_files_deleted += 1
        self.totals.dest_bytes_deleted += entry.size
        return True

    def clean_destination(self) -> bool:
        """Delete destination entries that have no counterpart in the source.

        Runs bottom-up so directories are only removed once emptied. The
        destination root is never removed.
        """
        return self.dest_tree.enum_files_reverse(self.options.destination, self._delete_untagged)
