"""In-memory snapshot of a directory tree.

This module provides:
- DirectoryEntry: Metadata of one file or directory
- DirectoryNode: One directory with its files and subdirectories
- TreeCounts: Directory/file/byte totals of a tree
- scan_tree: Build a tree from disk, raising on failure
- split_relative: Split a relative path on either separator

A tree is built by one recursive scan, optionally narrowed by pruning, then
read through forward (pre-order) or reverse (bottom-up) enumeration. Tags on
entries are the only thing mutated after the scan.

Usage:
    tree = scan_tree("/data/photos")
    tree.enum_files("/data/photos", lambda path, entry, is_dir: print(path) or True)
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field

from dirmirror.core.attributes import attributes_from_stat, times_from_stat
from dirmirror.core.timestamps import FileTimes
from dirmirror.core.types import (
    EntryTag,
    EnumCallback,
    FileAttribute,
    InvalidPathError,
    PruneCallback,
    ScanAbortedError,
    ScanCallback,
    TreeError,
)

logger = logging.getLogger(__name__)

BAD_PARAMETER = "Bad parameter: empty directory path"

_SEPARATOR_RE = re.compile(r"[\\/]")


def split_relative(path: str) -> tuple[str, str | None]:
    """Split off the first segment of a relative path.

    Args:
        path: Path relative to a tree root, using ``/`` or ``\\``.

    Returns:
        (first segment, remainder) where remainder is None for a bare name.
    """
    parts = _SEPARATOR_RE.split(path, maxsplit=1)
    if len(parts) == 1:
        return parts[0], None
    return parts[0], parts[1]


@dataclass
class DirectoryEntry:
    """Metadata of one file or directory, captured at scan time.

    Attributes:
        name: Directory-local name (compared case-insensitively).
        size: Size in bytes (0 for directories).
        attributes: FileAttribute bitset.
        times: Creation, access and modification timestamps (ns).
        tag: Transient EntryTag bits used while planning a mirror.
    """

    name: str
    size: int = 0
    attributes: FileAttribute = FileAttribute.NONE
    times: FileTimes = field(default_factory=FileTimes)
    tag: EntryTag = EntryTag.NONE

    @classmethod
    def from_stat(cls, name: str, st: os.stat_result) -> DirectoryEntry:
        """Create an entry from a stat result."""
        attrs = attributes_from_stat(name, st)
        size = 0 if attrs & FileAttribute.DIRECTORY else st.st_size
        return cls(name=name, size=size, attributes=attrs, times=times_from_stat(st))

    @property
    def is_directory(self) -> bool:
        return bool(self.attributes & FileAttribute.DIRECTORY)

    @property
    def is_protected(self) -> bool:
        """True if read-only, hidden or system."""
        return bool(self.attributes & FileAttribute.protection())

    @property
    def modified(self) -> int:
        return self.times.modified

    @property
    def key(self) -> str:
        """Case-insensitive lookup key."""
        return self.name.lower()


@dataclass
class TreeCounts:
    """Totals gathered by enumerating a tree."""

    dirs: int = 0
    files: int = 0
    bytes: int = 0

    def add(self, path: str, entry: DirectoryEntry, is_directory: bool) -> bool:
        """Enumeration callback that accumulates one entry."""
        if is_directory:
            self.dirs += 1
        else:
            self.files += 1
        self.bytes += entry.size
        return True


class DirectoryNode:
    """A directory and everything below it.

    Children are kept in insertion order and are exclusively owned by this
    node. Operations that fail store a message in ``error`` on the failing
    node and on every enclosing node on the way back up.
    """

    def __init__(self, entry: DirectoryEntry | None = None) -> None:
        """Initialize an empty node.

        Args:
            entry: This directory's own entry. Defaults to an unnamed
                directory entry, which is what a tree root carries.
        """
        self.entry = entry or DirectoryEntry(name="", attributes=FileAttribute.DIRECTORY)
        self.files: list[DirectoryEntry] = []
        self.children: list[DirectoryNode] = []
        self.error = ""
        self._file_index: dict[str, DirectoryEntry] = {}
        self._child_index: dict[str, DirectoryNode] = {}

    def __repr__(self) -> str:
        return (
            f"DirectoryNode(name={self.entry.name!r}, files={len(self.files)}, "
            f"children={len(self.children)})"
        )

    @property
    def is_empty(self) -> bool:
        return not self.files and not self.children

    # =========================================================================
    # Construction
    # =========================================================================

    def add_file(self, entry: DirectoryEntry) -> bool:
        """Append a file entry unless its name is already taken.

        Returns:
            True if the entry was added.
        """
        if entry.key in self._file_index:
            return False
        self.files.append(entry)
        self._file_index[entry.key] = entry
        return True

    def add_child(self, node: DirectoryNode) -> bool:
        """Append a child directory unless its name is already taken.

        Returns:
            True if the child was added.
        """
        if node.entry.key in self._child_index:
            return False
        self.children.append(node)
        self._child_index[node.entry.key] = node
        return True

    def scan_files(self, root_path: str, on_directory: ScanCallback | None = None) -> bool:
        """Fill this node from the directory at ``root_path``.

        Subdirectories are scanned recursively as soon as they are listed.
        Entries are taken in name order. Symlinks are skipped, and names that
        differ only by case from an earlier sibling are skipped with a warning.

        Args:
            root_path: Directory to scan.
            on_directory: Called with each directory path (this one included)
                before it is listed. Returning False aborts the scan.

        Returns:
            True on success. On failure ``error`` holds the reason.
        """
        if not root_path:
            self.error = BAD_PARAMETER
            return False

        if on_directory is not None and not on_directory(root_path):
            self.error = f"Scan aborted at {root_path}"
            return False

        try:
            with os.scandir(root_path) as it:
                listing = sorted(it, key=lambda e: e.name)
        except OSError as e:
            self.error = f"Failed listing {root_path}: {e.strerror or e}"
            return False

        for dir_entry in listing:
            if dir_entry.name in (".", ".."):
                continue
            try:
                if dir_entry.is_symlink():
                    logger.debug(f"Skipping symlink {dir_entry.path}")
                    continue
                entry = DirectoryEntry.from_stat(dir_entry.name, dir_entry.stat())
            except OSError as e:
                logger.warning(f"Cannot read {dir_entry.path}: {e}")
                continue

            if entry.is_directory:
                child = DirectoryNode(entry)
                if not self.add_child(child):
                    logger.warning(f"Skipping {dir_entry.path}: name differs only by case")
                    continue
                if not child.scan_files(dir_entry.path, on_directory):
                    self.error = child.error
                    return False
            elif not self.add_file(entry):
                logger.warning(f"Skipping {dir_entry.path}: name differs only by case")

        return True

    # =========================================================================
    # Pruning
    # =========================================================================

    def prune_files(self, root_path: str, keep: PruneCallback) -> bool:
        """Remove entries for which ``keep`` returns False.

        Files at this level are checked first, then subdirectories at this
        level (against their own entry only), then the surviving
        subdirectories are pruned recursively.

        Args:
            root_path: Full path of this node.
            keep: Predicate called with (path, entry, is_directory).

        Returns:
            True on success. On failure ``error`` holds the reason.
        """
        if not root_path:
            self.error = BAD_PARAMETER
            return False

        self.files = [
            entry for entry in self.files
            if keep(os.path.join(root_path, entry.name), entry, False)
        ]
        self.children = [
            child for child in self.children
            if keep(os.path.join(root_path, child.entry.name), child.entry, True)
        ]
        self._reindex()

        for child in self.children:
            if not child.prune_files(os.path.join(root_path, child.entry.name), keep):
                self.error = child.error
                return False
        return True

    def _reindex(self) -> None:
        self._file_index = {entry.key: entry for entry in self.files}
        self._child_index = {child.entry.key: child for child in self.children}

    # =========================================================================
    # Enumeration
    # =========================================================================

    def enum_files(self, root_path: str, visitor: EnumCallback) -> bool:
        """Visit every entry in pre-order.

        Files at this level come first, then each subdirectory's own entry
        immediately followed by its contents. The node's own entry is not
        visited.

        Returns:
            False if the visitor stopped the enumeration.
        """
        if not root_path:
            self.error = BAD_PARAMETER
            return False

        for entry in self.files:
            if not visitor(os.path.join(root_path, entry.name), entry, False):
                return False

        for child in self.children:
            child_path = os.path.join(root_path, child.entry.name)
            if not visitor(child_path, child.entry, True):
                return False
            if not child.enum_files(child_path, visitor):
                self.error = self.error or child.error
                return False
        return True

    def enum_files_reverse(self, root_path: str, visitor: EnumCallback) -> bool:
        """Visit every entry bottom-up.

        Files at this level come first, then for each subdirectory its
        contents followed by its own entry, so a directory is always visited
        after everything it contains.

        Returns:
            False if the visitor stopped the enumeration.
        """
        if not root_path:
            self.error = BAD_PARAMETER
            return False

        for entry in self.files:
            if not visitor(os.path.join(root_path, entry.name), entry, False):
                return False

        for child in self.children:
            child_path = os.path.join(root_path, child.entry.name)
            if not child.enum_files_reverse(child_path, visitor):
                self.error = self.error or child.error
                return False
            if not visitor(child_path, child.entry, True):
                return False
        return True

    # =========================================================================
    # Lookup
    # =========================================================================

    def file_exists(self, relative_path: str) -> DirectoryEntry | None:
        """Find an entry by path relative to this node.

        Lookup is case-insensitive. A bare name is checked against this
        level's files, then its subdirectories.

        Returns:
            The matching entry (shared, not copied), or None.
        """
        head, rest = split_relative(relative_path)
        key = head.lower()
        if rest is None:
            entry = self._file_index.get(key)
            if entry is not None:
                return entry
            child = self._child_index.get(key)
            return child.entry if child is not None else None

        child = self._child_index.get(key)
        if child is None:
            return None
        return child.file_exists(rest)

    def count(self, root_path: str) -> TreeCounts:
        """Count directories (this one included), files and bytes."""
        counts = TreeCounts(dirs=1)
        self.enum_files(root_path, counts.add)
        return counts


def scan_tree(root_path: str, on_directory: ScanCallback | None = None) -> DirectoryNode:
    """Scan ``root_path`` into a new tree.

    Raises:
        InvalidPathError: If the path is empty.
        ScanAbortedError: If ``on_directory`` returned False.
        TreeError: If a directory could not be listed.
    """
    if not root_path:
        raise InvalidPathError(BAD_PARAMETER)
    node = DirectoryNode()

    aborted: list[str] = []

    def visit(path: str) -> bool:
        if on_directory is None or on_directory(path):
            return True
        aborted.append(path)
        return False

    if not node.scan_files(root_path, visit):
        if aborted:
            raise ScanAbortedError(node.error, aborted[0])
        raise TreeError(node.error, root_path)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Scanned {root_path}: {node.count(root_path)}")
    return node
