"""Filesystem attribute helpers.

This module provides:
- attributes_from_stat: Build a FileAttribute bitset from a stat result
- times_from_stat: Build FileTimes from a stat result
- copy_attributes: Apply a source entry's permission bits to a destination
- copy_times: Apply access/modification times to a destination
- clear_protection: Make a protected file writable so it can be replaced

Hidden follows the platform convention: a leading dot on POSIX, the hidden
attribute bit on Windows. Read-only means the owner write bit is missing.
"""

from __future__ import annotations

import logging
import os
import stat

from dirmirror.core.timestamps import FileTimes
from dirmirror.core.types import FileAttribute

logger = logging.getLogger(__name__)


def attributes_from_stat(name: str, st: os.stat_result) -> FileAttribute:
    """Compute the attribute bitset of an entry.

    Args:
        name: Directory-local name of the entry.
        st: Result of ``os.stat``/``DirEntry.stat``.

    Returns:
        FileAttribute flags.
    """
    attrs = FileAttribute.NONE
    if stat.S_ISDIR(st.st_mode):
        attrs |= FileAttribute.DIRECTORY
    if not st.st_mode & stat.S_IWUSR:
        attrs |= FileAttribute.READONLY
    if name.startswith("."):
        attrs |= FileAttribute.HIDDEN

    # Only populated on Windows
    win_attrs = getattr(st, "st_file_attributes", 0)
    if win_attrs & stat.FILE_ATTRIBUTE_HIDDEN:
        attrs |= FileAttribute.HIDDEN
    if win_attrs & stat.FILE_ATTRIBUTE_SYSTEM:
        attrs |= FileAttribute.SYSTEM
    if win_attrs & stat.FILE_ATTRIBUTE_READONLY:
        attrs |= FileAttribute.READONLY
    return attrs


def times_from_stat(st: os.stat_result) -> FileTimes:
    """Extract creation, access and modification times in nanoseconds.

    Creation time uses ``st_birthtime`` where the platform reports it and
    falls back to ``st_ctime_ns``.
    """
    birth = getattr(st, "st_birthtime_ns", None)
    if birth is None:
        birth_s = getattr(st, "st_birthtime", None)
        birth = int(birth_s * 1_000_000_000) if birth_s is not None else st.st_ctime_ns
    return FileTimes(created=birth, accessed=st.st_atime_ns, modified=st.st_mtime_ns)


def copy_times(times: FileTimes, dest: str) -> None:
    """Set access and modification times of ``dest``.

    Creation time cannot be set portably and is left as is.

    Raises:
        OSError: If the times could not be updated.
    """
    os.utime(dest, ns=(times.accessed, times.modified))


def copy_attributes(source: str, dest: str, is_directory: bool = False) -> None:
    """Copy permission bits from ``source`` to ``dest``.

    Directories always keep the owner write and search bits so the mirror
    can be filled in afterwards.

    Raises:
        OSError: If either path cannot be accessed.
    """
    mode = stat.S_IMODE(os.stat(source).st_mode)
    if is_directory:
        mode |= stat.S_IWUSR | stat.S_IXUSR
    os.chmod(dest, mode)


def clear_protection(path: str) -> None:
    """Give the owner write permission on ``path``.

    On Windows this clears the read-only attribute.

    Raises:
        OSError: If the mode could not be changed.
    """
    mode = stat.S_IMODE(os.stat(path).st_mode)
    os.chmod(path, mode | stat.S_IWUSR)
    logger.debug(f"Cleared protection on {path}")
