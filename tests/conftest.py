"""Shared pytest fixtures for dirmirror tests."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

# Fixed modification time used by tree fixtures: 2024-03-15 12:00:00 UTC
FIXED_MTIME = 1710504000


def write_tree(base: Path, files: dict[str, bytes | str], mtime: int = FIXED_MTIME) -> Path:
    """Create files (and their parent directories) below ``base``.

    Args:
        base: Root directory, created if missing.
        files: Relative path -> content. A path ending in "/" creates an
            empty directory.
        mtime: Modification time applied to every created file.

    Returns:
        The base directory.
    """
    base.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        target = base / relative
        if relative.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode()
        target.write_bytes(content)
        os.utime(target, (mtime, mtime))
    return base


@pytest.fixture
def make_tree() -> Callable[..., Path]:
    """Factory fixture that writes a directory tree."""
    return write_tree


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """A small source tree: two files at the top, one in a subdirectory."""
    return write_tree(
        tmp_path / "src",
        {
            "a.txt": "alpha",
            "b.log": "bravo log",
            "sub/c.txt": "charlie",
        },
    )
