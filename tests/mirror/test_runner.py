"""Tests for the mirror runner."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from dirmirror.core.config import MirrorOptions
from dirmirror.core.tree import scan_tree
from dirmirror.core.types import MirrorError, PlanError, ScanAbortedError
from dirmirror.mirror.runner import MirrorRunner, dump_tree


def make_runner(source: Path, dest: Path, **kwargs) -> MirrorRunner:
    return MirrorRunner(MirrorOptions(source=str(source), destination=str(dest), **kwargs))


class TestPrepare:
    """Tests for MirrorRunner.prepare."""

    def test_counts_after_filtering(self, source_dir: Path, tmp_path: Path) -> None:
        """Source counts reflect the filtered tree."""
        runner = make_runner(source_dir, tmp_path / "dst", excludes=[".log"])
        result = runner.prepare()

        assert result.source_counts is not None
        assert result.source_counts.files == 2
        assert result.source_counts.dirs == 2
        assert result.dest_counts is None
        assert result.scan_time >= 0

    def test_destination_counts(self, source_dir: Path, make_tree: Callable[..., Path], tmp_path: Path) -> None:
        """An existing destination is counted before copying."""
        dest = make_tree(tmp_path / "dst", {"old.txt": "123"})
        result = make_runner(source_dir, dest).prepare()

        assert result.dest_counts is not None
        assert (result.dest_counts.dirs, result.dest_counts.files, result.dest_counts.bytes) == (1, 1, 3)

    def test_missing_source(self, tmp_path: Path) -> None:
        """A missing source cannot be mirrored."""
        with pytest.raises(MirrorError, match="Source directory not found"):
            make_runner(tmp_path / "missing", tmp_path / "dst").prepare()

    def test_empty_source(self, tmp_path: Path) -> None:
        """An empty source is an error."""
        (tmp_path / "empty").mkdir()
        with pytest.raises(MirrorError, match="Nothing in source directory"):
            make_runner(tmp_path / "empty", tmp_path / "dst").prepare()

    def test_destination_is_file(self, source_dir: Path, tmp_path: Path) -> None:
        """A destination that is a regular file is rejected."""
        dest = tmp_path / "dst"
        dest.write_text("file")
        with pytest.raises(PlanError):
            make_runner(source_dir, dest).prepare()

    def test_scan_abort(self, source_dir: Path, tmp_path: Path) -> None:
        """The scan callback can abort preparation."""
        runner = MirrorRunner(
            MirrorOptions(source=str(source_dir), destination=str(tmp_path / "dst")),
            on_scan=lambda path: False,
        )
        with pytest.raises(ScanAbortedError):
            runner.prepare()

    def test_list_only(self, source_dir: Path, tmp_path: Path) -> None:
        """List mode collects paths, showing directories in brackets."""
        dest = tmp_path / "dst"
        runner = make_runner(source_dir, dest, list_only=True)
        result = runner.prepare()

        assert result.listed == [
            str(source_dir / "a.txt"),
            str(source_dir / "b.log"),
            f"[{source_dir / 'sub'}]",
            str(source_dir / "sub" / "c.txt"),
        ]
        runner.execute()
        assert not dest.exists()

    def test_execute_requires_prepare(self, source_dir: Path, tmp_path: Path) -> None:
        """Executing before preparing is a usage error."""
        with pytest.raises(MirrorError):
            make_runner(source_dir, tmp_path / "dst").execute()


class TestExecute:
    """Tests for full runs."""

    def test_run_copies_tree(self, source_dir: Path, tmp_path: Path) -> None:
        """A plain run mirrors every file."""
        dest = tmp_path / "dst"
        result = make_runner(source_dir, dest).run()

        assert result.success
        assert result.completed
        assert result.totals.files_copied == 3
        assert (dest / "sub" / "c.txt").read_text() == "charlie"
        assert result.elapsed >= 0

    def test_actions_forwarded(self, source_dir: Path, tmp_path: Path) -> None:
        """Action lines reach the caller's callback."""
        actions: list[str] = []
        runner = MirrorRunner(
            MirrorOptions(source=str(source_dir), destination=str(tmp_path / "dst")),
            on_action=actions.append,
        )
        runner.run()
        assert len(actions) == 3

    def test_update_clean_run_is_stable(self, source_dir: Path, make_tree: Callable[..., Path], tmp_path: Path) -> None:
        """Update and clean converge: a second run changes nothing."""
        dest = make_tree(tmp_path / "dst", {"stray.txt": "x"})

        first = make_runner(source_dir, dest, update=True, clean=True).run()
        assert first.totals.dest_files_deleted == 1
        assert not (dest / "stray.txt").exists()

        second = make_runner(source_dir, dest, update=True, clean=True).run()
        assert second.totals.files_copied == 0
        assert second.totals.files_already_exist == 3
        assert second.totals.dest_files_deleted == 0
        assert second.success

    def test_move_removes_source(self, source_dir: Path, tmp_path: Path) -> None:
        """Move mode leaves an empty-handed source behind."""
        dest = tmp_path / "dst"
        result = make_runner(source_dir, dest, move=True).run()

        assert result.success
        assert not source_dir.exists()
        assert result.totals.source_dirs_deleted == 2
        assert (dest / "a.txt").read_text() == "alpha"

    def test_failed_copy_skips_clean(self, source_dir: Path, make_tree: Callable[..., Path], tmp_path: Path) -> None:
        """A run that stopped early does not clean the destination."""
        dest = make_tree(tmp_path / "dst", {"sub": "file", "stray.txt": "x"})
        result = make_runner(source_dir, dest, clean=True).run()

        assert result.completed is False
        assert result.success is False
        assert (dest / "stray.txt").exists()

    def test_rate(self, source_dir: Path, tmp_path: Path) -> None:
        """The transfer rate is derived from bytes and elapsed time."""
        result = make_runner(source_dir, tmp_path / "dst").run()
        result.elapsed = 2.0
        result.totals.bytes_copied = 4096
        assert result.rate_kb_per_second == 2.0
        result.elapsed = 0.0
        assert result.rate_kb_per_second is None


class TestDumpTree:
    """Tests for dump_tree."""

    def test_two_lines_per_entry(self, source_dir: Path) -> None:
        """Each entry is described on a pair of lines."""
        lines = dump_tree(scan_tree(str(source_dir)), str(source_dir))

        assert len(lines) == 8
        assert lines[0].startswith("f S:         5")
        assert "N:a.txt" in lines[0]
        assert lines[1] == f"    P: '{source_dir / 'a.txt'}'"
        assert lines[4].startswith("d ")
