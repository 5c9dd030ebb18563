"""Tests for the chunked copy engine."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from dirmirror.core.copier import CHUNK_SIZE, CopyEngine
from dirmirror.core.types import CopyStatus


@pytest.fixture
def engine() -> CopyEngine:
    """A copy engine with the default chunk size."""
    return CopyEngine()


@pytest.fixture
def big_file(tmp_path: Path) -> Path:
    """A file spanning several chunks."""
    path = tmp_path / "big.bin"
    path.write_bytes(os.urandom(CHUNK_SIZE * 3 + 123))
    return path


class TestCopy:
    """Tests for CopyEngine.copy."""

    def test_copy_contents(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """Should copy every byte and report the total."""
        dest = tmp_path / "out.bin"
        result = engine.copy(str(big_file), str(dest))

        assert result.status == CopyStatus.SUCCESS
        assert result.ok
        assert result.bytes_copied == big_file.stat().st_size
        assert dest.read_bytes() == big_file.read_bytes()

    def test_copy_truncates_existing(self, engine: CopyEngine, tmp_path: Path) -> None:
        """An existing longer destination is truncated."""
        src = tmp_path / "src.txt"
        dest = tmp_path / "dest.txt"
        src.write_bytes(b"short")
        dest.write_bytes(b"a much longer previous content")

        assert engine.copy(str(src), str(dest)).ok
        assert dest.read_bytes() == b"short"

    def test_copy_empty_file(self, engine: CopyEngine, tmp_path: Path) -> None:
        """An empty file copies to an empty file."""
        src = tmp_path / "empty"
        src.touch()
        result = engine.copy(str(src), str(tmp_path / "copy"))
        assert result.ok
        assert result.bytes_copied == 0

    def test_progress_calls(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """Progress is reported before, after each chunk and at the end."""
        calls: list[tuple[int, int]] = []

        def progress(source: str, dest: str, done: int, total: int) -> bool:
            calls.append((done, total))
            return True

        engine.copy(str(big_file), str(tmp_path / "out"), progress)
        size = big_file.stat().st_size

        assert calls[0] == (0, size)
        assert calls[-1] == (size, size)
        # start + 4 chunks + end
        assert len(calls) == 6
        assert [done for done, _ in calls] == sorted(done for done, _ in calls)

    def test_abort_removes_destination(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """Aborting mid-copy leaves no destination file behind."""
        dest = tmp_path / "out.bin"

        def progress(source: str, dest: str, done: int, total: int) -> bool:
            return done < CHUNK_SIZE * 2

        result = engine.copy(str(big_file), str(dest), progress)

        assert result.status == CopyStatus.ABORTED
        assert not dest.exists()

    def test_abort_before_first_chunk(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """Aborting on the first callback also cleans up."""
        dest = tmp_path / "out.bin"
        result = engine.copy(str(big_file), str(dest), lambda *args: False)
        assert result.status == CopyStatus.ABORTED
        assert result.bytes_copied == 0
        assert not dest.exists()

    def test_missing_source(self, engine: CopyEngine, tmp_path: Path) -> None:
        """A missing source is an open-for-read failure."""
        result = engine.copy(str(tmp_path / "missing"), str(tmp_path / "out"))
        assert result.status == CopyStatus.OPEN_READ_FAILED
        assert result.error
        assert not (tmp_path / "out").exists()

    def test_unwritable_destination(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """A destination in a missing directory is an open-for-write failure."""
        result = engine.copy(str(big_file), str(tmp_path / "no" / "such" / "dir" / "out"))
        assert result.status == CopyStatus.OPEN_WRITE_FAILED

    def test_short_read(self, engine: CopyEngine, tmp_path: Path) -> None:
        """Reading fewer bytes than the size at open is a read failure."""
        src = tmp_path / "src.bin"
        dest = tmp_path / "dest.bin"
        src.write_bytes(b"x" * 100)

        real_fstat = os.fstat

        def fake_fstat(fd: int) -> os.stat_result:
            st = real_fstat(fd)
            values = list(st)
            values[6] = 200  # st_size
            return os.stat_result(values)

        with patch("dirmirror.core.copier.os.fstat", side_effect=fake_fstat):
            result = engine.copy(str(src), str(dest))

        assert result.status == CopyStatus.READ_FAILED
        assert not dest.exists()

    def test_write_failure(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """A failing write is reported and the partial file removed."""
        dest = tmp_path / "out.bin"
        real_open = open
        writes = {"count": 0}

        class FailingWriter:
            """Writable file wrapper whose second write fails."""

            def __init__(self, handle):
                self._handle = handle

            def write(self, data: bytes) -> int:
                writes["count"] += 1
                if writes["count"] == 2:
                    raise OSError(28, "No space left on device")
                return self._handle.write(data)

            def __enter__(self):
                return self

            def __exit__(self, *exc):
                self._handle.close()
                return False

        def fake_open(path, mode="r", *args, **kwargs):
            handle = real_open(path, mode, *args, **kwargs)
            return FailingWriter(handle) if "w" in mode else handle

        with patch("builtins.open", side_effect=fake_open):
            result = engine.copy(str(big_file), str(dest))

        assert result.status == CopyStatus.WRITE_FAILED
        assert result.bytes_copied == CHUNK_SIZE
        assert not dest.exists()

    def test_low_priority_yields(self, big_file: Path, tmp_path: Path) -> None:
        """Low priority mode yields after every chunk."""
        engine = CopyEngine(low_priority=True)
        with patch("dirmirror.core.copier.time.sleep") as sleep:
            assert engine.copy(str(big_file), str(tmp_path / "out")).ok
        assert sleep.call_count == 4
        sleep.assert_called_with(0)

    def test_invalid_chunk_size(self) -> None:
        """Chunk size must be positive."""
        with pytest.raises(ValueError):
            CopyEngine(chunk_size=0)


class TestCompare:
    """Tests for CopyEngine.compare."""

    def test_copy_then_compare(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """A fresh copy compares equal."""
        dest = tmp_path / "out.bin"
        engine.copy(str(big_file), str(dest))
        assert engine.compare(str(big_file), str(dest)) is True

    def test_truncated_copy_differs(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """Removing one byte makes the files different."""
        dest = tmp_path / "out.bin"
        engine.copy(str(big_file), str(dest))
        dest.write_bytes(dest.read_bytes()[:-1])
        assert engine.compare(str(big_file), str(dest)) is False

    def test_same_size_different_content(self, engine: CopyEngine, tmp_path: Path) -> None:
        """One changed byte makes the files different."""
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.write_bytes(b"x" * 1000)
        b.write_bytes(b"x" * 999 + b"y")
        assert engine.compare(str(a), str(b)) is False

    def test_missing_file(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """A file that cannot be opened compares not equal."""
        assert engine.compare(str(big_file), str(tmp_path / "missing")) is False
        assert engine.compare(str(tmp_path / "missing"), str(big_file)) is False

    def test_abort_reports_not_equal(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """An abort from the callback is reported as not equal."""
        dest = tmp_path / "out.bin"
        engine.copy(str(big_file), str(dest))
        assert engine.compare(str(big_file), str(dest), lambda *args: False) is False

    def test_compare_progress(self, engine: CopyEngine, big_file: Path, tmp_path: Path) -> None:
        """Compare reports progress like copy."""
        dest = tmp_path / "out.bin"
        engine.copy(str(big_file), str(dest))
        calls: list[int] = []

        def progress(first: str, second: str, done: int, total: int) -> bool:
            calls.append(done)
            return True

        assert engine.compare(str(big_file), str(dest), progress) is True
        assert calls[0] == 0
        assert calls[-1] == big_file.stat().st_size
