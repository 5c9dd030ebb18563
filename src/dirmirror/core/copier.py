"""Chunked file copy and compare.

This module provides:
- CHUNK_SIZE: Block size used for copying and comparing
- CopyResult: Outcome of a copy
- CopyEngine: Streaming copy/compare with abortable progress reporting

The progress callback receives (source, destination, bytes so far, total)
once before the first chunk, after every chunk and once more at the end.
Returning False aborts the operation.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import BinaryIO

from dirmirror.core.types import CopyProgressCallback, CopyStatus

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024  # 64 KiB


@dataclass
class CopyResult:
    """Result of a single file copy.

    Attributes:
        status: CopyStatus outcome.
        bytes_copied: Bytes written to the destination.
        total: Size of the source file when it was opened.
        error: OS error text for failed copies.
    """

    status: CopyStatus
    bytes_copied: int = 0
    total: int = 0
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == CopyStatus.SUCCESS


class CopyEngine:
    """Copies and compares files one chunk at a time.

    Never retries. Partial destination files are removed after a write
    failure, a short read or an abort.
    """

    def __init__(self, chunk_size: int = CHUNK_SIZE, low_priority: bool = False) -> None:
        """Initialize the engine.

        Args:
            chunk_size: Bytes per read/write.
            low_priority: Yield the CPU after every chunk.
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size
        self.low_priority = low_priority

    def _pause(self) -> None:
        if self.low_priority:
            time.sleep(0)

    @staticmethod
    def _report(
        progress: CopyProgressCallback | None,
        source: str,
        dest: str,
        done: int,
        total: int,
    ) -> bool:
        return progress is None or progress(source, dest, done, total)

    def copy(
        self,
        source: str,
        dest: str,
        progress: CopyProgressCallback | None = None,
    ) -> CopyResult:
        """Copy ``source`` over ``dest`` (created or truncated).

        Args:
            source: File to read.
            dest: File to write.
            progress: Optional progress callback; returning False aborts.

        Returns:
            CopyResult describing the outcome. I/O errors are reported in the
            result, never raised.
        """
        try:
            src_file = open(source, "rb")
        except OSError as e:
            logger.debug(f"Open for read failed: {source}: {e}")
            return CopyResult(CopyStatus.OPEN_READ_FAILED, error=str(e))

        with src_file:
            total = os.fstat(src_file.fileno()).st_size
            try:
                dst_file = open(dest, "wb")
            except OSError as e:
                logger.debug(f"Open for write failed: {dest}: {e}")
                return CopyResult(CopyStatus.OPEN_WRITE_FAILED, total=total, error=str(e))

            result = CopyResult(CopyStatus.WRITE_FAILED, total=total)
            try:
                with dst_file:
                    result = self._pump(src_file, dst_file, source, dest, total, progress)
            except OSError as e:
                # Flushing on close failed
                result = CopyResult(
                    CopyStatus.WRITE_FAILED, result.bytes_copied, total, str(e)
                )
            except KeyboardInterrupt:
                self._discard(dest)
                raise

        if not result.ok:
            self._discard(dest)
        return result

    def _pump(
        self,
        src_file: BinaryIO,
        dst_file: BinaryIO,
        source: str,
        dest: str,
        total: int,
        progress: CopyProgressCallback | None,
    ) -> CopyResult:
        copied = 0
        read_error = ""
        if not self._report(progress, source, dest, copied, total):
            return CopyResult(CopyStatus.ABORTED, copied, total, "Aborted")

        while True:
            try:
                chunk = src_file.read(self.chunk_size)
            except OSError as e:
                read_error = str(e)
                break
            if not chunk:
                break
            try:
                dst_file.write(chunk)
            except OSError as e:
                return CopyResult(CopyStatus.WRITE_FAILED, copied, total, str(e))
            copied += len(chunk)
            if not self._report(progress, source, dest, copied, total):
                return CopyResult(CopyStatus.ABORTED, copied, total, "Aborted")
            self._pause()

        if not self._report(progress, source, dest, copied, total):
            return CopyResult(CopyStatus.ABORTED, copied, total, "Aborted")

        if copied != total:
            error = read_error or f"Read {copied} of {total} bytes"
            return CopyResult(CopyStatus.READ_FAILED, copied, total, error)
        return CopyResult(CopyStatus.SUCCESS, copied, total)

    @staticmethod
    def _discard(dest: str) -> None:
        """Remove a partially written destination file."""
        try:
            os.unlink(dest)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial file {dest}: {e}")

    def compare(
        self,
        first: str,
        second: str,
        progress: CopyProgressCallback | None = None,
    ) -> bool:
        """Compare two files byte for byte.

        Args:
            first: File to read.
            second: File to compare against.
            progress: Optional progress callback; returning False aborts.

        Returns:
            True only if both files could be read to the end and every byte
            matched. Open/read failures and aborts return False.
        """
        try:
            with open(first, "rb") as fa, open(second, "rb") as fb:
                total = os.fstat(fa.fileno()).st_size
                if total != os.fstat(fb.fileno()).st_size:
                    return False

                done = 0
                if not self._report(progress, first, second, done, total):
                    return False
                while True:
                    chunk_a = fa.read(self.chunk_size)
                    chunk_b = fb.read(self.chunk_size)
                    if chunk_a != chunk_b:
                        return False
                    if not chunk_a:
                        break
                    done += len(chunk_a)
                    if not self._report(progress, first, second, done, total):
                        return False
                    self._pause()
                return self._report(progress, first, second, done, total)
        except OSError as e:
            logger.debug(f"Compare failed for {first} / {second}: {e}")
            return False
