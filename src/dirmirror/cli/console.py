"""Console progress display and logging setup for the dirmirror CLI.

This module provides:
- StatusLineAwareHandler: Logging handler that keeps the status line intact
- ConsoleProgress: Scan and copy/verify progress on a single status line
- setup_logging: Console and optional log-file handlers
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable
from pathlib import Path

import click

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Seconds between two redraws of the status line
REFRESH_INTERVAL = 0.25
STATUS_WIDTH = 78
BAR_WIDTH = 30
SPINNER = "/-\\|"


class StatusLineAwareHandler(logging.Handler):
    """Logging handler that coordinates with the status line display.

    Clears the status line before printing log messages and restores it after.
    """

    def __init__(
        self,
        clear_func: Callable[[], None],
        update_func: Callable[[], None],
    ) -> None:
        super().__init__()
        self._clear_func = clear_func
        self._update_func = update_func

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            self._clear_func()
            # Use stdout (same as status line) to prevent interleaving
            sys.stdout.write(msg + "\n")
            sys.stdout.flush()
            self._update_func()
        except Exception:
            self.handleError(record)


class ConsoleProgress:
    """Renders scanning and copying progress on one rewritable line.

    Redraws are throttled so small files and fast scans cost nothing.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._last_draw = 0.0
        self._last_status = ""
        self._last_len = 0

    def _due(self) -> bool:
        now = time.monotonic()
        if now - self._last_draw < REFRESH_INTERVAL:
            return False
        self._last_draw = now
        return True

    def _draw(self, status: str) -> None:
        clear_part = " " * max(0, self._last_len - len(status))
        sys.stdout.write(f"\r{status}{clear_part}\r")
        sys.stdout.flush()
        self._last_status = status
        self._last_len = len(status)

    def clear(self) -> None:
        """Clear the current status line."""
        if self._last_len > 0:
            sys.stdout.write("\r" + " " * self._last_len + "\r")
            sys.stdout.flush()
            self._last_len = 0

    def redraw(self) -> None:
        """Restore the status line after something else was printed."""
        if self.enabled and self._last_status and self._last_len == 0:
            self._draw(self._last_status)

    def finish(self) -> None:
        """Clear the line and forget it, at the end of a phase."""
        self.clear()
        self._last_status = ""

    def on_scan(self, path: str) -> bool:
        """Show the directory currently being scanned."""
        if self.enabled and self._due():
            if len(path) > STATUS_WIDTH:
                path = "..." + path[-(STATUS_WIDTH - 3):]
            self._draw(path)
        return True

    def on_progress(self, phase: str, source: str, dest: str, done: int, total: int) -> bool:
        """Show a bar for the file being copied ("C") or verified ("V")."""
        if self.enabled and self._due():
            filled = BAR_WIDTH if total <= 0 else done * BAR_WIDTH // total
            spin = SPINNER[int(self._last_draw * 4) % len(SPINNER)]
            self._draw(phase * filled + "." * (BAR_WIDTH - filled) + spin)
        return True

    def on_action(self, message: str) -> None:
        """Print one action line above the status line."""
        self.finish()
        click.echo(message)


def setup_logging(
    progress: ConsoleProgress,
    level: int = logging.WARNING,
    log_file: Path | None = None,
) -> None:
    """Configure logging for a CLI run.

    Args:
        progress: Status line that console records must not overwrite.
        level: Minimum level shown on the console.
        log_file: Optional file that receives every record at INFO or above,
            appended to.
    """
    dirmirror_logger = logging.getLogger("dirmirror")
    # Replace handlers left over from a previous invocation
    for handler in dirmirror_logger.handlers[:]:
        dirmirror_logger.removeHandler(handler)
        handler.close()

    status_handler = StatusLineAwareHandler(
        clear_func=progress.clear,
        update_func=progress.redraw,
    )
    status_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    status_handler.setLevel(level)
    dirmirror_logger.addHandler(status_handler)

    logger_level = level
    if log_file is not None:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(min(level, logging.INFO))
        dirmirror_logger.addHandler(file_handler)
        logger_level = min(level, logging.INFO)

    dirmirror_logger.setLevel(logger_level)
    # Prevent propagation to root logger
    dirmirror_logger.propagate = False
