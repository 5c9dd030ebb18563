"""Copy command for the dirmirror CLI.

Commands:
- copy: Mirror a source directory tree onto a destination
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click

from dirmirror.cli.config import load_config, split_list
from dirmirror.cli.console import ConsoleProgress, setup_logging
from dirmirror.cli.report import (
    completed_table,
    counts_table,
    echo_lines,
    echo_outcome,
    options_summary,
)

logger = logging.getLogger(__name__)

LOW_PRIORITY_NICENESS = 10


def _lower_priority() -> None:
    """Lower the scheduling priority of this process where supported."""
    if not hasattr(os, "nice"):
        logger.debug("Process priority cannot be changed on this platform")
        return
    try:
        os.nice(LOW_PRIORITY_NICENESS)
    except OSError as e:
        logger.warning(f"Could not lower process priority: {e}")


def _console_level(quiet: bool, verbose: bool, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    if quiet:
        return logging.ERROR
    return logging.WARNING


@click.command("copy")
@click.argument("source", type=click.Path(file_okay=False))
@click.argument("destination", type=click.Path(file_okay=False))
@click.argument("wildcards", nargs=-1)
@click.option("--newer", "--new", "newer", metavar="MM/DD/YYYY", help="Only copy files modified on or after this date.")
@click.option("--older", "--old", "older", metavar="MM/DD/YYYY", help="Only copy files modified on or before this date.")
@click.option("--include", "-i", "includes", multiple=True, help="Only copy paths containing one of these comma-separated substrings.")
@click.option("--exclude", "-x", "excludes", multiple=True, help="Skip paths containing any of these comma-separated substrings.")
@click.option("--update", "-u", is_flag=True, help="Only copy files with a different date, time, or size.")
@click.option("--verify", "-v", is_flag=True, help="Verify contents of each copied file.")
@click.option("--continue", "-c", "continue_after_error", is_flag=True, help="Continue copying even if an error occurs.")
@click.option("--quiet", "-q", is_flag=True, help="Don't display file names or progress while copying.")
@click.option("--verbose", is_flag=True, help="Report created directories and skipped files.")
@click.option("--debug", is_flag=True, help="Dump both trees and enable debug logging.")
@click.option("--no-copy", "-n", is_flag=True, help="Don't copy files, but report everything else.")
@click.option("--show-path", "-p", is_flag=True, help="Display full source and destination file names.")
@click.option("--list", "-l", "list_only", is_flag=True, help="List files that would be copied, but don't copy.")
@click.option("--hidden", "-h", is_flag=True, help="Copy hidden and system files.")
@click.option("--overwrite", "-o", is_flag=True, help="Overwrite read-only, hidden, and system files in the destination.")
@click.option("--move", "-m", is_flag=True, help="Delete the original files after copying them.")
@click.option("--clean", is_flag=True, help="Delete destination files that don't exist in the source.")
@click.option("--wait", "-w", is_flag=True, help="Ask for confirmation before copying.")
@click.option("--root", "-r", is_flag=True, help="Append the full source path to the destination.")
@click.option("--low-priority", is_flag=True, help="Run with low process priority.")
@click.option("--exact-times", is_flag=True, help="Require identical timestamps for --update.")
@click.option("--time-skew", type=click.IntRange(min=0), default=None, help="Seconds of timestamp tolerance for --update (default: 3).")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Append status and error messages to this file.")
@click.option("--summary", is_flag=True, help="Print the effective options before starting.")
def copy(
    source: str,
    destination: str,
    wildcards: tuple[str, ...],
    newer: str | None,
    older: str | None,
    includes: tuple[str, ...],
    excludes: tuple[str, ...],
    update: bool,
    verify: bool,
    continue_after_error: bool,
    quiet: bool,
    verbose: bool,
    debug: bool,
    no_copy: bool,
    show_path: bool,
    list_only: bool,
    hidden: bool,
    overwrite: bool,
    move: bool,
    clean: bool,
    wait: bool,
    root: bool,
    low_priority: bool,
    exact_times: bool,
    time_skew: int | None,
    log_file: Path | None,
    summary: bool,
) -> None:
    """Mirror SOURCE onto DESTINATION.

    Only files matching one of the optional WILDCARDS are copied. Wildcards
    support ?, a single *, [a-z] ranges and [abc] sets, and are matched
    against the full source path.

    Examples:

        # Copy everything new or changed, then remove stray files
        dirmirror copy --update --clean ~/photos /mnt/backup/photos

        # Copy text files modified this year and verify them
        dirmirror copy --newer 01/01/2026 --verify ~/notes /mnt/usb "*.txt"
    """
    from dirmirror.core.config import MirrorOptions
    from dirmirror.core.timestamps import DEFAULT_TIME_SKEW, DateBound
    from dirmirror.core.types import MirrorError
    from dirmirror.mirror.runner import MirrorRunner, dump_tree

    try:
        config = load_config()
    except (OSError, ValueError) as e:
        click.echo(f"Error: Cannot read configuration: {e}", err=True)
        sys.exit(1)

    if log_file is None and config.get("log_file"):
        log_file = Path(config["log_file"]).expanduser()
    if time_skew is None:
        try:
            time_skew = int(config.get("time_skew", DEFAULT_TIME_SKEW))
        except (TypeError, ValueError):
            click.echo(
                f"Error: Invalid time_skew in configuration: {config['time_skew']!r}",
                err=True,
            )
            sys.exit(1)

    progress = ConsoleProgress(enabled=not quiet)
    try:
        setup_logging(progress, _console_level(quiet, verbose, debug), log_file)
    except OSError as e:
        click.echo(f"Failed opening log file: {e}", err=True)
        sys.exit(1)

    try:
        options = MirrorOptions(
            source=source,
            destination=destination,
            wildcards=list(wildcards),
            includes=split_list(includes),
            excludes=list(config.get("excludes", [])) + split_list(excludes),
            newer_than=DateBound.parse(newer) if newer else None,
            older_than=DateBound.parse(older) if older else None,
            update=update or bool(config.get("update")),
            verify=verify or bool(config.get("verify")),
            continue_after_error=continue_after_error or bool(config.get("continue_after_error")),
            quiet=quiet,
            verbose=verbose,
            debug=debug,
            no_copy=no_copy,
            show_path=show_path,
            list_only=list_only,
            hidden=hidden or bool(config.get("hidden")),
            overwrite=overwrite,
            move=move,
            clean=clean,
            wait=wait,
            root=root,
            low_priority=low_priority,
            exact_times=exact_times,
            time_skew=time_skew,
        )
    except MirrorError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if summary or debug:
        echo_lines(options_summary(options))
    if low_priority:
        _lower_priority()

    runner = MirrorRunner(
        options,
        on_scan=progress.on_scan,
        on_action=progress.on_action,
        on_progress=progress.on_progress,
    )

    # =================================================================
    # Scan and filter
    # =================================================================

    if not quiet:
        click.echo("Scanning...")
    try:
        result = runner.prepare()
    except MirrorError as e:
        progress.finish()
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    progress.finish()

    if not quiet:
        click.echo(f"Scanning Time:  {result.scan_time:.2f} Seconds")
        echo_lines(counts_table(result))

    if debug and runner.source_tree is not None and runner.dest_tree is not None:
        click.echo("-" * 60)
        click.echo(f"SOURCE TREE ({options.source})")
        click.echo("-" * 60)
        echo_lines(dump_tree(runner.source_tree, options.source))
        click.echo("-" * 60)
        click.echo(f"DESTINATION TREE ({options.destination})")
        click.echo("-" * 60)
        echo_lines(dump_tree(runner.dest_tree, options.destination))
        click.echo("-" * 60)

    if list_only:
        click.echo("Source files that would be copied:")
        for line in result.listed:
            click.echo(f"  {line}")
        return

    if wait and not click.confirm("\nBegin copying?"):
        click.echo("Aborted.")
        return

    # =================================================================
    # Copy, move, clean
    # =================================================================

    try:
        result = runner.execute()
    except KeyboardInterrupt:
        progress.finish()
        click.echo(click.style("\nAborted by user.", fg="red"), err=True)
        sys.exit(1)
    progress.finish()

    if not quiet:
        echo_lines(completed_table(result))
    echo_outcome(result)

    if not result.success:
        sys.exit(1)
