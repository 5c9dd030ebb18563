"""Text reports printed by the copy command.

Commands use these helpers to show the option summary, the totals before
copying and the completion table.
"""

from __future__ import annotations

import click

from dirmirror.core.config import MirrorOptions
from dirmirror.mirror.totals import MirrorResult


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def options_summary(options: MirrorOptions) -> list[str]:
    """Describe the effective options of a run."""
    lines = [
        "Options Summary:",
        f"  Source Directory:         {options.source}",
        f"  Destination Directory:    {options.destination}",
    ]
    if options.wildcards:
        lines.append("  Matching:")
        lines.extend(f"    {wild}" for wild in options.wildcards)
    if options.newer_than is not None:
        lines.append(f"  Only if newer than {options.newer_than}")
    if options.older_than is not None:
        lines.append(f"  Only if older than {options.older_than}")
    if options.includes:
        lines.append("  Including:")
        lines.extend(f"    {include}" for include in options.includes)
    if options.excludes:
        lines.append("  Excluding:")
        lines.extend(f"    {exclude}" for exclude in options.excludes)
    lines.extend([
        f"  Verbose output:           {_yes_no(options.verbose)}",
        f"  Update if different:      {_yes_no(options.update)}",
        f"  Verify copied files:      {_yes_no(options.verify)}",
        f"  Continue after error:     {_yes_no(options.continue_after_error)}",
        f"  Quiet mode:               {_yes_no(options.quiet)}",
        f"  Show full paths:          {_yes_no(options.show_path)}",
        f"  Show list only, no copy:  {_yes_no(options.list_only)}",
        f"  Copy hidden/system files: {_yes_no(options.hidden)}",
        f"  Overwrite read-only:      {_yes_no(options.overwrite)}",
        f"  Move (delete after copy): {_yes_no(options.move)}",
        f"  Clean destination:        {_yes_no(options.clean)}",
        f"  Wait before starting:     {_yes_no(options.wait)}",
        f"  Low priority mode:        {_yes_no(options.low_priority)}",
        f"  Timestamp tolerance:      {'exact' if options.exact_times else f'{options.time_skew} s'}",
    ])
    return lines


def counts_table(result: MirrorResult) -> list[str]:
    """Table of what the source and destination hold before copying."""
    lines = [
        "Totals before copying:",
        "  Action                Directories   Files       Bytes",
        "  --------------------- ------------- ----------- ------------------",
    ]
    if result.source_counts is not None:
        c = result.source_counts
        lines.append(f"  Source contains       {c.dirs:>13,} {c.files:>11,} {c.bytes:>18,}")
    if result.dest_counts is not None:
        c = result.dest_counts
        lines.append(f"  Destination contains  {c.dirs:>13,} {c.files:>11,} {c.bytes:>18,}")
    return lines


def completed_table(result: MirrorResult) -> list[str]:
    """Table of what the run copied, skipped and deleted."""
    t = result.totals
    dirs_copied = f"{t.dirs_copied:,} ({t.dirs_created:,} new)"
    lines = [
        "Completed:",
        "  Action                Directories        Files       Bytes",
        "  --------------------- ------------------ ----------- ------------------",
        f"  Copied                {dirs_copied:>18} {t.files_copied:>11,} {t.bytes_copied:>18,}",
    ]
    if t.dirs_already_exist or t.files_already_exist:
        lines.append(
            f"  Already existed       {t.dirs_already_exist:>18,} "
            f"{t.files_already_exist:>11,} {t.bytes_already_exist:>18,}"
        )
    if t.source_dirs_deleted or t.source_files_deleted:
        lines.append(
            f"  Source deleted        {t.source_dirs_deleted:>18,} "
            f"{t.source_files_deleted:>11,} {t.source_bytes_deleted:>18,}"
        )
    if t.dest_dirs_deleted or t.dest_files_deleted:
        lines.append(
            f"  Destination cleaned   {t.dest_dirs_deleted:>18,} "
            f"{t.dest_files_deleted:>11,} {t.dest_bytes_deleted:>18,}"
        )
    lines.append(f"Working Time:  {result.elapsed:.2f} Seconds")
    rate = result.rate_kb_per_second
    if rate is None:
        lines.append("Average Data Rate:  Not calculated.")
    else:
        lines.append(f"Average Data Rate:  {rate:,.2f} KBytes per second.")
    return lines


def echo_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


def echo_outcome(result: MirrorResult) -> None:
    """Print the error list and the final one-line verdict."""
    t = result.totals
    if t.error_messages:
        click.echo(click.style("\nErrors:", fg="red"))
        for message in t.error_messages:
            click.echo(f"  ✗ {message}")
    verdict = f"Completed with {t.errors} errors, {t.warnings} warnings."
    if not result.completed:
        verdict = f"Stopped with {t.errors} errors, {t.warnings} warnings."
    color = "red" if t.errors or not result.completed else None
    click.echo(click.style(verdict, fg=color))
