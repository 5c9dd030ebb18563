"""Command-line interface for dirmirror.

This module provides the main CLI entry point and assembles all commands.

Commands:
- copy: Mirror a source directory tree onto a destination
- config: Show and edit stored defaults
"""

from __future__ import annotations

import click

from dirmirror.cli.config import (
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
)
from dirmirror.cli.copy import copy
from dirmirror.cli.settings import config_group


@click.group()
@click.version_option(package_name="dirmirror")
def cli() -> None:
    """dirmirror - Mirror directory trees with filtering, verification and cleanup."""


# Mirror commands
cli.add_command(copy)

# Configuration commands
cli.add_command(config_group)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "load_config",
    "save_config",
]
