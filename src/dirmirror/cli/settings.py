"""Config commands for the dirmirror CLI.

Commands:
- config show: Print stored defaults
- config set: Store a default
- config unset: Remove a stored default
"""

from __future__ import annotations

import json
import sys

import click

from dirmirror.cli.config import (
    CONFIG_KEYS,
    get_config_file,
    load_config,
    parse_config_value,
    save_config,
)


@click.group("config")
def config_group() -> None:
    """Manage stored defaults for the copy command.

    Stored defaults are merged with the command line: flags can only be
    switched on, and stored excludes are extended by --exclude.
    """


@config_group.command("show")
def show() -> None:
    """Print the stored defaults."""
    config = load_config()
    click.echo(f"Config file: {get_config_file()}")
    if not config:
        click.echo("No defaults stored.")
        return
    click.echo(json.dumps(config, indent=2))


@config_group.command("set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("value")
def set_value(key: str, value: str) -> None:
    """Store a default value for KEY.

    Lists (excludes) take a comma-separated VALUE; flags take yes/no.
    """
    try:
        parsed = parse_config_value(key, value)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    config = load_config()
    config[key] = parsed
    save_config(config)
    click.echo(f"Set {key} = {json.dumps(parsed)}")


@config_group.command("unset")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
def unset(key: str) -> None:
    """Remove the stored default for KEY."""
    config = load_config()
    if key not in config:
        click.echo(f"{key} is not set.")
        return
    del config[key]
    save_config(config)
    click.echo(f"Removed {key}.")
