"""Configuration utilities for the dirmirror CLI.

This module provides the stored defaults shared by CLI commands. The file
lives at ``~/.dirmirror/config.json``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

# Keys accepted in config.json and how their values are parsed
BOOL_KEYS = ("continue_after_error", "hidden", "update", "verify")
INT_KEYS = ("time_skew",)
LIST_KEYS = ("excludes",)
STR_KEYS = ("log_file",)
CONFIG_KEYS = BOOL_KEYS + INT_KEYS + LIST_KEYS + STR_KEYS

_TRUE_WORDS = ("1", "true", "yes", "on")
_FALSE_WORDS = ("0", "false", "no", "off")


def get_config_dir() -> Path:
    """Get the configuration directory for dirmirror.

    Returns:
        Path to ~/.dirmirror or equivalent.
    """
    return Path.home() / ".dirmirror"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def split_list(values: tuple[str, ...] | list[str]) -> list[str]:
    """Flatten comma-separated option values into one list.

    ``("a,b", "c")`` becomes ``["a", "b", "c"]``. Blank items are dropped.
    """
    items: list[str] = []
    for value in values:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def parse_config_value(key: str, raw: str) -> Any:
    """Convert a command-line string into the stored type for ``key``.

    Args:
        key: One of CONFIG_KEYS.
        raw: Value as typed by the user.

    Returns:
        bool, int, list of str, or str depending on the key.

    Raises:
        ValueError: If the key is unknown or the value does not parse.
    """
    if key not in CONFIG_KEYS:
        raise ValueError(f"Unknown key '{key}'. Valid keys: {', '.join(CONFIG_KEYS)}")
    if key in BOOL_KEYS:
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError(f"Expected a yes/no value for '{key}', got '{raw}'")
    if key in INT_KEYS:
        value = int(raw)
        if value < 0:
            raise ValueError(f"'{key}' must not be negative")
        return value
    if key in LIST_KEYS:
        return split_list([raw])
    return raw
