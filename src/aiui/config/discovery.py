"""Locating a site on disk.

A site root is the nearest directory, walking up from the start
directory, that holds ``aiui.toml`` or a default-named manifest.  The
``AIUI_CONFIG`` env var pins the config file, and with it the root.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "aiui.toml"
CONFIG_ENV_VAR = "AIUI_CONFIG"

# Checked in order; the first existing file is the site's manifest.
MANIFEST_FILENAMES: tuple[str, ...] = ("aiui.json", "aiui.yaml", "aiui.yml")


@dataclass(frozen=True)
class SiteLocation:
    """Where a site lives: its root directory and config file, if any."""

    root: Path
    config: Path | None = None


def _is_site_dir(directory: Path) -> bool:
    return any((directory / name).is_file() for name in MANIFEST_FILENAMES)


def locate_site(start: Path | None = None) -> SiteLocation | None:
    """Find the site enclosing *start* (default: cwd).

    A directory with ``aiui.toml`` wins over one that only holds a
    manifest; the nearest qualifying directory wins over its ancestors.
    """
    pinned = os.environ.get(CONFIG_ENV_VAR)
    if pinned:
        path = Path(pinned)
        return SiteLocation(root=path.parent, config=path) if path.is_file() else None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        config = directory / CONFIG_FILENAME
        if config.is_file():
            return SiteLocation(root=directory, config=config)
        if _is_site_dir(directory):
            return SiteLocation(root=directory)
    return None


def find_config(start: Path | None = None) -> Path | None:
    """The ``aiui.toml`` governing *start*, or None."""
    location = locate_site(start)
    return location.config if location else None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*; a syntax error is reported as a CLI usage failure."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc
