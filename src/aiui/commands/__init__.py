"""The ``aiui`` subcommands, attached to the root group by :func:`register_commands`."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click

# (module, attribute) of every subcommand, in help order.
COMMANDS: tuple[tuple[str, str], ...] = (
    ("aiui.commands.manifest", "manifest"),
    ("aiui.commands.run", "run"),
    ("aiui.commands.resolve", "resolve"),
    ("aiui.commands.validate", "validate"),
    ("aiui.commands.serve", "serve"),
)


def register_commands(cli: click.Group) -> None:
    for module_name, attr in COMMANDS:
        cli.add_command(getattr(importlib.import_module(module_name), attr))
