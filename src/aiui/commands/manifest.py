"""Command group: inspect the loaded manifest."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from aiui.commands._base import AiuiGroup
from aiui.services.catalog import CatalogService

if TYPE_CHECKING:
    from aiui.commands._context import AppContext

_MANIFEST_EXAMPLES = """\
  aiui manifest list
  aiui manifest show search_flights
  aiui manifest goals
  aiui manifest check
  aiui -m other/aiui.yaml manifest check"""


@click.group(cls=AiuiGroup, examples=_MANIFEST_EXAMPLES)
@click.pass_obj
def manifest(app: AppContext) -> None:
    """List, describe, and check manifest content."""


@manifest.command(
    "list",
    examples="""\
  aiui manifest list
  aiui -q manifest list
  aiui --json manifest list""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List every declared action."""
    app.emit(CatalogService(app.site).list_actions())


@manifest.command(
    examples="""\
  aiui manifest show search_flights
  aiui --json manifest show search_flights""",
)
@click.argument("action_id")
@click.pass_obj
def show(app: AppContext, action_id: str) -> None:
    """Describe ACTION_ID: its inputs, constraints, and execution mode."""
    app.emit(CatalogService(app.site).describe(action_id))


@manifest.command(
    examples="""\
  aiui manifest goals
  aiui --json manifest goals""",
)
@click.pass_obj
def goals(app: AppContext) -> None:
    """List declared goals and the actions serving each."""
    app.emit(CatalogService(app.site).list_goals())


@manifest.command(
    examples="""\
  aiui manifest check
  aiui -c ci/aiui.toml manifest check""",
)
@click.pass_obj
def check(app: AppContext) -> None:
    """Load the manifest and report goals without exactly one serving action."""
    app.emit(CatalogService(app.site).check())
