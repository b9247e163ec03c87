"""Command: resolve goal ids to the single action that serves them."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from aiui.commands._base import AiuiCommand

if TYPE_CHECKING:
    from aiui.commands._context import AppContext


@click.command(
    cls=AiuiCommand,
    examples="""\
  aiui resolve find_cheap_flight
  aiui resolve search_flights
  aiui resolve --description "search for a cheap flight"   # needs [resolver] strategy = "keyword"
  aiui --json resolve find_cheap_flight""",
)
@click.argument("goal_ids", nargs=-1)
@click.option("-d", "--description", default="", help="Free-text goal description.")
@click.pass_obj
def resolve(app: AppContext, goal_ids: tuple[str, ...], description: str) -> None:
    """Show which action serves GOAL_IDS, or why none does."""
    from aiui.services.invocation import InvocationService

    app.emit(InvocationService(app.site).resolve(goal_ids, description=description))
