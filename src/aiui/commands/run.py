"""Command: run a goal through resolve, validate and trace."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from aiui.commands._base import SLOT, AiuiCommand

if TYPE_CHECKING:
    from aiui.commands._context import AppContext


@click.command(
    cls=AiuiCommand,
    examples="""\
  aiui run find_cheap_flight -s origin=SFO -s destination=JFK \\
      -s date_range=2025-01-10/2025-01-15 -s max_budget=400
  aiui run search_flights -s origin=sfo --description "Cheap flight to New York"
  aiui run find_cheap_flight -s origin=SFO --bind
  aiui --json run find_cheap_flight -s origin=SFO -s max_budget=50""",
)
@click.argument("goal_ids", nargs=-1)
@click.option(
    "-s",
    "--set",
    "assignments",
    multiple=True,
    type=SLOT,
    help="Slot value as slot=value (repeatable).",
)
@click.option("-d", "--description", default="", help="Free-text goal description.")
@click.option(
    "--bind/--no-bind",
    default=None,
    help="Consult the UI binding adapter (default: [binding] enabled).",
)
@click.pass_obj
def run(
    app: AppContext,
    goal_ids: tuple[str, ...],
    assignments: tuple[tuple[str, str], ...],
    description: str,
    bind: bool | None,
) -> None:
    """Resolve GOAL_IDS to one action, validate the slot values, and print the trace."""
    from aiui.domain.trace import GoalInstance
    from aiui.services.invocation import InvocationService

    goal = GoalInstance(
        description=description,
        values=dict(assignments),
        goal_ids=goal_ids,
    )
    app.emit(InvocationService(app.site).run(goal, bind=bind))
