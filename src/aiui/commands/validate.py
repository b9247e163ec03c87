"""Command: validate slot values against an action's declared inputs."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from aiui.commands._base import SLOT, AiuiCommand

if TYPE_CHECKING:
    from aiui.commands._context import AppContext


@click.command(
    cls=AiuiCommand,
    examples="""\
  aiui validate search_flights -s origin=SFO -s destination=JFK
  aiui validate search_flights -s date_range=2025-01-10/2025-01-15 -s max_budget=99
  aiui --json validate search_flights -s origin=sfo""",
)
@click.argument("action_id")
@click.option(
    "-s",
    "--set",
    "assignments",
    multiple=True,
    type=SLOT,
    help="Slot value as slot=value (repeatable).",
)
@click.option("--strict", is_flag=True, help="Exit with code 2 when any verdict is invalid.")
@click.pass_obj
def validate(
    app: AppContext,
    action_id: str,
    assignments: tuple[tuple[str, str], ...],
    strict: bool,
) -> None:
    """Validate slot values for ACTION_ID without building a trace."""
    from aiui.services.invocation import InvocationService

    result = InvocationService(app.site).validate(action_id, dict(assignments))
    app.emit(result)
    if strict and not result.data.get("valid", False):
        raise SystemExit(2)
