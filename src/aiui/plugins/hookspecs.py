"""Pluggy hook specifications for aiui invocation events.

Three events fire per pipeline run, in order: ``post_resolve``,
``post_validate``, ``post_trace``.  Payloads are plain JSON-compatible
data built for the hooks alone; changing them alters neither the trace
nor the result the caller receives.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("aiui")
hookimpl = pluggy.HookimplMarker("aiui")


class AiuiHookSpec:
    """Hook specifications for the aiui plugin system."""

    @hookspec
    def post_resolve(self, action_id: str, goal_id: str | None, goal: str) -> None:
        """Called after a goal resolved to an action."""

    @hookspec
    def post_validate(self, action_id: str, verdicts: list[dict[str, Any]]) -> None:
        """Called after every declared input of an action was validated."""

    @hookspec
    def post_trace(self, trace: dict[str, Any]) -> None:
        """Called with the wire document of every trace built."""
