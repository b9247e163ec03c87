"""Built-in plugin: emit one structured log event per trace."""

from __future__ import annotations

from typing import Any

import structlog

from aiui.plugins.hookspecs import hookimpl


class AuditLogPlugin:
    """Log ``trace.recorded`` with the fields audit viewers key on."""

    def __init__(self) -> None:
        self._log = structlog.get_logger("aiui.audit")

    @hookimpl
    def post_trace(self, trace: dict[str, Any]) -> None:
        verdicts = trace.get("validationResults", [])
        self._log.info(
            "trace.recorded",
            trace_id=trace.get("traceId"),
            goal_id=trace.get("goalId"),
            action_id=trace.get("actionId"),
            valid=all(v.get("valid", False) for v in verdicts),
            failed=[v.get("slot") for v in verdicts if not v.get("valid", False)],
            summary=trace.get("resultSummary"),
        )
