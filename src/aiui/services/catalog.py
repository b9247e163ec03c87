"""CatalogService: read-only views of the loaded manifest."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from aiui.domain.resolver import serving_actions
from aiui.domain.types import ConstraintKind
from aiui.services.base import BaseService
from aiui.services.contracts import (
    ActionListData,
    ActionSummary,
    GoalListData,
    ManifestCheckData,
    dump_validated,
)
from aiui.services.result import ServiceResult
from aiui.services.telemetry import traced

if TYPE_CHECKING:
    from aiui.domain.manifest import ActionSpec, InputSpec


def describe_constraint(spec: InputSpec) -> str | None:
    """One-line human description of an input's constraint."""
    c = spec.constraint
    if c is None:
        return None
    if c.kind == ConstraintKind.PATTERN:
        return f"pattern {c.regex}"
    if c.kind == ConstraintKind.FORMAT:
        return f"format {c.format}"
    currency = f" {c.currency}" if c.currency else ""
    return f"minimum {c.minimum}{currency}"


def action_summary(action: ActionSpec, *, goal_id: str | None = None) -> dict[str, Any]:
    """Payload describing *action* (validated against :class:`ActionSummary`)."""
    return dump_validated(
        ActionSummary,
        {
            "id": action.id,
            "title": action.title,
            "description": action.description,
            "goal_id": goal_id,
            "execution_mode": str(action.execution_policy.mode),
            "inputs": [
                {
                    "name": spec.name,
                    "type": spec.type,
                    "required": spec.required,
                    "constraint": describe_constraint(spec),
                    "description": (
                        spec.constraint.description if spec.constraint else spec.description
                    ),
                }
                for spec in action.inputs
            ],
            "outputs": [out.name for out in action.outputs],
        },
    )


class CatalogService(BaseService):
    """Lists and describes the actions and goals a site declares."""

    @traced
    def list_actions(self) -> ServiceResult:
        op = "list_actions"
        manifest = self._manifest_or_failure(op)
        if isinstance(manifest, ServiceResult):
            return manifest

        items = [
            {
                "id": a.id,
                "title": a.title,
                "goals": list(a.goals),
                "inputs": len(a.inputs),
                "execution_mode": str(a.execution_policy.mode),
            }
            for a in manifest.actions
        ]
        data = dump_validated(ActionListData, {"count": len(items), "items": items})
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def describe(self, action_id: str) -> ServiceResult:
        op = "describe"
        manifest = self._manifest_or_failure(op)
        if isinstance(manifest, ServiceResult):
            return manifest

        action = manifest.action(action_id)
        if action is None:
            return ServiceResult.failure(
                op,
                "UNKNOWN_ACTION",
                f"No action with id: {action_id}",
                available=manifest.action_ids(),
            )
        goal_id = action.goals[0] if action.goals else None
        return ServiceResult(ok=True, op=op, data=action_summary(action, goal_id=goal_id))

    @traced
    def list_goals(self) -> ServiceResult:
        op = "list_goals"
        manifest = self._manifest_or_failure(op)
        if isinstance(manifest, ServiceResult):
            return manifest

        items = [
            {
                "id": g.id,
                "description": g.description,
                "actions": serving_actions(manifest, g.id),
            }
            for g in manifest.goals
        ]
        data = dump_validated(GoalListData, {"count": len(items), "items": items})
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def check(self) -> ServiceResult:
        """Summarize the manifest and flag goals no single action serves."""
        op = "check"
        manifest = self._manifest_or_failure(op)
        if isinstance(manifest, ServiceResult):
            return manifest

        notes: list[str] = []
        for goal in manifest.goals:
            serving = serving_actions(manifest, goal.id)
            if not serving:
                notes.append(f"Goal {goal.id!r} is served by no action")
            elif len(serving) > 1:
                notes.append(f"Goal {goal.id!r} is ambiguous: {serving}")

        all_inputs = [spec for action in manifest.actions for spec in action.inputs]
        data = dump_validated(
            ManifestCheckData,
            {
                "origin": manifest.origin,
                "schema_uri": manifest.schema_uri,
                "version": manifest.version,
                "site": manifest.site,
                "goals": len(manifest.goals),
                "actions": len(manifest.actions),
                "inputs": len(all_inputs),
                "constrained_inputs": sum(1 for s in all_inputs if s.constraint is not None),
                "state_models": sorted(manifest.state_models),
                "healthy": not notes,
                "notes": notes,
            },
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=list(notes))
