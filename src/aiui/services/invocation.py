"""InvocationService: resolve, validate, and run goals against a manifest.

Pipeline for ``run``: RESOLVE → MAP → BIND (optional) → VALIDATE → TRACE

Only resolution failures abort before a trace exists.  Per-field
problems are captured inside the trace, so ``run`` succeeds whenever a
trace was built, valid or not.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from aiui.domain.constraints import validate_all
from aiui.domain.errors import ActionNotFoundError
from aiui.domain.resolver import GoalDescriptor, Resolution, resolve_goal
from aiui.domain.trace import GoalInstance, StepLog, build
from aiui.services.base import BaseService
from aiui.services.catalog import action_summary
from aiui.services.contracts import ValidateResultData, dump_validated
from aiui.services.result import ServiceResult
from aiui.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from aiui.domain.manifest import ActionSpec, ManifestSpec

logger = logging.getLogger(__name__)


class InvocationService(BaseService):
    """Runs the resolve → validate → trace pipeline for one goal at a time."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def resolve(self, goal_ids: Sequence[str] = (), *, description: str = "") -> ServiceResult:
        """Resolve goal/action ids (or a description) to a single action."""
        op = "resolve"
        warnings: list[str] = []
        manifest = self._manifest_or_failure(op)
        if isinstance(manifest, ServiceResult):
            return manifest

        goal = GoalDescriptor(goal_ids=tuple(goal_ids), description=description)
        try:
            resolution = self._resolve(manifest, goal)
        except ActionNotFoundError as exc:
            return self._not_found(op, exc)

        action = self._action(manifest, resolution)
        self._dispatch_event(
            "post_resolve",
            {"action_id": action.id, "goal_id": resolution.goal_id, "goal": goal.label()},
            warnings,
        )
        data = action_summary(action, goal_id=resolution.goal_id)
        data["strategy"] = str(resolution.strategy)
        if resolution.score is not None:
            data["score"] = resolution.score
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def validate(self, action_id: str, values: Mapping[str, Any]) -> ServiceResult:
        """Validate *values* against every declared input of *action_id*."""
        op = "validate"
        warnings: list[str] = []
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

        verdicts = validate_all(
            action, values, max_workers=self._site.settings.validation.max_workers
        )
        ignored = self._ignored_slots(action, values, warnings)
        self._dispatch_event(
            "post_validate",
            {"action_id": action.id, "verdicts": [v.model_dump() for v in verdicts]},
            warnings,
        )
        invalid = sum(1 for v in verdicts if not v.valid)
        data = dump_validated(
            ValidateResultData,
            {
                "action_id": action.id,
                "valid": invalid == 0,
                "count": len(verdicts),
                "invalid_count": invalid,
                "verdicts": [v.model_dump() for v in verdicts],
                "ignored": ignored,
            },
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def run(
        self,
        goal: GoalInstance,
        *,
        bind: bool | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> ServiceResult:
        """Resolve *goal*, validate its values, and build the trace.

        Args:
            goal: Description, candidate values, and goal/action ids.
            bind: Force binding on/off; None follows ``[binding] enabled``.
            clock: Timestamp source for the step log.
        """
        op = "run"
        warnings: list[str] = []
        manifest = self._manifest_or_failure(op)
        if isinstance(manifest, ServiceResult):
            return manifest

        if not goal.description:
            goal = goal.model_copy(update={"description": _default_description(manifest, goal)})

        steps = StepLog(clock)
        steps.record(f"Received goal: {goal.description}")

        # ── RESOLVE ──────────────────────────────────────────
        with trace_span("resolve"):
            try:
                resolution = self._resolve(manifest, goal.descriptor())
            except ActionNotFoundError as exc:
                return self._not_found(op, exc)
        action = self._action(manifest, resolution)
        if resolution.goal_id is not None:
            steps.record(f"Selected action: {action.id} (matches goal: {resolution.goal_id})")
        else:
            steps.record(f"Selected action: {action.id}")
        self._dispatch_event(
            "post_resolve",
            {"action_id": action.id, "goal_id": resolution.goal_id, "goal": goal.description},
            warnings,
        )

        # ── MAP ──────────────────────────────────────────────
        inputs = MappingProxyType(
            {name: goal.values[name] for name in action.input_names() if name in goal.values}
        )
        self._ignored_slots(action, goal.values, warnings)
        steps.record("Mapped goal parameters to action inputs")

        # ── BIND (optional, never gates validation) ──────────
        binding_origin = self._bind(action, inputs, steps, warnings, enabled=bind)

        # ── VALIDATE ─────────────────────────────────────────
        with trace_span("validate") as span:
            verdicts = validate_all(
                action, inputs, max_workers=self._site.settings.validation.max_workers
            )
            if span is not None:
                span.annotate("inputs", len(verdicts))
        failed = [v.slot for v in verdicts if not v.valid]
        self._dispatch_event(
            "post_validate",
            {"action_id": action.id, "verdicts": [v.model_dump() for v in verdicts]},
            warnings,
        )
        if failed:
            steps.record(f"Validation failed for: {', '.join(failed)}")
        else:
            steps.record("Validated all input constraints")
            steps.record(f"Executed in {action.execution_policy.mode} mode")

        # ── TRACE ────────────────────────────────────────────
        with trace_span("build_trace"):
            trace = build(
                action,
                goal,
                inputs,
                verdicts,
                steps,
                manifest_origin=manifest.origin,
                binding_origin=binding_origin,
                goal_id=resolution.goal_id,
            )
        logger.debug("Built trace %s for %s (valid=%s)", trace.trace_id, action.id, trace.valid)
        # Hooks get their own document; the returned one is rebuilt from the frozen trace.
        self._dispatch_event("post_trace", {"trace": trace.to_document()}, warnings)
        return ServiceResult(ok=True, op=op, data=trace.to_document(), warnings=warnings)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _resolve(self, manifest: ManifestSpec, goal: GoalDescriptor) -> Resolution:
        cfg = self._site.settings.resolver
        return resolve_goal(
            manifest,
            goal,
            strategy=cfg.strategy,
            keyword_threshold=cfg.keyword_threshold,
        )

    @staticmethod
    def _action(manifest: ManifestSpec, resolution: Resolution) -> ActionSpec:
        action = manifest.action(resolution.action_id)
        assert action is not None
        return action

    @staticmethod
    def _not_found(op: str, exc: ActionNotFoundError) -> ServiceResult:
        return ServiceResult.failure(
            op,
            "ACTION_NOT_FOUND",
            str(exc),
            goal=exc.goal,
            candidates=list(exc.candidates),
        )

    @staticmethod
    def _ignored_slots(
        action: ActionSpec,
        values: Mapping[str, Any],
        warnings: list[str],
    ) -> list[str]:
        ignored = sorted(set(values) - set(action.input_names()))
        if ignored:
            warnings.append(f"Ignored values for undeclared slots: {', '.join(ignored)}")
        return ignored

    def _bind(
        self,
        action: ActionSpec,
        inputs: Mapping[str, Any],
        steps: StepLog,
        warnings: list[str],
        *,
        enabled: bool | None,
    ) -> str | None:
        """Consult the binding adapter; return its origin, or None if not consulted."""
        adapter = self._site.binding(enabled=enabled)
        if adapter is None:
            return None
        try:
            bound = adapter.bind(action, inputs)
            origin = adapter.origin(action)
        except Exception as exc:
            logger.warning("Binding failed for %s", action.id, exc_info=True)
            warnings.append(f"Binding failed: {exc}")
            return None
        steps.record(f"Bound {len(bound)} slots to UI locators via {origin}")
        return origin


def _default_description(manifest: ManifestSpec, goal: GoalInstance) -> str:
    """Description of the first declared goal named, else the ids themselves."""
    for goal_id in goal.goal_ids:
        spec = manifest.goal(goal_id)
        if spec is not None:
            return spec.description
    return ", ".join(goal.goal_ids)
