"""Trace records: the immutable audit document of one invocation.

A :class:`TraceRecord` composes the goal, the resolved action, a snapshot
of the values used, the per-field verdicts, the ordered step log, a
templated result summary, and provenance.  It serializes to the wire
document read by audit tooling; field names there are camelCase
(``traceId``, ``goalId``, ``actionId``, ``validationResults``,
``resultSummary``) and must not be renamed.

INVARIANT: Step numbers start at 1 and strictly increase.
INVARIANT: Provenance always starts with exactly one manifest entry.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from aiui.domain.constraints import ValidationVerdict
from aiui.domain.ids import generate_trace_id
from aiui.domain.resolver import GoalDescriptor
from aiui.domain.types import ProvenanceSource

if TYPE_CHECKING:
    from aiui.domain.manifest import ActionSpec

FAILURE_SUMMARY = "Validation failed. Cannot proceed to execution."


def utcnow() -> datetime:
    return datetime.now(UTC)


def _json_value(value: Any) -> Any:
    """*value* reduced to JSON data, with containers made read-only.

    Mappings become read-only proxies and sequences become tuples.
    Anything JSON cannot carry exactly (``Decimal``, ``NaN``, dates)
    becomes its ``str``, so a snapshot re-parses to an equal one.
    """
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, Mapping):
        return MappingProxyType({str(k): _json_value(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_json_value(v) for v in value)
    return str(value)


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


class GoalInstance(BaseModel):
    """A concrete invocation: what the caller wants and the values to use.

    ``values`` is a read-only copy of what the caller passed; the values
    themselves are kept as given, since validation reads their types.
    """

    model_config = {"frozen": True, "populate_by_name": True, "alias_generator": to_camel}

    description: str
    values: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
    goal_ids: tuple[str, ...] = ()

    @field_validator("values", mode="after")
    @classmethod
    def _freeze_values(cls, values: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(copy.deepcopy(dict(values)))

    @field_serializer("values")
    def _dump_values(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return dict(values)

    def descriptor(self) -> GoalDescriptor:
        return GoalDescriptor(goal_ids=self.goal_ids, description=self.description)


class StepRecord(BaseModel):
    """One entry of the ordered step log."""

    model_config = {"frozen": True}

    step: int = Field(ge=1)
    time: datetime
    note: str


class ProvenanceEntry(BaseModel):
    """Where data used by a trace came from."""

    model_config = {"frozen": True}

    source: ProvenanceSource
    detail: str


class StepLog:
    """Append-only step log with 1-based numbering.

    Timestamps come from *clock*; pacing of any presentation is the
    caller's business and never affects ordering.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or utcnow
        self._steps: list[StepRecord] = []

    def record(self, note: str) -> StepRecord:
        entry = StepRecord(step=len(self._steps) + 1, time=self._clock(), note=note)
        self._steps.append(entry)
        return entry

    @property
    def steps(self) -> tuple[StepRecord, ...]:
        return tuple(self._steps)

    def __iter__(self) -> Iterator[StepRecord]:
        return iter(tuple(self._steps))

    def __len__(self) -> int:
        return len(self._steps)


class TraceRecord(BaseModel):
    """Immutable audit record of one resolve-validate-build invocation."""

    model_config = {"frozen": True, "populate_by_name": True, "alias_generator": to_camel}

    trace_id: str
    goal: str
    goal_id: str | None = None
    action_id: str
    inputs: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
    validation_results: tuple[ValidationVerdict, ...] = ()
    steps: tuple[StepRecord, ...] = ()
    result_summary: str
    provenance: tuple[ProvenanceEntry, ...]

    @field_validator("inputs", mode="after")
    @classmethod
    def _snapshot_inputs(cls, inputs: Mapping[str, Any]) -> Mapping[str, Any]:
        return _json_value(inputs)

    @field_serializer("inputs")
    def _dump_inputs(self, inputs: Mapping[str, Any]) -> dict[str, Any]:
        return _thaw(inputs)

    @model_validator(mode="after")
    def _check_invariants(self) -> TraceRecord:
        previous = 0
        for entry in self.steps:
            if entry.step <= previous or (previous == 0 and entry.step != 1):
                msg = f"step numbers must start at 1 and strictly increase (got {entry.step})"
                raise ValueError(msg)
            previous = entry.step
        manifest_entries = [p for p in self.provenance if p.source == ProvenanceSource.MANIFEST]
        if len(manifest_entries) != 1 or self.provenance[0].source != ProvenanceSource.MANIFEST:
            msg = "provenance must start with exactly one manifest entry"
            raise ValueError(msg)
        return self

    @property
    def valid(self) -> bool:
        return all(v.valid for v in self.validation_results)

    def failed_slots(self) -> list[str]:
        return [v.slot for v in self.validation_results if not v.valid]

    def to_document(self) -> dict[str, Any]:
        """The JSON-compatible wire document."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, *, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> TraceRecord:
        return cls.model_validate(dict(document))

    @classmethod
    def from_json(cls, raw: str | bytes) -> TraceRecord:
        return cls.model_validate_json(raw)


def summarize(
    action: ActionSpec,
    goal_description: str,
    verdicts: Sequence[ValidationVerdict],
) -> str:
    """Templated result summary.

    Any invalid verdict yields the fixed failure string; there is no
    partial-success wording.
    """
    if not all(v.valid for v in verdicts):
        return FAILURE_SUMMARY
    mode = action.execution_policy.mode
    return f'Goal "{goal_description}" accomplished via {action.id} ({mode} mode).'


def build(
    action: ActionSpec,
    goal: GoalInstance,
    inputs: Mapping[str, Any],
    verdicts: Sequence[ValidationVerdict],
    step_log: StepLog | Iterable[StepRecord],
    *,
    manifest_origin: str,
    binding_origin: str | None = None,
    goal_id: str | None = None,
    trace_id: str | None = None,
) -> TraceRecord:
    """Compose the immutable trace of one invocation.

    Steps are taken as given: the builder neither reorders nor
    deduplicates them.  A binding provenance entry is added only when
    *binding_origin* is supplied.
    """
    steps = step_log.steps if isinstance(step_log, StepLog) else tuple(step_log)
    provenance = [ProvenanceEntry(source=ProvenanceSource.MANIFEST, detail=manifest_origin)]
    if binding_origin is not None:
        provenance.append(ProvenanceEntry(source=ProvenanceSource.BINDING, detail=binding_origin))

    return TraceRecord(
        trace_id=trace_id or generate_trace_id(),
        goal=goal.description,
        goal_id=goal_id,
        action_id=action.id,
        inputs=inputs,
        validation_results=tuple(verdicts),
        steps=steps,
        result_summary=summarize(action, goal.description, verdicts),
        provenance=tuple(provenance),
    )
