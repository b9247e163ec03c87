"""Typed payload contracts for service and adapter boundaries.

These models validate operation payload shapes before they leave the
service layer so key regressions fail fast in tests.  The ``run``
payload is the trace wire document itself (see
:class:`aiui.domain.trace.TraceRecord`).
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T", bound=BaseModel)


def dump_validated(model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="json")


class InputSummary(BaseModel):
    """One declared input of an action."""

    name: str
    type: str
    required: bool
    constraint: str | None = None
    description: str | None = None


class ActionSummary(BaseModel):
    """Payload contract for ``resolve`` and ``describe``."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    description: str
    goal_id: str | None = None
    execution_mode: str
    inputs: list[InputSummary] = Field(default_factory=list)
    outputs: list[str] = Field(default_factory=list)


class VerdictItem(BaseModel):
    """One validation verdict row."""

    slot: str
    valid: bool
    reason: str


class ValidateResultData(BaseModel):
    """Payload contract for ``validate``."""

    action_id: str
    valid: bool
    count: int
    invalid_count: int
    verdicts: list[VerdictItem]
    ignored: list[str] = Field(default_factory=list)


class ActionListItem(BaseModel):
    """One row of ``list_actions``."""

    id: str
    title: str
    goals: list[str] = Field(default_factory=list)
    inputs: int
    execution_mode: str


class ActionListData(BaseModel):
    """Payload contract for ``list_actions``."""

    count: int
    items: list[ActionListItem]


class GoalItem(BaseModel):
    """One row of ``list_goals``."""

    id: str
    description: str
    actions: list[str] = Field(default_factory=list)


class GoalListData(BaseModel):
    """Payload contract for ``list_goals``."""

    count: int
    items: list[GoalItem]


class ManifestCheckData(BaseModel):
    """Payload contract for ``check``."""

    origin: str
    schema_uri: str | None = None
    version: str | None = None
    site: str | None = None
    goals: int
    actions: int
    inputs: int
    constrained_inputs: int
    state_models: list[str]
    healthy: bool
    notes: list[str] = Field(default_factory=list)
