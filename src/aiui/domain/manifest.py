"""Manifest model: the typed action catalog of a site.

The manifest document is the sole required input of the engine.  It is
loaded once by :func:`load`, validated structurally, and afterwards
treated as a read-only value shared by every invocation.

Constraint variants are an explicit closed union tagged by ``kind``.
Documents written in the original shape-sniffing form (a constraint
object carrying exactly one of ``pattern`` / ``format`` / ``minimum``)
are tagged on the way in, so the rest of the engine never inspects
field presence.

INVARIANT: action ids are unique; goal ids are unique; input names are
unique within their action.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from aiui.domain.errors import SchemaViolationError
from aiui.domain.types import ConstraintKind, ExecutionMode, FormatKind

DATE_RANGE_SHAPE = "YYYY-MM-DD/YYYY-MM-DD"

# Document spellings accepted for each format kind.
_FORMAT_ALIASES: dict[str, str] = {
    str(FormatKind.DATE_RANGE): str(FormatKind.DATE_RANGE),
    DATE_RANGE_SHAPE: str(FormatKind.DATE_RANGE),
}

# Shape key -> variant tag, for untagged constraint objects.
_SHAPE_KEYS: dict[str, str] = {
    "pattern": str(ConstraintKind.PATTERN),
    "format": str(ConstraintKind.FORMAT),
    "minimum": str(ConstraintKind.NUMERIC_MINIMUM),
}


@functools.lru_cache(maxsize=256)
def compile_pattern(regex: str) -> re.Pattern[str]:
    """Compile (and cache) a constraint regex."""
    return re.compile(regex)


# ---------------------------------------------------------------------------
# Constraint variants
# ---------------------------------------------------------------------------


class PatternConstraint(BaseModel):
    """The full value must match ``regex``."""

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["pattern"] = "pattern"
    regex: str
    description: str

    @field_validator("regex")
    @classmethod
    def _check_regex(cls, value: str) -> str:
        try:
            compile_pattern(value)
        except re.error as exc:
            msg = f"invalid regex {value!r}: {exc}"
            raise ValueError(msg) from exc
        return value

    @property
    def compiled(self) -> re.Pattern[str]:
        return compile_pattern(self.regex)


class FormatConstraint(BaseModel):
    """The value must follow a structured format (currently ``date-range``)."""

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["format"] = "format"
    format: FormatKind
    description: str

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, value: Any) -> Any:
        if isinstance(value, str) and value in _FORMAT_ALIASES:
            return _FORMAT_ALIASES[value]
        return value


class NumericMinimumConstraint(BaseModel):
    """The value must parse as a number no smaller than ``minimum``.

    ``currency`` is carried for display only.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["numeric-minimum"] = "numeric-minimum"
    minimum: Decimal
    currency: str | None = None
    description: str = ""

    @field_validator("minimum")
    @classmethod
    def _check_finite(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            msg = "minimum must be a finite number"
            raise ValueError(msg)
        return value


Constraint = Annotated[
    PatternConstraint | FormatConstraint | NumericMinimumConstraint,
    Field(discriminator="kind"),
]


def tag_constraint(raw: Any) -> Any:
    """Return *raw* with an explicit ``kind`` tag.

    Already-tagged objects pass through.  Untagged objects must carry
    exactly one shape key; anything else is an unknown constraint shape.
    """
    if not isinstance(raw, Mapping):
        return raw
    if "kind" in raw:
        if raw["kind"] == ConstraintKind.PATTERN and "pattern" in raw and "regex" not in raw:
            tagged = dict(raw)
            tagged["regex"] = tagged.pop("pattern")
            return tagged
        return raw
    present = [key for key in _SHAPE_KEYS if key in raw]
    if len(present) != 1:
        found = ", ".join(present) or "none"
        msg = f"constraint must declare exactly one of pattern/format/minimum (found: {found})"
        raise ValueError(msg)
    tagged = dict(raw)
    tagged["kind"] = _SHAPE_KEYS[present[0]]
    if present[0] == "pattern":
        tagged["regex"] = tagged.pop("pattern")
    return tagged


# ---------------------------------------------------------------------------
# Catalog entities
# ---------------------------------------------------------------------------


class GoalSpec(BaseModel):
    """A goal the site declares it can serve."""

    model_config = {"frozen": True}

    id: str = Field(min_length=1)
    description: str = ""


class OutputSpec(BaseModel):
    """An output slot of an action."""

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    description: str = ""
    type: str | None = None


class InputSpec(BaseModel):
    """An input slot of an action with an optional constraint."""

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    type: str = "text"
    required: bool = False
    description: str | None = None
    constraint: Constraint | None = None

    @model_validator(mode="before")
    @classmethod
    def _collect_constraint(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        if "constraints" in data:
            if "constraint" in data:
                msg = "input declares both 'constraint' and 'constraints'"
                raise ValueError(msg)
            data["constraint"] = data.pop("constraints")
        data["constraint"] = tag_constraint(data.get("constraint"))
        return data


class StateFieldSpec(BaseModel):
    """A field of a state model."""

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    type: str = "string"
    description: str = ""


class StateModelSpec(BaseModel):
    """A named entity the site tracks (e.g. a booking) and its statuses."""

    model_config = {"frozen": True}

    description: str = ""
    fields: tuple[StateFieldSpec, ...] = ()
    statuses: tuple[str, ...] = ()


class ExecutionPolicy(BaseModel):
    """How an action runs when invoked without an explicit mode."""

    model_config = {"frozen": True, "populate_by_name": True}

    dry_run_default: bool = Field(
        default=False,
        validation_alias=AliasChoices("dryRunDefault", "dry_run_default"),
        serialization_alias="dryRunDefault",
    )

    @property
    def mode(self) -> ExecutionMode:
        return ExecutionMode.DRY_RUN if self.dry_run_default else ExecutionMode.EXECUTE


class ActionSpec(BaseModel):
    """A named, typed capability.

    ``ui_hint`` is opaque here; only binding adapters interpret it.
    ``goals`` lists the goal ids this action declares it serves.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    id: str = Field(min_length=1)
    title: str = ""
    description: str = ""
    goals: tuple[str, ...] = ()
    inputs: tuple[InputSpec, ...] = ()
    outputs: tuple[OutputSpec, ...] = ()
    ui_hint: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("ui_hint", "uiHint"),
        serialization_alias="ui_hint",
    )
    execution_policy: ExecutionPolicy = Field(
        default_factory=ExecutionPolicy,
        validation_alias=AliasChoices("executionPolicy", "execution_policy"),
        serialization_alias="executionPolicy",
    )

    @model_validator(mode="after")
    def _unique_inputs(self) -> ActionSpec:
        seen: set[str] = set()
        for spec in self.inputs:
            if spec.name in seen:
                msg = f"duplicate input name {spec.name!r} in action {self.id!r}"
                raise ValueError(msg)
            seen.add(spec.name)
        return self

    def input(self, name: str) -> InputSpec | None:
        """Return the input slot called *name*, if declared."""
        for spec in self.inputs:
            if spec.name == name:
                return spec
        return None

    def input_names(self) -> list[str]:
        return [spec.name for spec in self.inputs]


class ManifestSpec(BaseModel):
    """The complete action catalog of one site.

    Attributes:
        schema_uri: The document's ``$schema`` reference.
        version: Document version string.
        site: Site identifier.
        origin: Where the manifest came from (file path, URL, ``inline``);
            referenced by trace provenance.  Not part of the document.
    """

    model_config = {"frozen": True, "populate_by_name": True, "extra": "allow"}

    schema_uri: str | None = Field(
        default=None,
        validation_alias=AliasChoices("$schema", "schema_uri"),
        serialization_alias="$schema",
    )
    version: str | None = None
    site: str | None = None
    goals: tuple[GoalSpec, ...] = ()
    actions: tuple[ActionSpec, ...] = ()
    state_models: dict[str, StateModelSpec] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("stateModels", "state_models"),
        serialization_alias="stateModels",
    )
    origin: str = Field(default="inline", exclude=True)

    @model_validator(mode="after")
    def _check_catalog(self) -> ManifestSpec:
        goal_ids = _unique_ids("goal", (g.id for g in self.goals))
        _unique_ids("action", (a.id for a in self.actions))
        for action in self.actions:
            unknown = [gid for gid in action.goals if gid not in goal_ids]
            if unknown:
                msg = f"action {action.id!r} serves undeclared goal(s) {unknown}"
                raise ValueError(msg)
        return self

    def action(self, action_id: str) -> ActionSpec | None:
        for action in self.actions:
            if action.id == action_id:
                return action
        return None

    def goal(self, goal_id: str) -> GoalSpec | None:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        return None

    def action_ids(self) -> list[str]:
        return [a.id for a in self.actions]

    def goal_ids(self) -> list[str]:
        return [g.id for g in self.goals]


def _unique_ids(label: str, ids: Any) -> set[str]:
    seen: set[str] = set()
    for item_id in ids:
        if item_id in seen:
            msg = f"duplicate {label} id {item_id!r}"
            raise ValueError(msg)
        seen.add(item_id)
    return seen


def _format_errors(exc: ValidationError) -> list[str]:
    errors: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        errors.append(f"{loc}: {err['msg']}" if loc else str(err["msg"]))
    return errors


def load(document: Mapping[str, Any], *, origin: str = "inline") -> ManifestSpec:
    """Validate a manifest document and return the immutable catalog.

    Raises:
        SchemaViolationError: If the document is not structurally valid.
    """
    if not isinstance(document, Mapping):
        msg = f"manifest document must be a mapping, got {type(document).__name__}"
        raise SchemaViolationError(msg)
    try:
        manifest = ManifestSpec.model_validate(dict(document))
    except ValidationError as exc:
        raise SchemaViolationError(_format_errors(exc)) from exc
    return manifest.model_copy(update={"origin": origin})
