"""Constraint validation: one verdict per declared input.

Evaluation order for a single input:

1. required and absent  -> invalid, ``Required field empty``
2. optional and absent  -> valid, ``No constraints``
3. no constraint        -> valid, ``No constraints``
4. dispatch on the constraint variant -> ``Passed`` or its failure reason

Absent means ``None`` or the empty string.  Validation is pure: the same
``(spec, value)`` pair always yields an equal verdict.

A date range is checked for shape only.  Start-before-end ordering is
deliberately not enforced.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, assert_never

from pydantic import BaseModel

from aiui.domain.manifest import (
    FormatConstraint,
    NumericMinimumConstraint,
    PatternConstraint,
)
from aiui.domain.types import FormatKind

if TYPE_CHECKING:
    from aiui.domain.manifest import ActionSpec, InputSpec

REASON_PASSED = "Passed"
REASON_NO_CONSTRAINTS = "No constraints"
REASON_REQUIRED_EMPTY = "Required field empty"
REASON_DATE_RANGE = "Invalid date range format (use YYYY-MM-DD/YYYY-MM-DD)"

_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class ValidationVerdict(BaseModel):
    """Outcome of validating one input slot."""

    model_config = {"frozen": True}

    slot: str
    valid: bool
    reason: str


def is_absent(value: Any) -> bool:
    """Whether *value* counts as not supplied."""
    return value is None or value == ""


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def _parse_number(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        number = Decimal(_as_text(value))
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _check_pattern(constraint: PatternConstraint, value: Any) -> str | None:
    if constraint.compiled.fullmatch(_as_text(value)):
        return None
    return f"Invalid format: {constraint.description}"


def _check_format(constraint: FormatConstraint, value: Any) -> str | None:
    if constraint.format == FormatKind.DATE_RANGE:
        parts = _as_text(value).split("/")
        if len(parts) == 2 and all(_ISO_DATE.fullmatch(part) for part in parts):
            return None
        return REASON_DATE_RANGE
    assert_never(constraint.format)


def _check_minimum(constraint: NumericMinimumConstraint, value: Any) -> str | None:
    number = _parse_number(value)
    if number is not None and number >= constraint.minimum:
        return None
    suffix = f" {constraint.currency}" if constraint.currency else ""
    return f"Must be at least {constraint.minimum}{suffix}"


def check_constraint(
    constraint: PatternConstraint | FormatConstraint | NumericMinimumConstraint,
    value: Any,
) -> str | None:
    """Return the failure reason for *value*, or None if it satisfies *constraint*."""
    if isinstance(constraint, PatternConstraint):
        return _check_pattern(constraint, value)
    if isinstance(constraint, FormatConstraint):
        return _check_format(constraint, value)
    if isinstance(constraint, NumericMinimumConstraint):
        return _check_minimum(constraint, value)
    assert_never(constraint)


def validate(spec: InputSpec, raw_value: Any = None) -> ValidationVerdict:
    """Validate one raw value against its input declaration."""
    if is_absent(raw_value):
        if spec.required:
            return ValidationVerdict(slot=spec.name, valid=False, reason=REASON_REQUIRED_EMPTY)
        return ValidationVerdict(slot=spec.name, valid=True, reason=REASON_NO_CONSTRAINTS)

    if spec.constraint is None:
        return ValidationVerdict(slot=spec.name, valid=True, reason=REASON_NO_CONSTRAINTS)

    failure = check_constraint(spec.constraint, raw_value)
    if failure is None:
        return ValidationVerdict(slot=spec.name, valid=True, reason=REASON_PASSED)
    return ValidationVerdict(slot=spec.name, valid=False, reason=failure)


def validate_all(
    action: ActionSpec,
    values: Mapping[str, Any],
    *,
    max_workers: int = 1,
) -> list[ValidationVerdict]:
    """Validate every declared input of *action*.

    Inputs are independent, so with ``max_workers > 1`` they run on a
    thread pool.  Verdicts are always returned in declared input order.
    """
    specs = action.inputs

    def _one(spec: InputSpec) -> ValidationVerdict:
        return validate(spec, values.get(spec.name))

    if max_workers <= 1 or len(specs) < 2:
        return [_one(spec) for spec in specs]
    with ThreadPoolExecutor(max_workers=min(max_workers, len(specs))) as pool:
        return list(pool.map(_one, specs))
