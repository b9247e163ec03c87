"""Hard failures raised by the domain layer.

Only manifest structure problems and resolution ambiguity are exceptions.
Per-field validation failures are data (see :mod:`aiui.domain.trace`).
"""

from __future__ import annotations


class AiuiError(Exception):
    """Base class for all aiui domain errors."""


class SchemaViolationError(AiuiError):
    """The manifest document is malformed. No partial manifest is usable."""

    def __init__(self, errors: list[str] | str) -> None:
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__("; ".join(self.errors) or "Invalid manifest")


class ActionNotFoundError(AiuiError):
    """Zero or several actions qualify for a goal.

    Attributes:
        goal: The goal ids or description that failed to resolve.
        candidates: Sorted ids of every qualifying action (possibly empty).
    """

    def __init__(self, goal: str, candidates: tuple[str, ...] = ()) -> None:
        self.goal = goal
        self.candidates = tuple(sorted(candidates))
        if self.candidates:
            msg = f"Ambiguous goal {goal!r}: candidates {list(self.candidates)}"
        else:
            msg = f"No action serves goal {goal!r}"
        super().__init__(msg)
