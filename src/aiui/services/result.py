"""The value every service operation returns.

The CLI, the MCP tools, and embedding code all consume ``ServiceResult``:
``ok`` with a ``data`` payload, or not ``ok`` with an ``error``.
Expected problems (an unknown goal, a missing manifest) travel this way
instead of as exceptions.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


class ServiceError(BaseModel):
    """Stable ``code`` for callers to branch on, ``message`` for people."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one operation.

    Attributes:
        ok: Whether the operation produced its payload.
        op: Operation name, e.g. ``"run"``; selects the renderer.
        data: The payload (a trace document for ``run``).
        warnings: Problems that did not stop the operation.
        error: Why the operation failed; required when ``ok`` is False.
        meta: Span timings under ``--verbose``.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _failure_has_error(self) -> ServiceResult:
        if not self.ok and self.error is None:
            msg = f"failed {self.op!r} result carries no error"
            raise ValueError(msg)
        return self

    @classmethod
    def failure(cls, op: str, code: str, message: str, **detail: Any) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError(code=code, message=message, detail=detail))

    def with_warnings(self, extra: list[str]) -> ServiceResult:
        """Copy with *extra* appended to the warnings."""
        if not extra:
            return self
        return self.model_copy(update={"warnings": [*self.warnings, *extra]})
