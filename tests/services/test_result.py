"""Tests for ServiceResult and ServiceError."""

from __future__ import annotations

import pytest

from aiui.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_defaults(self) -> None:
        result = ServiceResult(ok=True, op="run")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_failure_shorthand(self) -> None:
        result = ServiceResult.failure("resolve", "ACTION_NOT_FOUND", "nope", candidates=["a"])
        assert result.ok is False
        assert result.op == "resolve"
        assert result.error == ServiceError(
            code="ACTION_NOT_FOUND", message="nope", detail={"candidates": ["a"]}
        )

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="run")
        with pytest.raises(Exception):
            result.ok = False  # type: ignore[misc]

    def test_json_shape(self) -> None:
        result = ServiceResult.failure("validate", "UNKNOWN_ACTION", "missing")
        dumped = result.model_dump(mode="json")
        assert dumped["error"] == {"code": "UNKNOWN_ACTION", "message": "missing", "detail": {}}

    def test_failure_requires_error(self) -> None:
        with pytest.raises(ValueError, match="carries no error"):
            ServiceResult(ok=False, op="run")

    def test_with_warnings(self) -> None:
        result = ServiceResult(ok=True, op="run", warnings=["first"])
        extended = result.with_warnings(["second"])
        assert extended.warnings == ["first", "second"]
        assert result.warnings == ["first"]
        assert result.with_warnings([]) is result
