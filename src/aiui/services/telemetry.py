"""Service timing for ``--verbose``: span trees attached to ``ServiceResult.meta``.

While telemetry is off, :func:`traced` and :func:`trace_span` cost one
ContextVar lookup.  Spans time the service layer only; they never
appear in a trace record.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from aiui.services.result import ServiceResult

log = structlog.get_logger("aiui.telemetry")

_enabled: ContextVar[bool] = ContextVar("aiui_telemetry_enabled", default=False)
_active: ContextVar[Span | None] = ContextVar("aiui_active_span", default=None)


@dataclass
class Span:
    """One timed region; children are regions opened while it was active."""

    name: str
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        return 0.0 if self.finished is None else (self.finished - self.started) * 1000

    def end(self) -> None:
        self.finished = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        node: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            node["annotations"] = dict(self.annotations)
        if self.children:
            node["children"] = [child.to_dict() for child in self.children]
        return node


@contextmanager
def _opened(span: Span) -> Iterator[Span]:
    parent = _active.get()
    if parent is not None:
        parent.children.append(span)
    token = _active.set(span)
    try:
        yield span
    finally:
        span.end()
        _active.reset(token)


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Time a pipeline stage inside a :func:`traced` call.

    Yields None when telemetry is off or no traced call is running.
    """
    if not _enabled.get() or _active.get() is None:
        yield None
        return
    with _opened(Span(name)) as span:
        yield span


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service operation.

    The outermost traced call attaches the finished tree to its result's
    ``meta["telemetry"]``; nested traced calls become child spans.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        outermost = _active.get() is None
        span = Span(func.__qualname__)
        ok = False
        try:
            with _opened(span):
                result = func(*args, **kwargs)
            ok = not isinstance(result, ServiceResult) or result.ok
        finally:
            log.debug(
                "span.complete",
                span_name=span.name,
                duration_ms=round(span.duration_ms, 2),
                ok=ok,
                children=len(span.children),
            )
        if outermost and isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry() -> None:
    """Turn span collection on for the current context (``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """The innermost open span, for annotating from deep inside a stage."""
    return _active.get() if _enabled.get() else None
