"""Tests for EventBus dispatch."""

from __future__ import annotations

from typing import Any

import pytest

from aiui.plugins.event_bus import EventBus
from aiui.plugins.hookspecs import hookimpl
from aiui.plugins.manager import PluginManager


class RecordingPlugin:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def post_resolve(self, action_id: str, goal_id: str | None, goal: str) -> None:
        self.calls.append(("post_resolve", {"action_id": action_id, "goal_id": goal_id}))

    @hookimpl
    def post_trace(self, trace: dict[str, Any]) -> None:
        self.calls.append(("post_trace", trace))


class FailingPlugin:
    @hookimpl
    def post_trace(self, trace: dict[str, Any]) -> None:
        raise RuntimeError("audit sink unavailable")


def _bus(*plugins: object, sync: bool = True) -> EventBus:
    pm = PluginManager()
    for plugin in plugins:
        pm.register_plugin(plugin)
    return EventBus(pm, sync=sync)


class TestSyncDispatch:
    def test_calls_hook_inline(self) -> None:
        recorder = RecordingPlugin()
        bus = _bus(recorder)
        bus.dispatch(
            "post_resolve",
            {"action_id": "search_flights", "goal_id": "find_cheap_flight", "goal": "x"},
        )
        assert recorder.calls == [
            ("post_resolve", {"action_id": "search_flights", "goal_id": "find_cheap_flight"})
        ]

    def test_failure_propagates(self) -> None:
        bus = _bus(FailingPlugin())
        with pytest.raises(RuntimeError, match="audit sink unavailable"):
            bus.dispatch("post_trace", {"trace": {}})

    def test_drain_is_empty(self) -> None:
        assert _bus(RecordingPlugin()).drain() == []


class TestAsyncDispatch:
    def test_drain_waits_for_events(self) -> None:
        recorder = RecordingPlugin()
        bus = _bus(recorder, sync=False)
        bus.dispatch("post_trace", {"trace": {"traceId": "a"}})
        bus.dispatch("post_trace", {"trace": {"traceId": "b"}})
        assert bus.drain() == []
        assert sorted(t["traceId"] for _, t in recorder.calls) == ["a", "b"]
        bus.shutdown()

    def test_drain_reports_failures(self) -> None:
        bus = _bus(FailingPlugin(), sync=False)
        bus.dispatch("post_trace", {"trace": {}})
        assert bus.drain() == ["post_trace: RuntimeError: audit sink unavailable"]
        assert bus.drain() == []
        bus.shutdown()

    def test_shutdown_is_idempotent(self) -> None:
        bus = _bus(RecordingPlugin(), sync=False)
        bus.shutdown()
        bus.shutdown()

    def test_is_async_flag(self) -> None:
        bus = _bus(sync=False)
        assert bus.is_async
        bus.shutdown()
        assert not _bus().is_async
