"""Tests for InvocationService: resolve, validate, run."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from aiui.config.settings import AiuiSettings
from aiui.domain.manifest import ActionSpec, ManifestSpec
from aiui.domain.trace import FAILURE_SUMMARY, GoalInstance, TraceRecord
from aiui.infrastructure.site import Site
from aiui.plugins.hookspecs import hookimpl
from aiui.services.invocation import InvocationService
from tests.conftest import FixedClock, flight_values


def _goal(**overrides: str) -> GoalInstance:
    return GoalInstance(
        description="Find a cheap flight from SFO to JFK",
        values=flight_values(**overrides),
        goal_ids=("find_cheap_flight",),
    )


class _Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def post_resolve(self, action_id: str, goal_id: str | None, goal: str) -> None:
        self.events.append(("post_resolve", {"action_id": action_id, "goal_id": goal_id}))

    @hookimpl
    def post_validate(self, action_id: str, verdicts: list[dict[str, Any]]) -> None:
        self.events.append(("post_validate", {"count": len(verdicts)}))

    @hookimpl
    def post_trace(self, trace: dict[str, Any]) -> None:
        self.events.append(("post_trace", {"trace_id": trace["traceId"]}))


class _Exploding:
    @hookimpl
    def post_trace(self, trace: dict[str, Any]) -> None:
        raise RuntimeError("plugin broke")


class _Tampering:
    @hookimpl
    def post_validate(self, action_id: str, verdicts: list[dict[str, Any]]) -> None:
        verdicts[0]["valid"] = False

    @hookimpl
    def post_trace(self, trace: dict[str, Any]) -> None:
        trace["validationResults"][0].update(valid=False, reason="tampered")
        trace["steps"].clear()
        trace["inputs"]["origin"] = "XXX"


class _RewritingBinding:
    def origin(self, action: ActionSpec) -> str:
        return "rewriting"

    def bind(self, action: ActionSpec, values: Any) -> dict[str, str]:
        values["origin"] = "sfo"
        return {}


class _StaticBinding:
    def origin(self, action: ActionSpec) -> str:
        return "static"

    def bind(self, action: ActionSpec, values: Any) -> dict[str, str]:
        return {"origin": "#o"}


class _BrokenBinding:
    def origin(self, action: ActionSpec) -> str:
        return "broken"

    def bind(self, action: ActionSpec, values: Any) -> dict[str, str]:
        raise LookupError("no DOM")


class TestRun:
    def test_all_valid(self, site: Site) -> None:
        result = InvocationService(site).run(_goal(), clock=FixedClock())
        assert result.ok, result.error
        assert result.op == "run"
        trace = TraceRecord.from_document(result.data)
        assert trace.valid
        assert trace.action_id == "search_flights"
        assert trace.goal_id == "find_cheap_flight"
        assert trace.result_summary == (
            'Goal "Find a cheap flight from SFO to JFK" accomplished via '
            "search_flights (dry-run mode)."
        )

    def test_step_notes(self, site: Site) -> None:
        result = InvocationService(site).run(_goal(), clock=FixedClock())
        notes = [s["note"] for s in result.data["steps"]]
        assert notes == [
            "Received goal: Find a cheap flight from SFO to JFK",
            "Selected action: search_flights (matches goal: find_cheap_flight)",
            "Mapped goal parameters to action inputs",
            "Validated all input constraints",
            "Executed in dry-run mode",
        ]
        assert [s["step"] for s in result.data["steps"]] == [1, 2, 3, 4, 5]

    def test_invalid_field_still_ok_with_failure_trace(self, site: Site) -> None:
        result = InvocationService(site).run(_goal(origin="sfo"), clock=FixedClock())
        assert result.ok
        assert result.data["resultSummary"] == FAILURE_SUMMARY
        notes = [s["note"] for s in result.data["steps"]]
        assert notes[-1] == "Validation failed for: origin"
        assert not any(n.startswith("Executed") for n in notes)

    def test_inputs_exclude_undeclared_and_warn(self, site: Site) -> None:
        goal = GoalInstance(
            description="d",
            values={"origin": "SFO", "seat": "aisle"},
            goal_ids=("find_cheap_flight",),
        )
        result = InvocationService(site).run(goal)
        assert result.data["inputs"] == {"origin": "SFO"}
        assert any("seat" in w for w in result.warnings)

    def test_unknown_goal_is_action_not_found(self, site: Site) -> None:
        goal = GoalInstance(description="d", goal_ids=("book_hotel",))
        result = InvocationService(site).run(goal)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "ACTION_NOT_FOUND"
        assert result.error.detail["candidates"] == []
        assert result.data == {}

    def test_description_defaults_to_goal_description(self, site: Site) -> None:
        goal = GoalInstance(description="", values=flight_values(), goal_ids=("find_cheap_flight",))
        result = InvocationService(site).run(goal)
        expected = "Return the lowest-cost itinerary within the specified constraints."
        assert result.data["goal"] == expected
        assert result.data["steps"][0]["note"] == f"Received goal: {expected}"

    def test_manifest_provenance_cites_file(self, site: Site, site_root: Path) -> None:
        result = InvocationService(site).run(_goal())
        assert result.data["provenance"] == [
            {"source": "manifest", "detail": str(site_root / "aiui.json")}
        ]

    def test_hooks_fire_in_order(self, site: Site) -> None:
        recorder = _Recorder()
        assert site.event_bus is not None
        site.event_bus.plugin_manager.register_plugin(recorder, name="recorder")
        result = InvocationService(site).run(_goal())
        assert [name for name, _ in recorder.events] == [
            "post_resolve",
            "post_validate",
            "post_trace",
        ]
        assert recorder.events[1][1] == {"count": 4}
        assert recorder.events[2][1] == {"trace_id": result.data["traceId"]}

    def test_plugin_failure_is_warning(self, site: Site) -> None:
        assert site.event_bus is not None
        site.event_bus.plugin_manager.register_plugin(_Exploding(), name="exploding")
        result = InvocationService(site).run(_goal())
        assert result.ok
        assert "Plugin hook post_trace failed: plugin broke" in result.warnings

    def test_plugin_cannot_rewrite_returned_trace(self, site: Site) -> None:
        assert site.event_bus is not None
        site.event_bus.plugin_manager.register_plugin(_Tampering(), name="tampering")
        result = InvocationService(site).run(_goal(), clock=FixedClock())
        assert result.ok
        assert result.data["validationResults"][0] == {
            "slot": "origin",
            "valid": True,
            "reason": "Passed",
        }
        assert len(result.data["steps"]) == 5
        assert result.data["inputs"]["origin"] == "SFO"
        assert TraceRecord.from_document(result.data).valid

    def test_manifest_missing(self, tmp_path: Path) -> None:
        site = Site(AiuiSettings.from_cli(site_root=tmp_path))
        result = InvocationService(site).run(_goal())
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "MANIFEST_NOT_FOUND"

    def test_manifest_malformed(self, tmp_path: Path) -> None:
        (tmp_path / "aiui.json").write_text(json.dumps({"actions": [{"id": "a"}, {"id": "a"}]}))
        site = Site(AiuiSettings.from_cli(site_root=tmp_path))
        result = InvocationService(site).run(_goal())
        assert result.error is not None
        assert result.error.code == "SCHEMA_VIOLATION"

    def test_manifest_undecodable(self, tmp_path: Path) -> None:
        (tmp_path / "aiui.json").write_bytes(b'{"actions": [{"id": "a\xff"}]}')
        site = Site(AiuiSettings.from_cli(site_root=tmp_path))
        result = InvocationService(site).run(_goal())
        assert result.error is not None
        assert result.error.code == "SCHEMA_VIOLATION"
        assert result.error.message.startswith("Manifest is malformed:")


class TestRunBinding:
    def test_binding_adds_step_and_provenance(self, manifest: ManifestSpec) -> None:
        site = Site.from_manifest(manifest)
        result = InvocationService(site).run(_goal(), bind=True)
        notes = [s["note"] for s in result.data["steps"]]
        assert "Bound 4 slots to UI locators via #flight-search" in notes
        assert notes.index("Bound 4 slots to UI locators via #flight-search") == 3
        assert result.data["provenance"][1] == {"source": "binding", "detail": "#flight-search"}

    def test_binding_skips_absent_slots(self, manifest: ManifestSpec) -> None:
        site = Site.from_manifest(manifest)
        result = InvocationService(site).run(_goal(max_budget=""), bind=True)
        notes = [s["note"] for s in result.data["steps"]]
        assert "Bound 3 slots to UI locators via #flight-search" in notes

    def test_binding_off_by_default(self, manifest: ManifestSpec) -> None:
        site = Site.from_manifest(manifest)
        result = InvocationService(site).run(_goal())
        assert len(result.data["provenance"]) == 1

    def test_custom_adapter(self, manifest: ManifestSpec) -> None:
        site = Site.from_manifest(manifest, binding=_StaticBinding())
        result = InvocationService(site).run(_goal(), bind=True)
        assert result.data["provenance"][1]["detail"] == "static"

    def test_binding_never_changes_verdicts(self, manifest: ManifestSpec) -> None:
        plain = InvocationService(Site.from_manifest(manifest)).run(_goal(origin="sfo"))
        bound = InvocationService(Site.from_manifest(manifest)).run(_goal(origin="sfo"), bind=True)
        assert plain.data["validationResults"] == bound.data["validationResults"]

    def test_broken_adapter_is_warning(self, manifest: ManifestSpec) -> None:
        site = Site.from_manifest(manifest, binding=_BrokenBinding())
        result = InvocationService(site).run(_goal(), bind=True)
        assert result.ok
        assert any("Binding failed" in w for w in result.warnings)
        assert len(result.data["provenance"]) == 1

    def test_adapter_cannot_rewrite_values(self, manifest: ManifestSpec) -> None:
        site = Site.from_manifest(manifest, binding=_RewritingBinding())
        result = InvocationService(site).run(_goal(), bind=True)
        assert result.data["inputs"]["origin"] == "SFO"
        assert result.data["validationResults"][0]["valid"] is True
        assert any(w.startswith("Binding failed") for w in result.warnings)


class TestResolve:
    def test_resolve_goal(self, site: Site) -> None:
        result = InvocationService(site).resolve(["find_cheap_flight"])
        assert result.ok
        assert result.data["id"] == "search_flights"
        assert result.data["goal_id"] == "find_cheap_flight"
        assert result.data["strategy"] == "explicit"
        assert result.data["execution_mode"] == "dry-run"
        assert [i["name"] for i in result.data["inputs"]] == [
            "origin",
            "destination",
            "date_range",
            "max_budget",
        ]

    def test_resolve_unknown(self, site: Site) -> None:
        result = InvocationService(site).resolve(["nope"])
        assert result.error is not None
        assert result.error.code == "ACTION_NOT_FOUND"

    def test_keyword_strategy_from_settings(self, manifest: ManifestSpec, tmp_path: Path) -> None:
        settings = AiuiSettings.from_cli(site_root=tmp_path, resolver={"strategy": "keyword"})
        site = Site.from_manifest(manifest, settings)
        result = InvocationService(site).resolve(description="search flights")
        assert result.ok, result.error
        assert result.data["strategy"] == "keyword"
        assert result.data["score"] == 1.0


class TestValidate:
    def test_valid(self, site: Site) -> None:
        result = InvocationService(site).validate("search_flights", flight_values())
        assert result.ok
        assert result.data["valid"] is True
        assert result.data["count"] == 4
        assert result.data["invalid_count"] == 0

    def test_invalid_budget(self, site: Site) -> None:
        result = InvocationService(site).validate("search_flights", flight_values(max_budget="50"))
        assert result.data["valid"] is False
        budget = result.data["verdicts"][3]
        assert budget == {
            "slot": "max_budget",
            "valid": False,
            "reason": "Must be at least 100 USD",
        }

    def test_ignored_slots(self, site: Site) -> None:
        result = InvocationService(site).validate("search_flights", {"seat": "aisle"})
        assert result.data["ignored"] == ["seat"]
        assert result.warnings

    def test_plugin_cannot_rewrite_verdicts(self, site: Site) -> None:
        assert site.event_bus is not None
        site.event_bus.plugin_manager.register_plugin(_Tampering(), name="tampering")
        result = InvocationService(site).validate("search_flights", flight_values())
        assert result.data["valid"] is True
        assert result.data["verdicts"][0]["valid"] is True

    def test_unknown_action(self, site: Site) -> None:
        result = InvocationService(site).validate("book_hotel", {})
        assert result.error is not None
        assert result.error.code == "UNKNOWN_ACTION"
        assert result.error.detail["available"] == ["search_flights"]

    @pytest.mark.parametrize("workers", [1, 4])
    def test_parallel_validation_setting(
        self, manifest: ManifestSpec, tmp_path: Path, workers: int
    ) -> None:
        settings = AiuiSettings.from_cli(site_root=tmp_path, validation={"max_workers": workers})
        site = Site.from_manifest(manifest, settings)
        result = InvocationService(site).validate("search_flights", flight_values(origin="x"))
        assert [v["slot"] for v in result.data["verdicts"]] == [
            "origin",
            "destination",
            "date_range",
            "max_budget",
        ]
