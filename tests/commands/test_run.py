"""Tests for the run command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from aiui.cli import cli
from aiui.domain.trace import FAILURE_SUMMARY
from aiui.services.telemetry import disable_telemetry

_VALID_ARGS = [
    "-s",
    "origin=SFO",
    "-s",
    "destination=JFK",
    "-s",
    "date_range=2025-01-10/2025-01-15",
    "-s",
    "max_budget=400",
]


@pytest.mark.usefixtures("_isolated_site")
class TestRunCommand:
    def test_valid_run(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "find_cheap_flight", *_VALID_ARGS])
        assert result.exit_code == 0, result.stderr
        assert "accomplished via search_flights (dry-run mode)" in result.stdout
        assert "Validated all input constraints" in result.stdout

    def test_json_trace_document(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "run", "find_cheap_flight", *_VALID_ARGS, "-d", "Cheap to NYC"]
        )
        assert result.exit_code == 0, result.stderr
        payload = json.loads(result.stdout)
        trace = payload["data"]
        assert payload["op"] == "run"
        assert trace["goal"] == "Cheap to NYC"
        assert trace["goalId"] == "find_cheap_flight"
        assert trace["actionId"] == "search_flights"
        assert trace["inputs"]["max_budget"] == "400"
        assert [s["step"] for s in trace["steps"]] == [1, 2, 3, 4, 5]
        assert trace["provenance"][0]["source"] == "manifest"

    def test_invalid_values_still_succeed(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["-q", "run", "find_cheap_flight", "-s", "origin=SF0", "-s", "max_budget=50"]
        )
        assert result.exit_code == 0, result.stderr
        assert result.stdout.strip() == FAILURE_SUMMARY

    def test_value_may_contain_equals(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "run", "search_flights", "-s", "origin=A=B"]
        )
        assert json.loads(result.stdout)["data"]["inputs"]["origin"] == "A=B"

    def test_bad_assignment(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "find_cheap_flight", "-s", "origin"])
        assert result.exit_code == 2
        assert "expected slot=value" in result.stderr

    def test_undeclared_slot_warns(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["run", "find_cheap_flight", *_VALID_ARGS, "-s", "seat=aisle"]
        )
        assert result.exit_code == 0
        assert "WARNING: Ignored values for undeclared slots: seat" in result.stderr

    def test_unknown_goal_fails(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "book_hotel"])
        assert result.exit_code == 1
        assert "ERROR  run: No action serves goal 'book_hotel'" in result.stderr

    def test_bind_adds_provenance(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "run", "find_cheap_flight", *_VALID_ARGS, "--bind"]
        )
        trace = json.loads(result.stdout)["data"]
        assert trace["provenance"][1] == {"source": "binding", "detail": "#flight-search"}
        assert "Bound 4 slots to UI locators via #flight-search" in [
            s["note"] for s in trace["steps"]
        ]

    def test_async_events(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--async-events", "run", "find_cheap_flight", *_VALID_ARGS]
        )
        assert result.exit_code == 0, result.stderr

    def test_verbose_telemetry(self, cli_runner: CliRunner) -> None:
        try:
            result = cli_runner.invoke(
                cli, ["--json", "-v", "run", "find_cheap_flight", *_VALID_ARGS]
            )
        finally:
            disable_telemetry()
        meta = json.loads(result.stdout)["meta"]
        assert meta["telemetry"]["name"] == "InvocationService.run"
        names = [child["name"] for child in meta["telemetry"]["children"]]
        assert names == ["resolve", "validate", "build_trace"]


class TestRunWithoutManifest:
    def test_missing_manifest(
        self, cli_runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        result = cli_runner.invoke(cli, ["run", "find_cheap_flight"])
        assert result.exit_code == 1
        assert "Manifest not found" in result.stderr

    def test_manifest_flag(
        self,
        cli_runner: CliRunner,
        site_root: Path,
        tmp_path_factory: pytest.TempPathFactory,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path_factory.mktemp("elsewhere"))
        result = cli_runner.invoke(
            cli,
            ["--json", "-m", str(site_root / "aiui.json"), "run", "find_cheap_flight"]
            + _VALID_ARGS,
        )
        assert result.exit_code == 0, result.stderr
        trace = json.loads(result.stdout)["data"]
        assert trace["provenance"][0]["detail"] == str(site_root / "aiui.json")
