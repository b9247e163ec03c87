"""Tests for the ``--examples`` flag every aiui command carries."""

from __future__ import annotations

from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from aiui.cli import cli
from aiui.commands._base import AiuiCommand, AiuiGroup

# command path -> phrases its examples must show
EXPECTED_PHRASES: dict[tuple[str, ...], list[str]] = {
    ("run",): ["aiui run find_cheap_flight", "--bind"],
    ("resolve",): ["aiui resolve find_cheap_flight", "keyword"],
    ("validate",): ["aiui validate search_flights"],
    ("manifest",): ["aiui manifest list", "aiui manifest check"],
    ("manifest", "list"): ["aiui -q manifest list"],
    ("manifest", "show"): ["aiui manifest show search_flights"],
    ("manifest", "goals"): ["aiui manifest goals"],
    ("manifest", "check"): ["aiui manifest check"],
    ("serve",): ["aiui serve", "streamable-http"],
}


def _walk(group: click.Group, prefix: tuple[str, ...] = ()) -> list[tuple[str, ...]]:
    paths = []
    for name, command in group.commands.items():
        path = (*prefix, name)
        paths.append(path)
        if isinstance(command, click.Group):
            paths.extend(_walk(command, path))
    return paths


class TestExamples:
    @pytest.mark.parametrize("path", list(EXPECTED_PHRASES), ids=" ".join)
    def test_examples_text(self, cli_runner: CliRunner, path: tuple[str, ...]) -> None:
        result = cli_runner.invoke(cli, [*path, "--examples"])
        assert result.exit_code == 0, result.output
        assert result.output.startswith(f"Examples for 'cli {' '.join(path)}'")
        for phrase in EXPECTED_PHRASES[path]:
            assert phrase in result.output

    def test_every_command_has_examples(self) -> None:
        for path in _walk(cli):
            command = cli
            for name in path:
                command = command.commands[name]  # type: ignore[attr-defined]
            assert isinstance(command, (AiuiCommand, AiuiGroup)), path
            assert command.examples, path
        assert set(_walk(cli)) == set(EXPECTED_PHRASES)

    def test_examples_skip_site_loading(
        self, cli_runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        result = cli_runner.invoke(cli, ["-m", str(tmp_path / "absent.json"), "run", "--examples"])
        assert result.exit_code == 0

    def test_flag_listed_in_help(self, cli_runner: CliRunner) -> None:
        assert "--examples" in cli_runner.invoke(cli, ["validate", "--help"]).output
