"""Shared pytest fixtures and test helpers for aiui tests."""

from __future__ import annotations

import copy
import json
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from aiui.config.settings import AiuiSettings
from aiui.domain.manifest import ManifestSpec, load
from aiui.infrastructure.site import Site

FIXTURES = Path(__file__).parent / "fixtures"
FLIGHTS_MANIFEST = FIXTURES / "flights.json"

VALID_VALUES: dict[str, str] = {
    "origin": "SFO",
    "destination": "JFK",
    "date_range": "2025-01-10/2025-01-15",
    "max_budget": "400",
}


@pytest.fixture(autouse=True)
def _no_ambient_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's own aiui.toml or AIUI_* env vars out of tests."""
    monkeypatch.delenv("AIUI_CONFIG", raising=False)
    for key in ("AIUI_SYNC", "AIUI_VERBOSE", "AIUI_JSON_OUTPUT", "AIUI_MANIFEST_PATH"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Runner for invoking the ``aiui`` group in-process."""
    return CliRunner()


@pytest.fixture
def flights_document() -> dict[str, Any]:
    """A fresh, mutable copy of the example flight manifest document."""
    return copy.deepcopy(json.loads(FLIGHTS_MANIFEST.read_text(encoding="utf-8")))


@pytest.fixture
def manifest(flights_document: dict[str, Any]) -> ManifestSpec:
    """The example flight manifest, loaded."""
    return load(flights_document, origin=str(FLIGHTS_MANIFEST))


@pytest.fixture
def site_root(tmp_path: Path, flights_document: dict[str, Any]) -> Path:
    """Temporary site directory holding the flight manifest as ``aiui.json``.

    This is the single source of truth for the on-disk site layout.
    """
    (tmp_path / "aiui.json").write_text(json.dumps(flights_document), encoding="utf-8")
    return tmp_path


@pytest.fixture
def site(site_root: Path) -> Iterator[Site]:
    """Site over the temporary directory, with plugins loaded."""
    settings = AiuiSettings.from_cli(site_root=site_root)
    s = Site(settings)
    s.init_event_bus(sync=True)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_site(site_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp site root so the CLI finds ``aiui.json``.

    Use via ``@pytest.mark.usefixtures("_isolated_site")`` on command test
    classes.
    """
    monkeypatch.chdir(site_root)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


class FixedClock:
    """Deterministic step-log clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self._now
        self._now += timedelta(seconds=1)
        return current


def flight_values(**overrides: str) -> dict[str, str]:
    """The scenario-1 values with selected slots replaced."""
    return {**VALID_VALUES, **overrides}
