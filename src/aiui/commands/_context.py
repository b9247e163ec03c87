"""AppContext: the object every command receives through ``@click.pass_obj``.

It owns the session's settings, builds the :class:`Site` the first time
a command asks for it, and prints results: payloads on stdout,
failures on stderr with exit status 1.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click

from aiui.config.logging import configure_logging
from aiui.output.formatters import OutputSettings, format_result
from aiui.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from aiui.config.settings import AiuiSettings
    from aiui.infrastructure.site import Site
    from aiui.services.result import ServiceResult


class AppContext:
    def __init__(self, settings: AiuiSettings) -> None:
        self.settings = settings
        self.output = OutputSettings(
            json_output=settings.json_output,
            quiet=settings.quiet,
            verbose=settings.verbose,
        )
        self._site: Site | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

    @property
    def site(self) -> Site:
        """The site, with plugins loaded; nothing touches disk before this."""
        if self._site is None:
            from aiui.infrastructure.site import Site

            site = Site(self.settings)
            site.init_event_bus(sync=self.settings.sync)
            self._site = site
        return self._site

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; a failed result ends the process with status 1.

        Plugin events still queued on the worker pool are waited for
        first, and their failures join this result's warnings.
        """
        result = result.with_warnings(self._drain_events())
        text = format_result(result, settings=self.output)
        if not result.ok:
            self.fail(text)
        click.echo(text)
        # JSON output already carries the warnings in the payload.
        if not self.output.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)

    def fail(self, text: str, *, code: int = 1) -> NoReturn:
        click.echo(text, err=True)
        raise SystemExit(code)

    def close(self) -> None:
        if self._site is not None:
            self._site.close()
            self._site = None

    def _drain_events(self) -> list[str]:
        bus = self._site.event_bus if self._site is not None else None
        return bus.drain() if bus is not None else []
