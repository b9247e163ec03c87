"""The ``aiui`` entry point: global flags, then one subcommand."""

from __future__ import annotations

from typing import Any

import click

from aiui import __version__
from aiui.commands import register_commands
from aiui.commands._base import AiuiGroup
from aiui.commands._context import AppContext
from aiui.config.settings import AiuiSettings


@click.group(
    cls=AiuiGroup,
    invoke_without_command=True,
    examples="""\
  # Which actions does this site declare?
  aiui manifest list

  # Run a goal and print its trace as JSON
  aiui --json run find_cheap_flight -s origin=SFO -s destination=JFK

  # Use a manifest outside the current site
  aiui -m ../shop/aiui.yaml manifest check""",
)
@click.version_option(version=__version__, prog_name="aiui")
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Print only the essential value.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logs and span timings.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.option("-c", "--config", "config_path", default=None, help="Use this aiui.toml.")
@click.option(
    "-m",
    "--manifest",
    "manifest_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Manifest to load instead of [manifest] path.",
)
@click.option(
    "--async-events",
    is_flag=True,
    help="Run plugin hooks on a worker pool; failures still become warnings.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    manifest_path: str | None,
    async_events: bool,
    **flags: Any,
) -> None:
    """Resolve goals to the actions a site declares, validate inputs, and trace each run."""
    settings = AiuiSettings.from_cli(
        config_path=config_path,
        manifest_path=manifest_path,
        sync=not async_events,
        **flags,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
