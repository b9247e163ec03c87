"""Command: expose the site to MCP clients (needs the ``mcp`` extra)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from aiui.commands._base import AiuiCommand

if TYPE_CHECKING:
    from aiui.commands._context import AppContext


@click.command(
    cls=AiuiCommand,
    examples="""\
  # Agents launching aiui as a subprocess talk over stdio
  aiui serve

  # One long-running server for several agents
  aiui serve --transport streamable-http --port 8765

  # A manifest kept outside the site tree
  aiui -m build/aiui.json serve""",
)
@click.option(
    "--transport",
    default=None,
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    help="MCP transport protocol (default: [mcp] transport).",
)
@click.option("--host", default="127.0.0.1", help="Interface for sse and streamable-http.")
@click.option("--port", default=8000, type=int, help="Port for sse and streamable-http.")
@click.pass_obj
def serve(app: AppContext, transport: str | None, host: str, port: int) -> None:
    """Serve the manifest's tools and resources over MCP."""
    from aiui.mcp.server import create_server, mcp_available

    if not mcp_available:
        app.fail("MCP not installed. Install with: pip install aiui[mcp]")
    if not app.settings.mcp.enabled:
        app.fail("MCP is disabled in config ([mcp] enabled = false).")
    server = create_server(
        site_root=app.settings.site_root,
        manifest_path=app.settings.manifest_path,
        host=host,
        port=port,
    )
    server.run(transport=transport or app.settings.mcp.transport)
