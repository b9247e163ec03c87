"""MCP server exposing one site's manifest to agents.

The ``mcp`` distribution is an optional extra; ``mcp_available`` tells
callers whether :func:`create_server` can work before they try.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

mcp_available = False
_FastMCP: Any = None

try:
    from mcp.server.fastmcp import FastMCP as _FastMCP  # type: ignore[no-redef,import-not-found]

    mcp_available = True
except ImportError:
    pass

__all__ = ["SERVER_INSTRUCTIONS", "create_server", "mcp_available"]

SERVER_INSTRUCTIONS = (
    "Pick actions only from this site's manifest. Call resolve_action or "
    "list_actions first, check values with validate_inputs, then run_goal; "
    "every run returns an audit trace."
)


def create_server(
    *,
    site_root: Path | None = None,
    manifest_path: Path | str | None = None,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> Any:
    """A FastMCP server with the aiui tools and resources registered.

    The site is built the way the CLI builds it, from *site_root* or
    the enclosing site of the cwd.  *host* and *port* only matter for
    the HTTP transports.

    Raises:
        RuntimeError: The ``mcp`` extra is not installed.
    """
    if not mcp_available or _FastMCP is None:
        msg = "MCP extra not installed. Install with: pip install aiui[mcp]"
        raise RuntimeError(msg)

    from aiui.mcp.resources import register_resources
    from aiui.mcp.tools import register_tools

    site = _open_site(site_root, manifest_path)
    server = _FastMCP("aiui", instructions=SERVER_INSTRUCTIONS, host=host, port=port)
    register_tools(server, site)
    register_resources(server, site)
    return server


def _open_site(site_root: Path | None, manifest_path: Path | str | None) -> Any:
    from aiui.config.settings import AiuiSettings
    from aiui.infrastructure.site import Site

    settings = AiuiSettings.from_cli(site_root=site_root, manifest_path=manifest_path)
    site = Site(settings)
    site.init_event_bus(sync=settings.sync)
    return site
