"""Read-only views of the site at ``aiui://manifest``, ``aiui://actions`` and ``aiui://goals``.

A resource never fails: a manifest that cannot be loaded yields an
``error`` entry or an empty listing.
"""

from __future__ import annotations

import json
from typing import Any

from aiui.domain.errors import AiuiError

_EMPTY_LISTING: dict[str, Any] = {"items": [], "count": 0}


def manifest_impl(site: Any) -> dict[str, Any]:
    """The normalized manifest document, in its wire spelling."""
    try:
        manifest = site.manifest
    except AiuiError as exc:
        return {"error": str(exc)}
    return manifest.model_dump(mode="json", by_alias=True, exclude_none=True)


def actions_impl(site: Any) -> dict[str, Any]:
    from aiui.services.catalog import CatalogService

    result = CatalogService(site).list_actions()
    return result.data if result.ok else dict(_EMPTY_LISTING)


def goals_impl(site: Any) -> dict[str, Any]:
    from aiui.services.catalog import CatalogService

    result = CatalogService(site).list_goals()
    return result.data if result.ok else dict(_EMPTY_LISTING)


def register_resources(server: Any, site: Any) -> None:
    @server.resource("aiui://manifest")  # type: ignore[untyped-decorator]
    def manifest_resource() -> str:
        """The site's manifest document."""
        return json.dumps(manifest_impl(site), indent=2)

    @server.resource("aiui://actions")  # type: ignore[untyped-decorator]
    def actions_resource() -> str:
        """Declared actions with goals and execution modes."""
        return json.dumps(actions_impl(site), indent=2)

    @server.resource("aiui://goals")  # type: ignore[untyped-decorator]
    def goals_resource() -> str:
        """Declared goals and the actions serving each."""
        return json.dumps(goals_impl(site), indent=2)
