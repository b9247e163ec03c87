"""The tools an MCP client calls: two catalog reads, three invocation steps.

The ``*_impl`` functions hold the behaviour and take the site explicitly,
so tests call them without the mcp package; ``register_tools`` only binds
them to a server.
"""

from __future__ import annotations

from typing import Any

from aiui.services.result import ServiceResult


def _to_mcp_response(result: ServiceResult) -> dict[str, Any]:
    """Plain JSON data for *result*; span timings and empty fields are left out."""
    omit = {"meta"}
    if not result.warnings:
        omit.add("warnings")
    if result.error is None:
        omit.add("error")
    return result.model_dump(mode="json", exclude=omit)


# -- catalog --


def list_actions_impl(site: Any) -> dict[str, Any]:
    from aiui.services.catalog import CatalogService

    return _to_mcp_response(CatalogService(site).list_actions())


def describe_action_impl(site: Any, action_id: str) -> dict[str, Any]:
    from aiui.services.catalog import CatalogService

    return _to_mcp_response(CatalogService(site).describe(action_id))


# -- invocation --


def resolve_action_impl(
    site: Any,
    goal_ids: list[str] | None = None,
    *,
    description: str = "",
) -> dict[str, Any]:
    """Name the one action serving *goal_ids*, or fail with the candidates."""
    from aiui.services.invocation import InvocationService

    result = InvocationService(site).resolve(goal_ids or (), description=description)
    return _to_mcp_response(result)


def validate_inputs_impl(site: Any, action_id: str, values: dict[str, Any]) -> dict[str, Any]:
    from aiui.services.invocation import InvocationService

    return _to_mcp_response(InvocationService(site).validate(action_id, values))


def run_goal_impl(
    site: Any,
    goal_ids: list[str],
    values: dict[str, Any],
    *,
    description: str = "",
    bind: bool | None = None,
) -> dict[str, Any]:
    """The full pipeline; ``data`` is the trace document."""
    from aiui.domain.trace import GoalInstance
    from aiui.services.invocation import InvocationService

    goal = GoalInstance(description=description, values=values, goal_ids=tuple(goal_ids))
    return _to_mcp_response(InvocationService(site).run(goal, bind=bind))


def register_tools(server: Any, site: Any) -> None:
    @server.tool()  # type: ignore[untyped-decorator]
    def list_actions() -> dict[str, Any]:
        """List every action the site manifest declares."""
        return list_actions_impl(site)

    @server.tool()  # type: ignore[untyped-decorator]
    def describe_action(action_id: str) -> dict[str, Any]:
        """Describe an action's inputs, constraints, and execution mode."""
        return describe_action_impl(site, action_id)

    @server.tool()  # type: ignore[untyped-decorator]
    def resolve_action(
        goal_ids: list[str] | None = None,
        description: str = "",
    ) -> dict[str, Any]:
        """Resolve goal ids to the single action that serves them."""
        return resolve_action_impl(site, goal_ids, description=description)

    @server.tool()  # type: ignore[untyped-decorator]
    def validate_inputs(action_id: str, values: dict[str, Any]) -> dict[str, Any]:
        """Check slot values against an action's declared constraints without running it."""
        return validate_inputs_impl(site, action_id, values)

    @server.tool()  # type: ignore[untyped-decorator]
    def run_goal(
        goal_ids: list[str],
        values: dict[str, Any],
        description: str = "",
        bind: bool | None = None,
    ) -> dict[str, Any]:
        """Resolve, validate, and return the audit trace for a goal."""
        return run_goal_impl(site, goal_ids, values, description=description, bind=bind)
