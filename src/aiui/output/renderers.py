"""Human-readable views of each operation's result.

``render_result`` picks a view by ``result.op``; ops without one get a
plain field listing.  Manifest authors control most of the strings shown
here (titles, descriptions, goal text), so they are always wrapped in
``Text`` and never parsed as Rich markup.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from aiui.output.console import create_console, get_output, style_for_mode, style_for_validity

if TYPE_CHECKING:
    from rich.console import Console

    from aiui.services.result import ServiceResult

Renderer = Callable[["ServiceResult", "Console", bool], None]

_FIELD_STYLES = {"origin": "aiui.path", "path": "aiui.path", "title": "aiui.title"}
_ID_COLUMN: dict[str, Any] = {"style": "aiui.id", "no_wrap": True}


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Rich text for *result*; plain when stdout is not a terminal."""
    console = create_console()
    if not result.ok:
        _render_error(result, console, verbose)
    else:
        _VIEWS.get(result.op, _render_fields)(result, console, verbose)
    if verbose and result.meta:
        _render_meta(console, result.meta)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """The single value a script wants from *result* under ``--quiet``."""
    if not result.ok:
        message = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {message}"
    data = result.data
    if result.op == "run":
        return str(data.get("resultSummary", ""))
    if result.op == "validate":
        return "valid" if data.get("valid") else "invalid"
    if result.op in ("resolve", "describe"):
        return str(data.get("id", ""))
    items = data.get("items")
    if isinstance(items, list) and items:
        ids = (str(item["id"]) for item in items if isinstance(item, dict) and "id" in item)
        return "\n".join(ids)
    return f"OK: {result.op}"


# ── building blocks ──────────────────────────────────────────────────


def _table(*columns: str | tuple[str, dict[str, Any]]) -> Table:
    table = Table(show_header=True, pad_edge=False, expand=False)
    for column in columns:
        header, options = column if isinstance(column, tuple) else (column, {})
        table.add_column(header, **options)
    return table


def _heading(console: Console, op: str) -> None:
    console.print(Text.assemble(("OK", "aiui.ok"), (f"  {op}", "aiui.op")))


def _field(console: Console, key: str, value: Any) -> None:
    if key == "id" or key.endswith("_id"):
        style = "aiui.id"
    elif key in ("execution_mode", "mode"):
        style = style_for_mode(str(value))
    else:
        style = _FIELD_STYLES.get(key, "")
    console.print(Text.assemble((f"  {key}: ", "aiui.key"), (str(value), style)))


def _lines(console: Console, heading: str, lines: Iterable[Text]) -> None:
    console.print(Text(f"\n{heading}:", style="aiui.key"))
    for line in lines:
        console.print(line)


def _timing_style(duration_ms: float) -> str:
    if duration_ms > 1000:
        return "bold red"
    return "yellow" if duration_ms > 100 else "dim"


def _span_label(span: dict[str, Any]) -> Text:
    duration = float(span.get("duration_ms", 0.0))
    label = Text(f"{duration:>8.2f}ms", style=_timing_style(duration))
    label.append(f"  {span.get('name', '?')}")
    notes = span.get("annotations") or {}
    if notes:
        label.append("  (" + ", ".join(f"{k}={v}" for k, v in notes.items()) + ")", style="dim")
    return label


def _span_tree(span: dict[str, Any], parent: Tree | None = None) -> Tree:
    label = _span_label(span)
    node = Tree(label, guide_style="dim") if parent is None else parent.add(label)
    for child in span.get("children", []):
        _span_tree(child, node)
    return node


def _render_meta(console: Console, meta: dict[str, Any]) -> None:
    console.print(Text("\n  meta:", style="dim"))
    for key, value in meta.items():
        if key == "telemetry":
            console.print(_span_tree(value))
        else:
            console.print(Text(f"    {key}: {value}"))


def _verdict_table(verdicts: list[dict[str, Any]]) -> Table:
    table = _table(("Slot", _ID_COLUMN), "Valid", "Reason")
    for verdict in verdicts:
        ok = bool(verdict.get("valid"))
        table.add_row(
            Text(str(verdict.get("slot", ""))),
            Text("yes" if ok else "no", style=style_for_validity(ok)),
            Text(str(verdict.get("reason", ""))),
        )
    return table


def _input_table(inputs: list[dict[str, Any]]) -> Table:
    table = _table(("Input", _ID_COLUMN), "Type", "Required", "Constraint")
    for spec in inputs:
        table.add_row(
            Text(str(spec.get("name", ""))),
            str(spec.get("type", "")),
            "yes" if spec.get("required") else "no",
            Text(str(spec.get("constraint") or "-")),
        )
    return table


# ── failures ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, verbose: bool) -> None:
    err = result.error
    message = err.message if err else "Unknown error"
    console.print(
        Text.assemble(("ERROR", "aiui.error"), (f"  {result.op}", "aiui.op"), ": ", message)
    )
    if err is None:
        return
    for key in ("candidates", "available"):
        names = err.detail.get(key) or []
        if names:
            console.print(Text(f"  {key}: {', '.join(names)}"))
    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for key, value in err.detail.items():
            console.print(Text(f"    {key}: {value}"))


# ── invocation ───────────────────────────────────────────────────────


def _render_run(result: ServiceResult, console: Console, verbose: bool) -> None:
    """Trace document: summary panel, verdicts, step log, provenance."""
    trace = result.data
    verdicts = trace.get("validationResults", [])
    header = [f"action: {trace.get('actionId', '')}"]
    if trace.get("goalId"):
        header.append(f"goal id: {trace['goalId']}")
    header += [f"trace: {trace.get('traceId', '')}", "", str(trace.get("resultSummary", ""))]
    console.print(
        Panel(
            Text("\n".join(header)),
            title=Text(str(trace.get("goal", ""))),
            border_style=style_for_validity(all(v.get("valid") for v in verdicts)),
            expand=False,
        )
    )
    if verdicts:
        console.print(_verdict_table(verdicts))

    steps = []
    for step in trace.get("steps", []):
        line = Text(f"  {step.get('step')}. {step.get('note', '')}")
        if verbose:
            line.append(f"  {step.get('time', '')}", style="dim")
        steps.append(line)
    if steps:
        _lines(console, "steps", steps)

    provenance = trace.get("provenance", [])
    if provenance:
        _lines(
            console,
            "provenance",
            (Text(f"  {p.get('source')}: {p.get('detail')}") for p in provenance),
        )


def _render_validate(result: ServiceResult, console: Console, verbose: bool) -> None:
    data = result.data
    _heading(console, result.op)
    _field(console, "action_id", data.get("action_id", ""))
    if data.get("valid"):
        outcome = "all valid"
    else:
        outcome = f"{data.get('invalid_count', 0)} of {data.get('count', 0)} invalid"
    _field(console, "result", outcome)
    console.print(_verdict_table(data.get("verdicts", [])))


def _render_action(result: ServiceResult, console: Console, verbose: bool) -> None:
    """One action (``resolve`` or ``describe``): summary panel plus its inputs."""
    action = result.data
    body: list[str] = []
    if action.get("description"):
        body += [str(action["description"]), ""]
    if action.get("goal_id"):
        body.append(f"goal: {action['goal_id']}")
    mode = str(action.get("execution_mode", ""))
    body.append(f"mode: {mode}")
    if "strategy" in action:
        score = action.get("score")
        suffix = f" (score {score:.2f})" if score is not None else ""
        body.append(f"resolved by: {action['strategy']}{suffix}")
    if action.get("outputs"):
        body.append(f"outputs: {', '.join(action['outputs'])}")

    console.print(
        Panel(
            Text("\n".join(body)),
            title=Text(f"{action.get('id', '?')}: {action.get('title', '')}"),
            border_style=style_for_mode(mode) or "dim",
            expand=False,
        )
    )
    if action.get("inputs"):
        console.print(_input_table(action["inputs"]))


# ── catalog ──────────────────────────────────────────────────────────


def _render_action_list(result: ServiceResult, console: Console, verbose: bool) -> None:
    items = result.data.get("items", [])
    table = _table(
        ("ID", _ID_COLUMN),
        ("Title", {"style": "aiui.title"}),
        "Goals",
        ("Inputs", {"justify": "right"}),
        "Mode",
    )
    for item in items:
        mode = str(item.get("execution_mode", ""))
        table.add_row(
            Text(str(item.get("id", ""))),
            Text(str(item.get("title", ""))),
            Text(", ".join(item.get("goals", [])) or "-"),
            str(item.get("inputs", 0)),
            Text(mode, style=style_for_mode(mode)),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} actions")


def _render_goal_list(result: ServiceResult, console: Console, verbose: bool) -> None:
    items = result.data.get("items", [])
    table = _table(("ID", _ID_COLUMN), "Description", "Served by")
    for item in items:
        serving = item.get("actions", [])
        table.add_row(
            Text(str(item.get("id", ""))),
            Text(str(item.get("description", ""))),
            Text(", ".join(serving)) if serving else Text("none", style="aiui.warning"),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} goals")


def _render_check(result: ServiceResult, console: Console, verbose: bool) -> None:
    report = result.data
    if report.get("healthy"):
        console.print(Text.assemble(("OK", "aiui.ok"), "  Manifest is healthy."))
    else:
        console.print(Text.assemble(("WARN", "aiui.warning"), "  Manifest has issues."))
    for key in ("origin", "site", "version", "goals", "actions", "inputs", "constrained_inputs"):
        if report.get(key) is not None:
            _field(console, key, report[key])
    if report.get("state_models"):
        _field(console, "state_models", ", ".join(report["state_models"]))
    for note in report.get("notes", []):
        console.print(Text.assemble("  ", ("warning", "aiui.warning"), f": {note}"))


def _render_fields(result: ServiceResult, console: Console, verbose: bool) -> None:
    _heading(console, result.op)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            value = json.dumps(value, separators=(",", ":"))
        _field(console, key, value)


_VIEWS: dict[str, Renderer] = {
    "run": _render_run,
    "validate": _render_validate,
    "resolve": _render_action,
    "describe": _render_action,
    "list_actions": _render_action_list,
    "list_goals": _render_goal_list,
    "check": _render_check,
}
