"""Rich console and theme used by every human-readable renderer.

Renderers print into an in-memory console and hand back the text, so
the CLI decides where it goes.  Rich drops colour by itself when the
output is not a terminal (pipes, CliRunner).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

EXECUTION_MODE_STYLES = {"dry-run": "yellow", "execute": "magenta"}

AIUI_THEME = Theme(
    {
        # status words
        "aiui.ok": "bold green",
        "aiui.error": "bold red",
        "aiui.warning": "bold yellow",
        "aiui.op": "bold cyan",
        # fields
        "aiui.key": "dim",
        "aiui.id": "bold blue",
        "aiui.path": "dim",
        "aiui.title": "bold",
        "aiui.score": "magenta",
        # verdicts
        "aiui.valid": "green",
        "aiui.invalid": "red",
        **{f"aiui.mode.{mode}": style for mode, style in EXECUTION_MODE_STYLES.items()},
    }
)

DEFAULT_WIDTH = 120


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """An in-memory console carrying the aiui theme; read it with :func:`get_output`."""
    return Console(
        file=StringIO(),
        theme=AIUI_THEME,
        no_color=no_color,
        highlight=False,
        width=width or DEFAULT_WIDTH,
    )


def get_output(console: Console) -> str:
    buffer = console.file
    assert isinstance(buffer, StringIO)
    return buffer.getvalue()


def style_for_mode(mode: str) -> str:
    """Theme style for an execution mode; empty for modes the theme does not know."""
    return f"aiui.mode.{mode}" if mode in EXECUTION_MODE_STYLES else ""


def style_for_validity(valid: bool) -> str:
    return "aiui.valid" if valid else "aiui.invalid"
