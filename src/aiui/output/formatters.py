"""Turning a ServiceResult into the text a command prints.

Three modes, chosen by the global flags: ``--json`` dumps the result
model, ``--quiet`` prints only its key value, and the default draws
Rich panels and tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from aiui.services.result import ServiceResult

OutputMode = Literal["json", "quiet", "rich"]


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False

    @property
    def mode(self) -> OutputMode:
        """``--json`` wins over ``--quiet``."""
        if self.json_output:
            return "json"
        return "quiet" if self.quiet else "rich"


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    settings = settings or OutputSettings()
    mode = settings.mode
    if mode == "json":
        return result.model_dump_json(indent=2)

    from aiui.output.renderers import render_quiet, render_result

    if mode == "quiet":
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
