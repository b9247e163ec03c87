"""Click building blocks shared by every aiui command.

``AiuiCommand`` and ``AiuiGroup`` take an ``examples=`` string and grow
an eager ``--examples`` flag that prints it without loading the site.
``SLOT`` parses the repeated ``-s slot=value`` option.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    """Adds ``--examples`` to the params of any command that has examples text."""

    examples: str | None = None

    def get_params(self, ctx: click.Context) -> list[click.Parameter]:
        params: list[click.Parameter] = super().get_params(ctx)  # type: ignore[misc]
        if self.examples:
            params = [*params, self._examples_option()]
        return params

    def _examples_option(self) -> click.Option:
        text = self.examples

        def _print(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
            if value:
                click.echo(f"Examples for '{ctx.command_path}':\n\n{text}")
                ctx.exit(0)

        return click.Option(
            ["--examples"],
            is_flag=True,
            is_eager=True,
            expose_value=False,
            callback=_print,
            help="Show usage examples and exit.",
        )


class AiuiCommand(_ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples


class AiuiGroup(_ExamplesMixin, click.Group):
    """Group whose subcommands default to :class:`AiuiCommand`."""

    command_class = AiuiCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples


class SlotAssignment(click.ParamType):
    """``slot=value``; everything after the first ``=`` is the value."""

    name = "slot=value"

    def convert(
        self, value: Any, param: click.Parameter | None, ctx: click.Context | None
    ) -> tuple[str, str]:
        if isinstance(value, tuple):
            return value
        slot, sep, raw = str(value).partition("=")
        if not sep or not slot.strip():
            self.fail(f"expected slot=value, got {value!r}", param, ctx)
        return slot.strip(), raw


SLOT = SlotAssignment()
