"""Binding adapters: map action slots to UI locations.

Binding is optional and never part of correctness: an adapter receives
the resolved action and the supplied values, reports which slots it
would bind where, and is cited in trace provenance.  It never sees or
changes validation verdicts.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from aiui.domain.constraints import is_absent

if TYPE_CHECKING:
    from aiui.domain.manifest import ActionSpec


@runtime_checkable
class BindingAdapter(Protocol):
    """Anything that can place slot values into a presentation surface."""

    def origin(self, action: ActionSpec) -> str:
        """Provenance reference for bindings made for *action*."""
        ...

    def bind(self, action: ActionSpec, values: Mapping[str, Any]) -> dict[str, str]:
        """Return ``slot -> field locator`` for the slots that were bound."""
        ...


class UiHintBinding:
    """Derive bindings from an action's ``ui_hint.fieldSelectors``.

    Only slots that have a supplied value and a declared selector are
    bound.  Actions without a ``ui_hint`` bind nothing.
    """

    def origin(self, action: ActionSpec) -> str:
        hint = action.ui_hint or {}
        form = hint.get("formSelector") or hint.get("form_selector")
        return str(form) if form else f"ui_hint:{action.id}"

    def selectors(self, action: ActionSpec) -> dict[str, str]:
        hint = action.ui_hint or {}
        raw = hint.get("fieldSelectors") or hint.get("field_selectors") or {}
        if not isinstance(raw, Mapping):
            return {}
        return {str(slot): str(locator) for slot, locator in raw.items()}

    def bind(self, action: ActionSpec, values: Mapping[str, Any]) -> dict[str, str]:
        declared = set(action.input_names())
        return {
            slot: locator
            for slot, locator in self.selectors(action).items()
            if slot in declared and not is_absent(values.get(slot))
        }
