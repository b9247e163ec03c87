"""Shared plumbing for the services that operate on a :class:`Site`."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aiui.domain.errors import AiuiError, SchemaViolationError
from aiui.infrastructure.loader import ManifestNotFoundError
from aiui.services.result import ServiceResult

if TYPE_CHECKING:
    from aiui.domain.manifest import ManifestSpec
    from aiui.infrastructure.site import Site

logger = logging.getLogger(__name__)


class BaseService:
    """A service reads the site's manifest and reports through ServiceResult.

    Subclasses start each operation with :meth:`_manifest_or_failure`
    and notify plugins with :meth:`_dispatch_event`.
    """

    def __init__(self, site: Site) -> None:
        self._site = site

    def _manifest_or_failure(self, op: str) -> ManifestSpec | ServiceResult:
        """The loaded manifest, or the failed result explaining why it is unavailable."""
        try:
            return self._site.manifest
        except AiuiError as exc:
            return self._load_failure(op, exc)

    def _dispatch_event(self, hook_name: str, payload: dict[str, Any], warnings: list[str]) -> None:
        """Notify plugins; a hook that raises becomes an entry in *warnings*."""
        bus = self._site.event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception as exc:
            logger.debug("Plugin hook %s failed", hook_name, exc_info=True)
            warnings.append(f"Plugin hook {hook_name} failed: {exc}")

    @staticmethod
    def _load_failure(op: str, exc: AiuiError) -> ServiceResult:
        if isinstance(exc, ManifestNotFoundError):
            return ServiceResult.failure(op, "MANIFEST_NOT_FOUND", str(exc), path=str(exc.path))
        if isinstance(exc, SchemaViolationError):
            return ServiceResult.failure(
                op, "SCHEMA_VIOLATION", f"Manifest is malformed: {exc}", errors=exc.errors
            )
        return ServiceResult.failure(op, "MANIFEST_ERROR", str(exc))
