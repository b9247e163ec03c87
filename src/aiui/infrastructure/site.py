"""Site: the single dependency injected into every service.

A Site owns the settings, the loaded manifest (read-only after load),
the plugin event bus, and the optional binding adapter.  The manifest is
loaded lazily on first access so ``--help`` never touches the disk, and
then shared by reference with every invocation.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from aiui.infrastructure.binding import UiHintBinding
from aiui.infrastructure.loader import find_manifest, load_manifest

if TYPE_CHECKING:
    from aiui.config.settings import AiuiSettings
    from aiui.domain.manifest import ManifestSpec
    from aiui.infrastructure.binding import BindingAdapter
    from aiui.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)


class Site:
    """Settings + manifest + extension wiring for one site.

    Parameters:
        settings: Resolved settings.
        manifest: An already-loaded manifest (skips file loading).
        binding: An explicit binding adapter; otherwise a
            :class:`UiHintBinding` is used when ``[binding] enabled``.
    """

    def __init__(
        self,
        settings: AiuiSettings,
        *,
        manifest: ManifestSpec | None = None,
        binding: BindingAdapter | None = None,
    ) -> None:
        self.settings = settings
        self._manifest = manifest
        self._binding = binding
        self._event_bus: EventBus | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_manifest(
        cls,
        manifest: ManifestSpec,
        settings: AiuiSettings | None = None,
        *,
        binding: BindingAdapter | None = None,
    ) -> Site:
        """Wrap an in-memory manifest (tests, embedding applications)."""
        if settings is None:
            from aiui.config.settings import AiuiSettings

            settings = AiuiSettings.from_cli()
        return cls(settings, manifest=manifest, binding=binding)

    @property
    def root(self) -> Path:
        return self.settings.site_root

    def manifest_file(self) -> Path:
        """The configured manifest, or any default-named one in the site root."""
        configured = self.settings.manifest_file
        if configured.is_file() or self.settings.manifest_path is not None:
            return configured
        return find_manifest(self.root) or configured

    @property
    def manifest(self) -> ManifestSpec:
        """The loaded manifest.

        Raises:
            ManifestNotFoundError: If the manifest file does not exist.
            SchemaViolationError: If it is malformed.
        """
        if self._manifest is None:
            with self._lock:
                if self._manifest is None:
                    self._manifest = load_manifest(self.manifest_file())
        return self._manifest

    def binding(self, *, enabled: bool | None = None) -> BindingAdapter | None:
        """The binding adapter to consult, or None when binding is off."""
        use = self.settings.binding.enabled if enabled is None else enabled
        if not use:
            return None
        return self._binding if self._binding is not None else UiHintBinding()

    @property
    def event_bus(self) -> EventBus | None:
        return self._event_bus

    def init_event_bus(self, *, sync: bool = True) -> EventBus:
        """Load plugins and create the event bus."""
        from aiui.plugins.builtins.audit_log import AuditLogPlugin
        from aiui.plugins.event_bus import EventBus
        from aiui.plugins.manager import PluginManager

        pm = PluginManager()
        if self.settings.plugins.audit_log.get("enabled", True):
            pm.register_plugin(AuditLogPlugin(), name="audit_log")
        local_dir = Path(self.settings.plugins.local_dir)
        if not local_dir.is_absolute():
            local_dir = self.root / local_dir
        pm.discover_and_load(local_dir=local_dir)
        logger.debug("Plugins loaded: %s", pm.describe())
        self._event_bus = EventBus(pm, sync=sync)
        return self._event_bus

    def close(self) -> None:
        if self._event_bus is not None:
            self._event_bus.shutdown()
            self._event_bus = None
