"""Loading the plugins that observe invocation events.

Plugins come from three places: built-ins registered by the site,
distributions advertising the ``aiui.plugins`` entry-point group, and
single-file modules in the site's local plugin directory.  A plugin that
fails to import or construct is logged and skipped; it never stops an
invocation.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType

import pluggy

from aiui.plugins.hookspecs import AiuiHookSpec

PROJECT_NAME = "aiui"
ENTRY_POINT_GROUP = "aiui.plugins"
LOCAL_MODULE_PREFIX = "aiui_local_plugin_"

# pluggy's HookimplMarker tags decorated methods with this attribute.
_IMPL_ATTR = f"{PROJECT_NAME}_impl"

logger = logging.getLogger(__name__)


class PluginManager:
    """pluggy manager for the aiui hook specs, remembering each plugin's origin."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(AiuiHookSpec)
        self._origins: dict[str, str] = {}
        self._loaded = False

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    @property
    def is_loaded(self) -> bool:
        """Whether :meth:`discover_and_load` has run."""
        return self._loaded

    def register_plugin(
        self, plugin: object, name: str | None = None, *, origin: str = "builtin"
    ) -> None:
        key = name or type(plugin).__name__
        self._pm.register(plugin, name=key)
        self._origins[key] = origin
        logger.debug("Registered %s plugin %s", origin, key)

    def unregister(self, plugin: object) -> None:
        name = self._pm.get_name(plugin)
        self._pm.unregister(plugin)
        self._origins.pop(name or "", None)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def describe(self) -> dict[str, str]:
        """Registered plugin names mapped to where each came from."""
        return {name: self._origins.get(name, "entry-point") for name in self.list_plugin_names()}

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point plugins, then local ones; return every registered name."""
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_entry_point_classes()
        if local_dir is not None and local_dir.is_dir():
            for path in sorted(local_dir.glob("*.py")):
                if not path.name.startswith("_"):
                    self._load_local(path)
        self._loaded = True
        return self.list_plugin_names()

    def _load_local(self, path: Path) -> None:
        module = _import_file(f"{LOCAL_MODULE_PREFIX}{path.stem}", path)
        if module is None:
            return
        for cls in _hook_classes(module):
            try:
                self.register_plugin(cls(), name=module.__name__, origin=f"local:{path}")
            except Exception:
                logger.warning(
                    "Could not construct plugin %s from %s", cls.__name__, path, exc_info=True
                )

    def _instantiate_entry_point_classes(self) -> None:
        """Swap classes registered by an entry point for instances of them.

        Hooks dispatched on a bare class would be called without ``self``.
        """
        for plugin in list(self._pm.get_plugins()):
            if not (inspect.isclass(plugin) and self._has_hook_impls(plugin)):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                self.register_plugin(plugin(), name=name, origin="entry-point")
            except Exception:
                logger.warning("Could not construct entry-point plugin %s", name, exc_info=True)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        return any(
            getattr(member, _IMPL_ATTR, None)
            for attr, member in inspect.getmembers(cls, callable)
            if not attr.startswith("_")
        )


def _import_file(module_name: str, path: Path) -> ModuleType | None:
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        logger.warning("Not an importable plugin file: %s", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        logger.warning("Failed to import local plugin %s", path, exc_info=True)
        sys.modules.pop(module_name, None)
        return None
    return module


def _hook_classes(module: ModuleType) -> Iterator[type]:
    """Classes defined in *module* itself that implement at least one hook."""
    for _, cls in inspect.getmembers(module, inspect.isclass):
        if cls.__module__ == module.__name__ and PluginManager._has_hook_impls(cls):
            yield cls
