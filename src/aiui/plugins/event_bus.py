"""Fan-out of invocation events to plugin hooks.

Inline dispatch (the default) raises a hook's exception straight back to
the service, which records it as a warning.  With ``--async-events`` the
hooks run on a small worker pool and their failures are collected by
:meth:`EventBus.drain` before the command prints its result.  Either
way a failing plugin never fails the invocation.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from aiui.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Calls ``post_*`` hooks on every registered plugin.

    Parameters:
        plugin_manager: Manager whose hook relay receives the events.
        sync: Call hooks on the caller's thread.
        max_workers: Pool size when *sync* is False.
    """

    def __init__(
        self,
        plugin_manager: PluginManager,
        *,
        sync: bool = True,
        max_workers: int = 2,
    ) -> None:
        self._pm = plugin_manager
        self._pool = None if sync else ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="aiui-events"
        )
        self._pending: list[tuple[str, Future[None]]] = []

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    @property
    def is_async(self) -> bool:
        return self._pool is not None

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> None:
        """Deliver *payload* as keyword arguments to *hook_name*."""
        hook = getattr(self._pm.hook, hook_name)
        if self._pool is None:
            hook(**payload)
            return
        self._pending.append((hook_name, self._pool.submit(hook, **payload)))

    def drain(self) -> list[str]:
        """Block until queued events finish; describe each one that raised."""
        pending, self._pending = self._pending, []
        failures = []
        for hook_name, future in pending:
            exc = future.exception()
            if exc is not None:
                logger.debug("Hook %s failed", hook_name, exc_info=exc)
                failures.append(f"{hook_name}: {type(exc).__name__}: {exc}")
        return failures

    def shutdown(self) -> None:
        for message in self.drain():
            logger.warning("Plugin hook failed during shutdown: %s", message)
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
