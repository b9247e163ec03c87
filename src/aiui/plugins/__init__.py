"""Observers of the invocation pipeline.

A plugin is any object with ``@hookimpl`` methods named after the
``post_*`` hooks in :mod:`aiui.plugins.hookspecs`.  Plugins see copies of
the data and cannot change an outcome; a plugin that raises only adds a
warning.
"""

from aiui.plugins.event_bus import EventBus
from aiui.plugins.hookspecs import hookimpl
from aiui.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager", "hookimpl"]
