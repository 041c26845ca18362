"""Emitter plugins.

The template plugin lives in ``htmeta.plugins.template``.
"""

from htmeta.plugins.base import EmitStatus, Plugin, PluginContext, PluginList

__all__ = ["EmitStatus", "Plugin", "PluginContext", "PluginList"]
