"""Plugin protocol for the htmeta emitter.

A plugin can claim a node before it is emitted as a plain tag. Claiming is a
two-step negotiation:

1. ``should_emit(node, emitter)`` is a pure predicate returning an
   ``EmitStatus``. It must not change any state.
2. On ``EMIT`` the emitter calls ``emit_node(node, context)``. The plugin may
   write output and walk nodes in forked emitters, but must not change its
   own state.
   On ``EMIT_MUT`` the emitter first makes its copy of the plugin private
   (copy-on-write), then calls ``emit_node_mut(node, context)`` on that copy.
   This is where state such as a template registry is changed.

Plugins are shared by every emitter forked from the same parent. A plugin is
cloned only when an emitter scope mutates it for the first time, so state
registered inside a nested scope never leaks to the enclosing scope.

Example:
    ```python
    class ShouterPlugin(Plugin):
        def should_emit(self, node, emitter):
            return EmitStatus.EMIT

        def emit_node(self, node, context):
            context.emitter.emit_tag(node, node.name.upper(), context.indent, context.writer)
    ```
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from htmeta._types import Writer
    from htmeta.emitter.core import HtmlEmitter
    from htmeta.nodes import Node

P = TypeVar("P", bound="Plugin")


class EmitStatus(Enum):
    """Answer of ``Plugin.should_emit``."""

    SKIP = "skip"
    EMIT = "emit"
    EMIT_MUT = "emit_mut"


@dataclass(slots=True)
class PluginContext:
    """What a plugin gets to work with while emitting a node.

    Attributes:
        indent: Pre-computed indentation for the node being emitted.
        writer: Output the node is being emitted into.
        emitter: The emitter of the current scope.
    """

    indent: str
    writer: Writer
    emitter: HtmlEmitter


class Plugin:
    """Base class for emitter plugins."""

    def should_emit(self, node: Node, emitter: HtmlEmitter) -> EmitStatus:
        return EmitStatus.SKIP

    def emit_node(self, node: Node, context: PluginContext) -> None:
        raise NotImplementedError(f"{type(self).__name__} claimed a node but does not emit it")

    def emit_node_mut(self, node: Node, context: PluginContext) -> None:
        raise NotImplementedError(
            f"{type(self).__name__} requested a mutation but does not implement emit_node_mut"
        )

    def clone(self: P) -> P:
        """Return a copy that can be mutated without affecting ``self``."""
        return copy.copy(self)


class PluginList:
    """Ordered plugins with per-scope copy-on-write ownership.

    ``fork()`` shares every plugin object with the new list. ``make_mut(i)``
    swaps in a private clone of plugin ``i`` the first time it is called on a
    list, and returns that same clone afterwards.
    """

    __slots__ = ("_initial", "_owned", "_plugins")

    def __init__(self, plugins: Iterable[Plugin] = ()):
        self._plugins: list[Plugin] = list(plugins)
        self._initial: tuple[Plugin, ...] = tuple(self._plugins)
        self._owned: set[int] = set()

    def fork(self) -> PluginList:
        child = PluginList.__new__(PluginList)
        child._plugins = list(self._plugins)
        child._initial = self._initial
        child._owned = set()
        return child

    def make_mut(self, index: int) -> Plugin:
        if index not in self._owned:
            self._plugins[index] = self._plugins[index].clone()
            self._owned.add(index)
        return self._plugins[index]

    def reset(self) -> None:
        """Drop every private copy and go back to the plugins given at construction."""
        self._plugins = list(self._initial)
        self._owned.clear()

    def find(self, plugin_type: type[P]) -> P | None:
        """Return the first plugin that is an instance of ``plugin_type``."""
        for plugin in self._plugins:
            if isinstance(plugin, plugin_type):
                return plugin
        return None

    def __iter__(self) -> Iterator[Plugin]:
        return iter(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)

    def __getitem__(self, index: int) -> Plugin:
        return self._plugins[index]
