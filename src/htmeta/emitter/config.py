"""Emitter configuration and builder."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from htmeta.emitter.core import HtmlEmitter
    from htmeta.plugins.base import Plugin


@dataclass(frozen=True, slots=True)
class EmitterConfig:
    """Output settings shared by every emitter of a build.

    Attributes:
        indent: Spaces per nesting level. 0 minifies (no indentation, no newlines).
        follow_source: Indent each node with the whitespace it had in the
            source instead of ``indent`` spaces per level. Best effort.
        max_depth: Maximum ``@import`` / ``@include`` nesting, and maximum
            nesting of template calls.
    """

    indent: int = 4
    follow_source: bool = False
    max_depth: int = 50

    @property
    def is_pretty(self) -> bool:
        return self.indent > 0 or self.follow_source


class EmitterBuilder:
    """Builder for ``HtmlEmitter`` instances.

    Reuse one builder to create an emitter per build:

        >>> builder = EmitterBuilder().indent(2).add_plugin(TemplatePlugin())
        >>> html = builder.build().render(parse('p "Hi"'))
    """

    __slots__ = ("_config", "_plugins")

    def __init__(self, config: EmitterConfig | None = None):
        self._config = config or EmitterConfig()
        self._plugins: list[Plugin] = []

    @property
    def config(self) -> EmitterConfig:
        return self._config

    def indent(self, indent: int) -> EmitterBuilder:
        """Set the indentation width. Implies pretty output when > 0."""
        if indent < 0:
            raise ValueError(f"indent must be >= 0, got {indent}")
        self._config = replace(self._config, indent=indent)
        return self

    def minify(self) -> EmitterBuilder:
        """Disable indentation and newlines."""
        self._config = replace(self._config, indent=0, follow_source=False)
        return self

    def follow_source(self, enabled: bool = True) -> EmitterBuilder:
        self._config = replace(self._config, follow_source=enabled)
        return self

    def max_depth(self, depth: int) -> EmitterBuilder:
        self._config = replace(self._config, max_depth=depth)
        return self

    def add_plugin(self, plugin: Plugin) -> EmitterBuilder:
        """Register a plugin for every emitter this builder creates."""
        self._plugins.append(plugin)
        return self

    def build(self) -> HtmlEmitter:
        from htmeta.emitter.core import HtmlEmitter

        return HtmlEmitter(self._config, self._plugins)
