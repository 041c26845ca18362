"""HtmlEmitter: walks a document and writes HTML.

One emitter exists per nesting level. ``subemitter()`` creates the emitter
for a node's children (one level deeper) and ``fork()`` creates a sibling
scope at the same level (template bodies, loop iterations). Both share the
parent's variables and plugins copy-on-write, so nothing bound or registered
in a child scope is visible to the parent.

Per node, in order:
1. ``$name value`` binds a variable in the current scope.
2. ``raw value`` writes the expanded value as-is.
3. ``text value`` writes the expanded value HTML-escaped.
4. Plugins get a chance to claim the node.
5. Anything else is a plain element.

Example:
    >>> emitter = EmitterBuilder().minify().build()
    >>> emitter.render(parse('$who "World"; p "Hello, $who!"'))
    '<p>Hello, World!</p>'
"""

from __future__ import annotations

import logging
import time
import warnings
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from io import StringIO
from typing import TYPE_CHECKING, TypeVar

from htmeta.emitter.config import EmitterBuilder, EmitterConfig
from htmeta.emitter.dependencies import DependencyGraph
from htmeta.emitter.tags import emit_tag
from htmeta.environment.exceptions import ErrorCode, UserError
from htmeta.environment.vars import Vars
from htmeta.nodes import VARIABLE_SIGIL, Node
from htmeta.plugins.base import EmitStatus, Plugin, PluginContext, PluginList
from htmeta.utils.html import html_escape

if TYPE_CHECKING:
    from htmeta._types import Writer

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Plugin)

RAW_NODE = "raw"
TEXT_NODE = "text"
LEGACY_TEXT_NODE = "content"

_legacy_text_warned = False


def _warn_legacy_text() -> None:
    global _legacy_text_warned
    if _legacy_text_warned:
        return
    _legacy_text_warned = True
    warnings.warn(
        f"`{LEGACY_TEXT_NODE}` nodes are deprecated, use `{TEXT_NODE}` instead.",
        DeprecationWarning,
        stacklevel=4,
    )


class HtmlEmitter:
    """The HTML emitter.

    Create instances with ``EmitterBuilder``; reuse the builder, not the
    emitter, when building several documents at once. A single emitter can
    still be reused for sequential builds: ``emit()`` resets its variables,
    plugins and dependency graph.

    Attributes:
        config: Indentation and nesting settings.
        current_level: Nesting depth, used for indentation.
        vars: Variables of the current scope.
        dependencies: Files pulled in by ``@import`` / ``@include``, shared
            by every emitter of a build.
        filename: Logical path of the file being emitted, or None for a
            document that did not come from a file.
        template_stack: Names of the templates being instantiated, outermost
            first.
    """

    __slots__ = (
        "_plugins",
        "_stack",
        "config",
        "current_level",
        "dependencies",
        "filename",
        "template_stack",
        "vars",
    )

    def __init__(self, config: EmitterConfig | None = None, plugins: Iterable[Plugin] = ()):
        self.config = config or EmitterConfig()
        self.current_level = 0
        self.vars = Vars()
        self.dependencies = DependencyGraph()
        self.filename: str | None = None
        self.template_stack: tuple[str, ...] = ()
        self._plugins = PluginList(plugins)
        self._stack: tuple[str, ...] = ()

    @staticmethod
    def builder() -> EmitterBuilder:
        return EmitterBuilder()

    # Scopes

    def fork(self) -> HtmlEmitter:
        """Return an emitter for a new scope at the same nesting level."""
        child = HtmlEmitter.__new__(HtmlEmitter)
        child.config = self.config
        child.current_level = self.current_level
        child.vars = self.vars.fork()
        child.dependencies = self.dependencies
        child.filename = self.filename
        child.template_stack = self.template_stack
        child._plugins = self._plugins.fork()
        child._stack = self._stack
        return child

    def subemitter(self) -> HtmlEmitter:
        """Return an emitter for the children of the current node."""
        child = self.fork()
        child.current_level += 1
        return child

    @property
    def file_stack(self) -> tuple[str, ...]:
        """Files currently being imported or included, outermost first."""
        return self._stack

    @contextmanager
    def entering(self, filename: str) -> Iterator[HtmlEmitter]:
        """Emit nodes of ``filename`` with this emitter for the duration of the block."""
        previous = (self.filename, self._stack)
        self.filename = filename
        self._stack = (*self._stack, filename)
        try:
            yield self
        finally:
            self.filename, self._stack = previous

    def get_plugin(self, plugin_type: type[P]) -> P | None:
        return self._plugins.find(plugin_type)

    # Formatting

    @property
    def is_pretty(self) -> bool:
        return self.config.is_pretty

    def write_line(self, writer: Writer) -> None:
        """Write a newline in pretty mode."""
        if self.is_pretty:
            writer.write("\n")

    def indent(self) -> str:
        """Indentation for the current level.

        Example:
            >>> EmitterBuilder().indent(4).build().subemitter().indent()
            '    '
        """
        return " " * (self.current_level * self.config.indent)

    def indent_for(self, node: Node) -> str:
        if self.config.follow_source:
            return node.leading
        return self.indent()

    def user_error(
        self,
        message: str,
        node: Node | None = None,
        *,
        code: ErrorCode | None = None,
        suggestion: str | None = None,
    ) -> UserError:
        """Build a ``UserError`` located at ``node`` in the current file."""
        return UserError(
            message,
            code=code,
            filename=self.filename,
            lineno=(node.lineno or None) if node is not None else None,
            suggestion=suggestion,
        )

    # Emission

    def emit_tag(self, node: Node, name: str, indent: str, writer: Writer) -> None:
        """Write ``node`` as the element ``name``. See ``htmeta.emitter.tags``."""
        emit_tag(self, node, name, indent, writer)

    def emit_text_node(self, indent: str, text: str, writer: Writer, escape: bool = True) -> None:
        """Write ``text`` on its own line, HTML-escaped unless ``escape`` is False.

        ``text`` is written exactly as given: expand variables first.
        """
        writer.write(f"{indent}{html_escape(text) if escape else text}")
        self.write_line(writer)

    def _call_plugin(self, node: Node, indent: str, writer: Writer) -> bool:
        for index, plugin in enumerate(self._plugins):
            status = plugin.should_emit(node, self)
            if status is EmitStatus.SKIP:
                continue
            context = PluginContext(indent=indent, writer=writer, emitter=self)
            if status is EmitStatus.EMIT:
                plugin.emit_node(node, context)
            else:
                self._plugins.make_mut(index).emit_node_mut(node, context)
            return True
        return False

    def walk(self, document: Iterable[Node], writer: Writer) -> None:
        """Emit ``document`` in the current scope without resetting anything."""
        for node in document:
            name = node.name

            if name.startswith(VARIABLE_SIGIL) and node.has(0):
                self.vars.insert(name[len(VARIABLE_SIGIL):], self.vars.expand_value(node.get(0)))
                continue

            indent = self.indent_for(node)

            if name in (RAW_NODE, TEXT_NODE, LEGACY_TEXT_NODE) and node.has(0):
                if name == LEGACY_TEXT_NODE:
                    _warn_legacy_text()
                text = self.vars.expand_value(node.get(0))
                self.emit_text_node(indent, text, writer, escape=name != RAW_NODE)
                continue

            if self._call_plugin(node, indent, writer):
                continue

            self.emit_tag(node, name, indent, writer)

    def emit(self, document: Iterable[Node], writer: Writer, filename: str | None = None) -> None:
        """Emit ``document`` as a top-level build.

        The dependency graph and plugin state are reset before the build and
        variables are cleared after it, so the emitter can be reused.

        Raises:
            HtmetaError: On any user, syntax or scripting error. The build is
                abandoned; ``writer`` may hold partial output.
        """
        start = time.perf_counter()
        self.dependencies.clear()
        self._plugins.reset()
        self.filename = filename
        self._stack = (filename,) if filename else ()
        self.template_stack = ()
        try:
            self.walk(document, writer)
        finally:
            self.vars.clear()
        logger.debug(
            f"Built {filename or '<document>'} in {(time.perf_counter() - start) * 1000:.2f}ms "
            f"({len(self.dependencies.files())} dependencies)"
        )

    def render(self, document: Iterable[Node], filename: str | None = None) -> str:
        """Emit ``document`` into a string."""
        buffer = StringIO()
        self.emit(document, buffer, filename=filename)
        return buffer.getvalue()

    def __repr__(self) -> str:
        return (
            f"<HtmlEmitter level={self.current_level} indent={self.config.indent} "
            f"plugins={len(self._plugins)}>"
        )


def render_string(
    source: str,
    builder: EmitterBuilder | None = None,
    filename: str | None = None,
) -> str:
    """Parse ``source`` and render it with a fresh emitter from ``builder``."""
    from htmeta.parser import parse

    emitter = (builder or EmitterBuilder()).build()
    return emitter.render(parse(source, filename), filename=filename)
