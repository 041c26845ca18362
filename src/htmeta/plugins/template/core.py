"""TemplatePlugin: the ``@`` commands.

Commands:
    @template name="card" { @params title; div { h2 "$title"; @children } }
    @card title="Hi" { p "body" }
    @include "parts/header.kdl"
    @import "parts/components.kdl"
    @for item in a b c { li "$item" }
    @debug

``@template``, ``@include`` and ``@import`` change the template registry and
are dispatched as mutations. Template calls, ``@for`` and ``@debug`` only
read it.

Paths are resolved against the directory of the file containing the command
and loaded through the plugin's loader. Every file pulled in is recorded in
the emitter's dependency graph.
"""

from __future__ import annotations

import logging
from difflib import get_close_matches
from typing import TYPE_CHECKING

from htmeta.environment.exceptions import ErrorCode, UserError
from htmeta.environment.loaders import FileSystemLoader, resolve_path
from htmeta.nodes import Document, Node
from htmeta.parser import parse
from htmeta.plugins.base import EmitStatus, Plugin, PluginContext
from htmeta.plugins.template.instantiation import instantiate
from htmeta.plugins.template.loops import emit_debug, emit_for
from htmeta.plugins.template.model import CHILDREN, PARAMS, Template
from htmeta.scripting import ScriptEngine
from htmeta.utils.html import NullWriter

if TYPE_CHECKING:
    from htmeta.emitter.core import HtmlEmitter
    from htmeta.environment.loaders import Loader

logger = logging.getLogger(__name__)

TEMPLATE = "template"
IMPORT = "import"
INCLUDE = "include"
FOR = "for"
DEBUG = "debug"

MUTATING_COMMANDS = frozenset({TEMPLATE, IMPORT, INCLUDE})
BUILTIN_COMMANDS = frozenset({TEMPLATE, IMPORT, INCLUDE, FOR, DEBUG})


class TemplatePlugin(Plugin):
    """Templates, imports, includes and loops.

    Args:
        loader: Where ``@import`` / ``@include`` read files from.
            Defaults to the working directory.
        scripts: Functions available to ``@for`` loops. Defaults to an
            engine with the builtin functions.
    """

    def __init__(self, loader: Loader | None = None, scripts: ScriptEngine | None = None):
        self.templates: dict[str, Template] = {}
        self.loader: Loader = loader or FileSystemLoader()
        self.scripts = scripts or ScriptEngine()

    def clone(self) -> TemplatePlugin:
        twin = super().clone()
        twin.templates = dict(self.templates)
        return twin

    def should_emit(self, node: Node, emitter: HtmlEmitter) -> EmitStatus:
        command = node.command_name
        if command is None:
            return EmitStatus.SKIP
        if command in MUTATING_COMMANDS:
            return EmitStatus.EMIT_MUT
        return EmitStatus.EMIT

    def emit_node(self, node: Node, context: PluginContext) -> None:
        command = node.command_name
        if command == FOR:
            emit_for(node, context, self.scripts)
        elif command == DEBUG:
            emit_debug(node, context)
        elif command in (PARAMS, CHILDREN):
            raise context.emitter.user_error(
                f"@{command} can only be used inside a @template body",
                node,
            )
        elif command in self.templates:
            instantiate(self.templates[command], node, context)
        else:
            raise self._unknown_template(command or node.name, node, context.emitter)

    def emit_node_mut(self, node: Node, context: PluginContext) -> None:
        command = node.command_name
        if command == TEMPLATE:
            self.register(node, context.emitter)
        elif command == INCLUDE:
            self.include(node, context)
        elif command == IMPORT:
            self.import_definitions(node, context)
        else:
            self.emit_node(node, context)

    def _unknown_template(self, name: str, node: Node, emitter: HtmlEmitter):
        candidates = sorted(BUILTIN_COMMANDS | self.templates.keys())
        matches = get_close_matches(name, candidates, n=1, cutoff=0.6)
        return emitter.user_error(
            f"{name}: Unknown template or command!",
            node,
            code=ErrorCode.UNKNOWN_TEMPLATE,
            suggestion=f"Did you mean '@{matches[0]}'?" if matches else None,
        )

    # Registration

    def register(self, node: Node, emitter: HtmlEmitter) -> Template:
        """Register the template defined by ``node``, replacing any previous one."""
        raw_name = node.get("name", node.get(0))
        if raw_name is None:
            raise emitter.user_error(
                "template: Template tags must have a `name` parameter!",
                node,
                code=ErrorCode.MISSING_TEMPLATE_NAME,
                suggestion='Write @template name="my-template" { ... }',
            )
        if node.children is None:
            raise emitter.user_error(
                "template: Template tags must have children!",
                node,
                code=ErrorCode.MISSING_TEMPLATE_BODY,
            )

        name = emitter.vars.expand_value(raw_name)
        template = Template.from_node(name, node)
        self.templates[name] = template
        logger.debug(
            f"Registered template '{name}' "
            f"(params: {[p.name for p in template.params]}, children: {template.uses_children})"
        )
        return template

    # Files

    def _load(self, node: Node, emitter: HtmlEmitter, command: str) -> tuple[str, Document]:
        target = node.get(0)
        if not isinstance(target, str):
            raise emitter.user_error(
                f"{command}: Expected a path as the first argument!",
                node,
                suggestion=f'Write @{command} "path/to/file.kdl"',
            )
        path = resolve_path(emitter.filename, emitter.vars.expand_string(target))

        if path in emitter.file_stack:
            chain = " -> ".join([*emitter.file_stack, path])
            raise emitter.user_error(
                f"{command}: Circular import detected: {chain}",
                node,
                code=ErrorCode.CIRCULAR_IMPORT,
            )
        if len(emitter.file_stack) >= emitter.config.max_depth:
            raise emitter.user_error(
                f"{command}: Maximum nesting depth ({emitter.config.max_depth}) exceeded "
                f"while loading '{path}'",
                node,
                code=ErrorCode.IMPORT_DEPTH,
            )

        try:
            source, _ = self.loader.get_source(path)
        except UserError as e:
            raise type(e)(
                f"{command}: {e.message}",
                code=e.code,
                filename=emitter.filename,
                lineno=node.lineno or None,
                suggestion=e.suggestion,
            ) from e

        emitter.dependencies.add(emitter.filename, path)
        logger.debug(f"{command}: {emitter.filename or '<document>'} -> {path}")
        return path, parse(source, path)

    def include(self, node: Node, context: PluginContext) -> None:
        """Emit another file in place, in the current scope."""
        emitter = context.emitter
        path, document = self._load(node, emitter, INCLUDE)
        with emitter.entering(path):
            emitter.walk(document, context.writer)

    def import_definitions(self, node: Node, context: PluginContext) -> None:
        """Run the top-level commands of another file without emitting anything.

        Output and ``$var`` bindings of the file are discarded. A top-level
        ``@include`` in it is read the same way, for its definitions only.
        """
        emitter = context.emitter
        path, document = self._load(node, emitter, node.command_name or IMPORT)
        sink = PluginContext(indent="", writer=NullWriter(), emitter=emitter)
        with emitter.entering(path):
            for child in document:
                status = self.should_emit(child, emitter)
                if status is EmitStatus.SKIP:
                    continue
                if child.is_command(INCLUDE):
                    self.import_definitions(child, sink)
                elif status is EmitStatus.EMIT_MUT:
                    self.emit_node_mut(child, sink)
                else:
                    self.emit_node(child, sink)
