"""Template instantiation.

Calling ``@card "a" title="T" class="wide" { p "body" }`` runs, in order:

1. Validation: children are only accepted by templates whose body uses
   ``@children``, and the call itself may not contain ``@children``
   (splicing it would never terminate).
2. Splicing: a copy of the body has every ``@children`` node replaced by the
   call's children. Keyed entries on the ``@children`` node are added to each
   spliced child that does not set them.
3. Binding, in a fork of the caller's scope: parameter defaults first, then
   positional call entries as ``$0``, ``$1``... and keyed entries by name.
   All values are expanded in the caller's scope.
4. Props: every keyed call entry that is not a parameter is joined into
   ``$props``, empty values included (``class=""``). When the body is a
   single plain element, props are also appended to its attributes.
5. The body is walked at the caller's nesting level. Template calls may
   nest at most ``max_depth`` deep, which stops self-recursive templates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from htmeta.emitter.core import LEGACY_TEXT_NODE, RAW_NODE, TEXT_NODE
from htmeta.environment.exceptions import ErrorCode
from htmeta.nodes import COMMAND_PREFIX, VARIABLE_SIGIL, Entry, Node, find, flat_map_children
from htmeta.plugins.template.model import CHILDREN
from htmeta.utils.html import attr_escape

if TYPE_CHECKING:
    from htmeta.emitter.core import HtmlEmitter
    from htmeta.environment.vars import Vars
    from htmeta.plugins.base import PluginContext
    from htmeta.plugins.template.model import Template

PROPS = "props"


def splice_children(template: Template, call_children: tuple[Node, ...]) -> tuple[Node, ...]:
    """Return the template body with every ``@children`` replaced by ``call_children``."""

    def _replace(node: Node) -> list[Node]:
        if not node.is_command(CHILDREN):
            return [node]
        inherited = [entry for entry in node.entries if entry.name is not None]
        spliced = []
        for child in call_children:
            missing = [entry for entry in inherited if not child.has(entry.name)]
            spliced.append(child.with_entries([*missing, *child.entries]) if missing else child)
        return spliced

    return flat_map_children(template.node, _replace).children or ()


def bind_arguments(template: Template, call: Node, caller: Vars, scope: Vars) -> None:
    """Bind parameter defaults, then the call's entries, into ``scope``."""
    scope.update((name, caller.expand_value(default)) for name, default in template.defaults())

    bindings: list[tuple[str, str]] = []
    position = 0
    for entry in call.entries:
        if entry.fragment:
            continue
        if entry.name is None:
            bindings.append((str(position), caller.expand_value(entry.value)))
            position += 1
        else:
            bindings.append((entry.name, caller.expand_value(entry.value)))
    scope.update(bindings)


def collect_props(template: Template, call: Node, caller: Vars) -> str:
    """Format the keyed call entries that are not parameters as attributes."""
    props = []
    for entry in call.entries:
        if entry.name is None or template.is_param(entry.name):
            continue
        value = caller.expand_value(entry.value)
        props.append(f'{entry.name}="{attr_escape(value)}"')
    return " ".join(props)


def is_plain_element(node: Node) -> bool:
    name = node.name
    if name.startswith((COMMAND_PREFIX, VARIABLE_SIGIL)):
        return False
    return name not in (RAW_NODE, TEXT_NODE, LEGACY_TEXT_NODE)


def append_props(body: tuple[Node, ...], props: str) -> tuple[Node, ...]:
    """Add ``props`` to the attributes of a single-element body.

    The fragment goes before a trailing inline text entry so the text stays
    inline text. Bodies with several top-level nodes are returned unchanged.
    """
    if not props or len(body) != 1 or not is_plain_element(body[0]):
        return body
    node = body[0]
    entries = list(node.entries)
    fragment = Entry(props, fragment=True)
    position = len(entries)
    for index in range(len(entries) - 1, -1, -1):
        if entries[index].fragment:
            continue
        if entries[index].is_positional:
            position = index
        break
    entries.insert(position, fragment)
    return (node.with_entries(entries),)


def check_call_depth(template: Template, call: Node, emitter: HtmlEmitter) -> None:
    """Reject a call nested deeper than ``max_depth`` template calls.

    A template that calls itself, directly or through other templates, ends
    here. Depth is counted instead of repeated names: a call spliced into
    the children of the same template is a normal nesting.
    """
    stack = emitter.template_stack
    limit = emitter.config.max_depth
    if len(stack) < limit:
        return
    chain = [*stack[-4:], template.name]
    raise emitter.user_error(
        f"{template.name}: Maximum template nesting depth ({limit}) exceeded: "
        f"{'... -> ' if len(stack) > 4 else ''}{' -> '.join(chain)}",
        call,
        code=ErrorCode.RECURSIVE_TEMPLATE,
        suggestion=f"Check that '{template.name}' does not call itself",
    )


def instantiate(template: Template, call: Node, context: PluginContext) -> None:
    """Emit ``template`` for the call site ``call``."""
    emitter = context.emitter
    name = template.name

    if call.children is not None and not template.uses_children:
        raise emitter.user_error(
            f"{name}: Template was called with children but does not support it!",
            call,
            code=ErrorCode.UNSUPPORTED_CHILDREN,
            suggestion=f"Add an @children node to the body of '{name}'",
        )
    if find(call, lambda n: n.is_command(CHILDREN)):
        raise emitter.user_error(
            f"{name}: Template call contains @children. Infinite recursion detected.",
            call,
            code=ErrorCode.RECURSIVE_CHILDREN,
        )
    check_call_depth(template, call, emitter)

    body = splice_children(template, call.children or ())

    scope = emitter.fork()
    scope.template_stack = (*emitter.template_stack, name)
    bind_arguments(template, call, emitter.vars, scope.vars)
    props = collect_props(template, call, emitter.vars)
    scope.vars.insert(PROPS, props)

    scope.walk(append_props(body, props), context.writer)
