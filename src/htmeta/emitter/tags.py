"""Plain HTML element rendering.

Almost every node of a document ends up here: anything that is not a
variable binding, a text node or a plugin command is written as an element.

Rules:
- Void elements (``br``, ``img``, ``!DOCTYPE``...) never get a closing tag
  and cannot have children.
- A trailing positional entry on a non-void node is its inline text, unless
  the node has a children block, in which case it is an error.
- Keyed entries become ``key="value"`` attributes and are dropped when their
  expanded value is empty. Positional entries and fragments are written as-is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from htmeta.environment.exceptions import ErrorCode
from htmeta.utils.html import attr_escape, html_escape

if TYPE_CHECKING:
    from htmeta._types import Writer
    from htmeta.emitter.core import HtmlEmitter
    from htmeta.environment.vars import Vars
    from htmeta.nodes import Entry, Node

VOID_TAGS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
        # Not an element, but written exactly like one.
        "!doctype",
    }
)


def is_void(name: str) -> bool:
    return name.lower() in VOID_TAGS


def split_inline_text(node: Node, void: bool) -> tuple[list[Entry], Entry | None]:
    """Separate a node's attribute entries from its inline text entry.

    Returns:
        (attribute entries in source order, inline text entry or None)
    """
    entries = list(node.entries)
    if void:
        return entries, None
    for index in range(len(entries) - 1, -1, -1):
        entry = entries[index]
        if entry.fragment:
            continue
        if entry.is_positional:
            return entries[:index] + entries[index + 1 :], entry
        break
    return entries, None


def format_attributes(entries: list[Entry], variables: Vars) -> str:
    """Render entries as an attribute string with a leading space per attribute."""
    parts: list[str] = []
    for entry in entries:
        # Fragments were expanded when they were built.
        value = str(entry.value) if entry.fragment else variables.expand_value(entry.value)
        if not value:
            continue
        if entry.name is None or entry.fragment:
            parts.append(f" {value}")
        else:
            parts.append(f' {entry.name}="{attr_escape(value)}"')
    return "".join(parts)


def emit_tag(emitter: HtmlEmitter, node: Node, name: str, indent: str, writer: Writer) -> None:
    """Write ``node`` as the element ``name``, children included."""
    void = is_void(name)
    if void and node.children is not None:
        raise emitter.user_error(
            f"{name}: Void elements cannot have children!",
            node,
            code=ErrorCode.VOID_WITH_CHILDREN,
            suggestion=f"Move the children of '{name}' next to it instead of inside it",
        )

    attributes, inline = split_inline_text(node, void)
    if inline is not None and node.children is not None:
        raise emitter.user_error(
            f"{name}: Elements cannot have both inline text and children!",
            node,
            code=ErrorCode.TEXT_AND_CHILDREN,
            suggestion="Move the text into a `text` child node",
        )

    writer.write(f"{indent}<{name}{format_attributes(attributes, emitter.vars)}>")
    if void:
        emitter.write_line(writer)
        return

    if inline is not None:
        writer.write(html_escape(emitter.vars.expand_value(inline.value)))
    elif node.children is not None:
        emitter.write_line(writer)
        emitter.subemitter().walk(node.children, writer)
        writer.write(indent)
    writer.write(f"</{name}>")
    emitter.write_line(writer)
