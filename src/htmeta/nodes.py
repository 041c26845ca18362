"""Source tree nodes for htmeta.

A document is an ordered tuple of sibling ``Node`` objects. Each node has a
name, an ordered list of entries (positional or keyed scalar values) and an
optional children block.

Nodes are immutable. Every transformation (template splicing, props
forwarding) builds new nodes with ``dataclasses.replace`` and leaves the
parsed tree untouched.

"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, replace
from typing import Union

Scalar = Union[str, int, float, bool, None]

COMMAND_PREFIX = "@"
VARIABLE_SIGIL = "$"


@dataclass(frozen=True, slots=True)
class Entry:
    """An attribute-like value on a node.

    Attributes:
        value: The scalar value.
        name: Property name, or None for a positional argument.
        fragment: True for a pre-formatted attribute fragment injected while
            instantiating a template. Fragments are written verbatim into the
            attribute list and are never read as inline text or as arguments.
    """

    value: Scalar
    name: str | None = None
    fragment: bool = False

    @property
    def is_positional(self) -> bool:
        return self.name is None


@dataclass(frozen=True, slots=True)
class Node:
    """One element of the source tree.

    Attributes:
        name: Node name (tag name, command such as ``@for``, ``$var``...).
        entries: Ordered positional and keyed entries.
        children: Child nodes, or None when the node has no children block.
            An empty block (``{}``) is an empty tuple, not None.
        lineno: 1-based source line, 0 when the node was built in code.
        leading: Whitespace preceding the node on its source line, used by
            the "follow source formatting" mode.
    """

    name: str
    entries: tuple[Entry, ...] = ()
    children: tuple[Node, ...] | None = None
    lineno: int = 0
    leading: str = ""

    def args(self) -> tuple[Scalar, ...]:
        """Positional argument values, in order (fragments excluded)."""
        return tuple(e.value for e in self.entries if e.is_positional and not e.fragment)

    def props(self) -> dict[str, Scalar]:
        """Keyed entries as a dict. A repeated key keeps its last value."""
        return {e.name: e.value for e in self.entries if e.name is not None}

    def get(self, key: int | str, default: Scalar = None) -> Scalar:
        """Look up a positional argument by index or a property by name."""
        if isinstance(key, int):
            args = self.args()
            return args[key] if -len(args) <= key < len(args) else default
        return self.props().get(key, default)

    def has(self, key: int | str) -> bool:
        if isinstance(key, int):
            return -len(self.args()) <= key < len(self.args())
        return any(e.name == key for e in self.entries)

    @property
    def command_name(self) -> str | None:
        """Name without the ``@`` prefix, or None if this is not a command."""
        if self.name.startswith(COMMAND_PREFIX):
            return self.name[len(COMMAND_PREFIX):]
        return None

    def is_command(self, name: str) -> bool:
        return self.command_name == name

    def iter_children(self) -> Iterator[Node]:
        return iter(self.children or ())

    def with_entries(self, entries: Iterable[Entry]) -> Node:
        return replace(self, entries=tuple(entries))

    def with_children(self, children: Iterable[Node] | None) -> Node:
        return replace(self, children=None if children is None else tuple(children))


Document = tuple[Node, ...]


def find(node: Node, predicate: Callable[[Node], bool]) -> bool:
    """Return True if ``node`` or any of its descendants matches ``predicate``."""
    if predicate(node):
        return True
    return any(find(child, predicate) for child in node.iter_children())


def flat_map_children(node: Node, fn: Callable[[Node], Iterable[Node]]) -> Node:
    """Rewrite every children block below ``node``, bottom-up.

    Each child is replaced by the nodes ``fn`` returns for it, after its own
    subtree has been rewritten. Nodes produced by ``fn`` are not visited
    again, so substituted content is never rewritten twice.

    Returns:
        A new node; ``node`` itself is left untouched.
    """
    if node.children is None:
        return node
    rewritten: list[Node] = []
    for child in node.children:
        rewritten.extend(fn(flat_map_children(child, fn)))
    return replace(node, children=tuple(rewritten))
