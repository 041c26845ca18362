"""Registered templates."""

from __future__ import annotations

from dataclasses import dataclass

from htmeta.nodes import Node, Scalar, find

PARAMS = "params"
CHILDREN = "children"


@dataclass(frozen=True, slots=True)
class Param:
    """A template parameter. ``has_default`` is False for bare names."""

    name: str
    default: Scalar = None
    has_default: bool = False


@dataclass(frozen=True, slots=True)
class Template:
    """A named, parameterized subtree.

    Attributes:
        name: Name the template is called by (``@name``).
        node: The defining ``@template`` node with its ``@params`` child removed.
            Its children are the template body.
        uses_children: True when the body contains ``@children`` anywhere.
        params: Declared parameters, in declaration order.
    """

    name: str
    node: Node
    uses_children: bool
    params: tuple[Param, ...] = ()

    @property
    def body(self) -> tuple[Node, ...]:
        return self.node.children or ()

    def is_param(self, name: str) -> bool:
        return any(param.name == name for param in self.params)

    def defaults(self) -> list[tuple[str, Scalar]]:
        return [(param.name, param.default) for param in self.params if param.has_default]

    @classmethod
    def from_node(cls, name: str, node: Node) -> Template:
        """Capture a ``@template`` node.

        The first ``@params`` child declares the parameters: positional
        string entries are parameters without a default, keyed entries
        parameters with one.
        """
        body: list[Node] = []
        params: list[Param] = []
        declared = False
        for child in node.iter_children():
            if not declared and child.is_command(PARAMS):
                declared = True
                for entry in child.entries:
                    if entry.name is not None:
                        params.append(Param(entry.name, entry.value, has_default=True))
                    elif isinstance(entry.value, str):
                        params.append(Param(entry.value))
                continue
            body.append(child)

        captured = node.with_children(body)
        return cls(
            name=name,
            node=captured,
            uses_children=find(captured, lambda n: n.is_command(CHILDREN)),
            params=tuple(params),
        )
