"""Scoped variables for the htmeta emitter.

``Vars`` maps variable names to text. Each nesting level and each template
instantiation works on a fork of its parent's variables, so bindings made in
a child scope never reach the parent.

Forking is O(1): both handles keep pointing at the same dict until one of
them writes, at which point the writer copies the dict first (copy-on-write).

Interpolation:
    ``$name`` is replaced by the value of ``name``; ``$$`` is a literal ``$``.
    Unknown names expand to the empty string.

    >>> v = Vars()
    >>> v.insert("who", "World")
    >>> v.expand_string("Hello, $who! Costs $$5$missing")
    'Hello, World! Costs $5'

"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from htmeta.nodes import Scalar

_VAR_PATTERN = re.compile(r"\$(?:(\$)|(\w+))")


def stringify(value: Scalar) -> str:
    """Render a scalar the way it is written in source (``true``, ``null``...)."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


class Vars:
    """Copy-on-write mapping from variable name to text.

    Example:
        >>> parent = Vars()
        >>> parent.insert("title", "Home")
        >>> child = parent.fork()
        >>> child.insert("title", "About")
        >>> parent.get("title"), child.get("title")
        ('Home', 'About')
    """

    __slots__ = ("_map", "_owned")

    def __init__(self, initial: dict[str, str] | None = None):
        self._map: dict[str, str] = dict(initial) if initial else {}
        self._owned = True

    def fork(self) -> Vars:
        """Return a new handle sharing this one's backing dict."""
        child = Vars.__new__(Vars)
        child._map = self._map
        child._owned = False
        # The dict is shared now: whoever writes next must copy it.
        self._owned = False
        return child

    def _make_mut(self) -> dict[str, str]:
        if not self._owned:
            self._map = dict(self._map)
            self._owned = True
        return self._map

    def insert(self, name: str, value: str) -> None:
        self._make_mut()[name] = value

    def update(self, pairs: Iterable[tuple[str, str]]) -> None:
        """Insert several bindings, copying the backing dict at most once."""
        pairs = list(pairs)
        if pairs:
            self._make_mut().update(pairs)

    def get(self, name: str) -> str | None:
        return self._map.get(name)

    def clear(self) -> None:
        if self._owned:
            self._map.clear()
        else:
            self._map = {}
            self._owned = True

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self._map.items())

    def __contains__(self, name: object) -> bool:
        return name in self._map

    def __len__(self) -> int:
        return len(self._map)

    def __repr__(self) -> str:
        return f"Vars({self._map!r})"

    def expand_string(self, text: str) -> str:
        """Replace every ``$name`` in ``text``; ``$$`` becomes ``$``.

        Expanded values are not expanded again.
        """
        if "$" not in text:
            return text

        def _sub(match: re.Match[str]) -> str:
            if match.group(1):
                return "$"
            return self._map.get(match.group(2), "")

        return _VAR_PATTERN.sub(_sub, text)

    def expand_value(self, value: Scalar) -> str:
        """Stringify ``value``; strings are expanded, other scalars are not."""
        if isinstance(value, str):
            return self.expand_string(value)
        return stringify(value)
