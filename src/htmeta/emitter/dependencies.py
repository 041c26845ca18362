"""File dependency graph recorded during a build.

Every ``@import`` and ``@include`` adds an edge from the importing file to the
imported one. The graph is reset at the start of each top-level build and is
handed to the file watcher afterwards as a full replacement of its watch set.
"""

from __future__ import annotations

from collections.abc import Iterator

ROOT_DOCUMENT = "<document>"


class DependencyGraph:
    """Mapping from an importing file to the files it pulled in.

    Example:
        >>> graph = DependencyGraph()
        >>> graph.add("index.kdl", "parts/nav.kdl")
        >>> graph.add("parts/nav.kdl", "parts/link.kdl")
        >>> sorted(graph.files())
        ['parts/link.kdl', 'parts/nav.kdl']
    """

    __slots__ = ("_edges",)

    def __init__(self) -> None:
        self._edges: dict[str, set[str]] = {}

    def add(self, importer: str | None, imported: str) -> None:
        self._edges.setdefault(importer or ROOT_DOCUMENT, set()).add(imported)

    def clear(self) -> None:
        self._edges.clear()

    def dependencies_of(self, importer: str | None) -> frozenset[str]:
        """Files directly pulled in by ``importer``."""
        return frozenset(self._edges.get(importer or ROOT_DOCUMENT, ()))

    def files(self) -> set[str]:
        """Every file pulled in during the build, at any depth."""
        found: set[str] = set()
        for imported in self._edges.values():
            found.update(imported)
        return found

    def as_dict(self) -> dict[str, frozenset[str]]:
        return {importer: frozenset(imported) for importer, imported in self._edges.items()}

    def __iter__(self) -> Iterator[str]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def __repr__(self) -> str:
        return f"DependencyGraph({self.as_dict()!r})"
