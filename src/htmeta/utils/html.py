"""HTML escaping and output helpers.

Escaping is single-pass via ``str.translate()``.
"""

from __future__ import annotations

_TEXT_ESCAPE_TABLE = str.maketrans({"&": "&amp;", "<": "&lt;", ">": "&gt;"})
_ATTR_ESCAPE_TABLE = str.maketrans({"&": "&amp;", '"': "&quot;"})


def html_escape(text: str) -> str:
    """Escape text content (``&``, ``<`` and ``>``).

    Example:
        >>> html_escape("a < b & c")
        'a &lt; b &amp; c'
    """
    return text.translate(_TEXT_ESCAPE_TABLE)


def attr_escape(value: str) -> str:
    """Escape a value for use inside a double-quoted attribute."""
    return value.translate(_ATTR_ESCAPE_TABLE)


class NullWriter:
    """A writer that discards everything, like ``/dev/null``.

    Used to run a document for its side effects (template registration)
    without emitting it.
    """

    __slots__ = ()

    def write(self, text: str) -> int:
        return len(text)

    def flush(self) -> None:
        pass
