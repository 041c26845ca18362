"""Shared typing helpers for htmeta."""

from __future__ import annotations

from typing import Protocol


class Writer(Protocol):
    """Anything HTML can be written to: files, ``sys.stdout``, ``io.StringIO``."""

    def write(self, text: str, /) -> object: ...
