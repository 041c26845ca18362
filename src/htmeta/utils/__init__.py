"""Shared helpers for htmeta."""

from htmeta.utils.html import NullWriter, attr_escape, html_escape

__all__ = ["NullWriter", "attr_escape", "html_escape"]
