"""The htmeta emission engine."""

from htmeta.emitter.config import EmitterBuilder, EmitterConfig
from htmeta.emitter.core import HtmlEmitter, render_string
from htmeta.emitter.dependencies import DependencyGraph
from htmeta.emitter.tags import VOID_TAGS, is_void

__all__ = [
    "VOID_TAGS",
    "DependencyGraph",
    "EmitterBuilder",
    "EmitterConfig",
    "HtmlEmitter",
    "is_void",
    "render_string",
]
