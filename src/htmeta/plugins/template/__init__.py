"""Templates, imports, includes and loops for htmeta."""

from htmeta.plugins.template.core import TemplatePlugin
from htmeta.plugins.template.model import Param, Template

__all__ = ["Param", "Template", "TemplatePlugin"]
