"""Variables, loaders and errors shared by the emitter and its plugins."""

from htmeta.environment.exceptions import (
    ErrorCode,
    HtmetaError,
    ScriptFailure,
    ScriptingError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    UserError,
)
from htmeta.environment.loaders import (
    ChoiceLoader,
    DictLoader,
    FileSystemLoader,
    Loader,
    resolve_path,
)
from htmeta.environment.vars import Vars, stringify

__all__ = [
    "ChoiceLoader",
    "DictLoader",
    "ErrorCode",
    "FileSystemLoader",
    "HtmetaError",
    "Loader",
    "ScriptFailure",
    "ScriptingError",
    "TemplateNotFoundError",
    "TemplateSyntaxError",
    "UserError",
    "Vars",
    "resolve_path",
    "stringify",
]
