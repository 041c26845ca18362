"""htmeta: write HTML as KDL, with variables, templates and imports.

Quickstart:
    >>> from htmeta import EmitterBuilder, TemplatePlugin, parse
    >>> builder = EmitterBuilder().minify().add_plugin(TemplatePlugin())
    >>> builder.build().render(parse('''
    ...     @template greet { @params name="World"; p "Hello, $name!" }
    ...     @greet
    ...     @greet name="htmeta"
    ... '''))
    '<p>Hello, World!</p><p>Hello, htmeta!</p>'

Architecture:
Source → Lexer → Parser → Node tree → HtmlEmitter (+ plugins) → HTML

Pipeline stages:
1. **Lexer / Parser**: read KDL into an immutable tree of ``Node`` objects
2. **HtmlEmitter**: walk the tree, binding ``$variables``, writing text
   nodes and elements, and handing ``@commands`` to plugins
3. **TemplatePlugin**: templates, ``@import`` / ``@include``, ``@for`` loops

Scoping:
Every nesting level, template call and loop iteration gets its own scope.
Scopes are copy-on-write forks of their parent, so bindings and template
registrations never leak outwards and forking costs nothing until written.

Undefined variables expand to an empty string.

"""

from htmeta.emitter import (
    DependencyGraph,
    EmitterBuilder,
    EmitterConfig,
    HtmlEmitter,
    render_string,
)
from htmeta.environment import (
    ChoiceLoader,
    DictLoader,
    ErrorCode,
    FileSystemLoader,
    HtmetaError,
    ScriptingError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    UserError,
    Vars,
)
from htmeta.nodes import Document, Entry, Node
from htmeta.parser import ParseError, parse
from htmeta.plugins import EmitStatus, Plugin, PluginContext
from htmeta.plugins.template import TemplatePlugin
from htmeta.scripting import ScriptEngine

__version__ = "0.3.0"

__all__ = [
    "ChoiceLoader",
    "DependencyGraph",
    "DictLoader",
    "Document",
    "EmitStatus",
    "EmitterBuilder",
    "EmitterConfig",
    "Entry",
    "ErrorCode",
    "FileSystemLoader",
    "HtmetaError",
    "HtmlEmitter",
    "Node",
    "ParseError",
    "Plugin",
    "PluginContext",
    "ScriptEngine",
    "ScriptingError",
    "TemplateNotFoundError",
    "TemplatePlugin",
    "TemplateSyntaxError",
    "UserError",
    "Vars",
    "__version__",
    "parse",
    "render_string",
]
