"""``@for`` loops and the ``@debug`` dump.

Loop sources:
    @for x in a b c { ... }           literal values
    @for i in @range 3 { ... }        1 2 3
    @for i in @range 2 5 { ... }      2 3 4 5
    @for i in @range 0 5 20 { ... }   0 5 10 15 20
    @for w in @lorem 4 { ... }        any function of the script engine

Each iteration walks the body in a fresh fork of the caller's scope, so the
loop variable and anything bound in the body stay inside the loop.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from htmeta.environment.exceptions import ErrorCode
from htmeta.environment.vars import stringify
from htmeta.nodes import COMMAND_PREFIX, VARIABLE_SIGIL, Node, Scalar
from htmeta.utils.html import html_escape

if TYPE_CHECKING:
    from htmeta.emitter.core import HtmlEmitter
    from htmeta.plugins.base import PluginContext
    from htmeta.scripting import ScriptEngine

RANGE = "@range"
FOR_SYNTAX = "@for name in values... { body }"


def _malformed(emitter: HtmlEmitter, node: Node, message: str):
    return emitter.user_error(
        f"for: {message}",
        node,
        code=ErrorCode.MALFORMED_FOR,
        suggestion=f"Expected `{FOR_SYNTAX}`",
    )


def _range_bound(emitter: HtmlEmitter, node: Node, value: Scalar) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        expanded = emitter.vars.expand_string(value)
        try:
            return int(expanded)
        except ValueError:
            pass
        raise _malformed(emitter, node, f"@range bounds must be integers, got '{expanded}'")
    raise _malformed(emitter, node, f"@range bounds must be integers, got {stringify(value)}")


def range_values(emitter: HtmlEmitter, node: Node, args: tuple[Scalar, ...]) -> Iterator[str]:
    """Inclusive integer range: ``end``, ``start end`` or ``start step end``."""
    bounds = [_range_bound(emitter, node, arg) for arg in args]
    start, step = 1, 1
    if len(bounds) == 1:
        (end,) = bounds
    elif len(bounds) == 2:
        start, end = bounds
    elif len(bounds) == 3:
        start, step, end = bounds
    else:
        raise _malformed(emitter, node, f"@range takes 1 to 3 arguments, got {len(bounds)}")
    if step <= 0:
        raise _malformed(emitter, node, f"@range step must be positive, got {step}")
    return (str(i) for i in range(start, end + 1, step))


def script_values(
    emitter: HtmlEmitter,
    node: Node,
    scripts: ScriptEngine,
    function: str,
    args: tuple[Scalar, ...],
) -> list[str]:
    call_args: list[Any] = [
        emitter.vars.expand_string(arg) if isinstance(arg, str) else arg for arg in args
    ]
    source = " ".join([function, *(stringify(arg) for arg in args)])
    result = scripts.call(function[len(COMMAND_PREFIX):], call_args, source)
    if isinstance(result, (list, tuple)):
        return [stringify(item) for item in result]
    return [stringify(result)]


def loop_values(
    emitter: HtmlEmitter,
    node: Node,
    values: tuple[Scalar, ...],
    scripts: ScriptEngine,
) -> Iterator[str] | list[str]:
    if values and isinstance(values[0], str) and values[0].startswith(COMMAND_PREFIX):
        if values[0] == RANGE:
            return range_values(emitter, node, values[1:])
        return script_values(emitter, node, scripts, values[0], values[1:])
    return [emitter.vars.expand_value(value) for value in values]


def emit_for(node: Node, context: PluginContext, scripts: ScriptEngine) -> None:
    emitter = context.emitter
    args = node.args()
    if not args or not isinstance(args[0], str) or not args[0].lstrip(VARIABLE_SIGIL):
        raise _malformed(emitter, node, "missing loop variable name")
    if len(args) < 2 or args[1] != "in":
        raise _malformed(emitter, node, "expected `in` after the loop variable")
    if node.children is None:
        raise _malformed(emitter, node, "missing loop body")

    name = args[0].lstrip(VARIABLE_SIGIL)
    for value in loop_values(emitter, node, args[2:], scripts):
        scope = emitter.fork()
        scope.vars.insert(name, value)
        scope.walk(node.children, context.writer)


def emit_debug(node: Node, context: PluginContext) -> None:
    """Dump the variables of the current scope."""
    emitter = context.emitter
    listing = "\n".join(
        f"{html_escape(name)} = {html_escape(value)}" for name, value in sorted(emitter.vars.items())
    )
    context.writer.write(f"{context.indent}<pre><code>{listing}</code></pre>")
    emitter.write_line(context.writer)
