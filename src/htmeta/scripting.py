"""Script functions callable from documents.

``@for word in @lorem 5 { ... }`` iterates over the result of the ``lorem``
function. Functions are plain Python callables registered on a
``ScriptEngine``; a list (or tuple) result is iterated, anything else is
treated as a single value.

Registration is copy-on-write: engines created with ``fork()`` share the
registry until one of them registers a function.

Example:
    >>> engine = ScriptEngine()
    >>> engine.register("shout", lambda text: text.upper())
    >>> engine.call("shout", ["hi"], source="@shout hi")
    'HI'
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from difflib import get_close_matches
from itertools import cycle, islice
from typing import Any

from htmeta.environment.exceptions import ScriptFailure, ScriptingError

LOREM_IPSUM = (
    "lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua ut enim ad minim veniam quis "
    "nostrud exercitation ullamco laboris nisi ut aliquip ex ea commodo consequat "
    "duis aute irure dolor in reprehenderit in voluptate velit esse cillum dolore "
    "eu fugiat nulla pariatur excepteur sint occaecat cupidatat non proident sunt "
    "in culpa qui officia deserunt mollit anim id est laborum"
).split()


def lorem(count: int) -> list[str]:
    """The first ``abs(count)`` words of lorem ipsum, cycling when needed."""
    return list(islice(cycle(LOREM_IPSUM), abs(int(count))))


def words(text: str) -> list[str]:
    """Split ``text`` on whitespace."""
    return str(text).split()


BUILTINS: dict[str, Callable[..., Any]] = {
    "lorem": lorem,
    "words": words,
}


class ScriptEngine:
    """Registry of functions that documents can call."""

    __slots__ = ("_functions",)

    def __init__(self, functions: dict[str, Callable[..., Any]] | None = None, builtins: bool = True):
        self._functions: dict[str, Callable[..., Any]] = dict(BUILTINS) if builtins else {}
        if functions:
            self._functions.update(functions)

    def fork(self) -> ScriptEngine:
        child = ScriptEngine.__new__(ScriptEngine)
        child._functions = self._functions
        return child

    def register(self, name: str, func: Callable[..., Any]) -> None:
        new = self._functions.copy()
        new[name] = func
        self._functions = new

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def names(self) -> list[str]:
        return sorted(self._functions)

    def call(self, name: str, args: Iterable[Any], source: str) -> Any:
        """Call the function ``name``.

        Args:
            name: Registered function name
            args: Positional arguments
            source: Text of the call, reported with failures

        Raises:
            ScriptingError: If the function is unknown or raises
        """
        func = self._functions.get(name)
        if func is None:
            message = f"Function not found: {name}"
            matches = get_close_matches(name, self._functions, n=1, cutoff=0.6)
            if matches:
                message += f" (did you mean '{matches[0]}'?)"
            raise ScriptingError.single(message, source)
        try:
            return func(*args)
        except ScriptingError:
            raise
        except Exception as e:
            raise ScriptingError([ScriptFailure(f"{type(e).__name__}: {e}", source)]) from e

    def call_all(self, calls: Iterable[tuple[str, Iterable[Any], str]]) -> list[Any]:
        """Run several calls, reporting every failure at once.

        Raises:
            ScriptingError: Holding one failure per failed call
        """
        results: list[Any] = []
        error: ScriptingError | None = None
        for name, args, source in calls:
            try:
                results.append(self.call(name, args, source))
            except ScriptingError as e:
                error = e if error is None else error.merge(e)
        if error is not None:
            raise error
        return results
