"""Exceptions for the htmeta emitter.

Exception Hierarchy:
HtmetaError (base)
├── UserError                 # Malformed construct usage, aborts the build
│   └── TemplateNotFoundError # @import / @include path could not be loaded
├── TemplateSyntaxError       # Source text could not be parsed
└── ScriptingError            # One or more script function calls failed

I/O failures are not wrapped: an ``OSError`` raised by a writer or a loader
propagates to the caller unchanged. A file that cannot be decoded is a
``UserError`` with ``ErrorCode.INVALID_ENCODING``.

Every build is all-or-nothing. Any of these errors, raised at any depth,
aborts the whole build.

Example:
    ```
    H-USR-005: card: Template was called with children but does not support it!
      --> pages/index.kdl:12
      Hint: Add an @children node to the template body
    ```

"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from htmeta.environment import terminal


class ErrorCode(Enum):
    """Searchable error codes for htmeta errors.

    Format: H-{CATEGORY}-{NUMBER}
    Categories: PAR (parser), USR (user errors), TPL (file loading), SCR (scripting)
    """

    # Parser errors (H-PAR-xxx)
    UNEXPECTED_CHARACTER = "H-PAR-001"
    UNTERMINATED_STRING = "H-PAR-002"
    UNCLOSED_BLOCK = "H-PAR-003"
    INVALID_NUMBER = "H-PAR-004"
    INVALID_ESCAPE = "H-PAR-005"

    # User errors (H-USR-xxx)
    VOID_WITH_CHILDREN = "H-USR-001"
    TEXT_AND_CHILDREN = "H-USR-002"
    MISSING_TEMPLATE_NAME = "H-USR-003"
    MISSING_TEMPLATE_BODY = "H-USR-004"
    UNSUPPORTED_CHILDREN = "H-USR-005"
    RECURSIVE_CHILDREN = "H-USR-006"
    UNKNOWN_TEMPLATE = "H-USR-007"
    MALFORMED_FOR = "H-USR-008"
    IMPORT_DEPTH = "H-USR-009"
    USER_ERROR = "H-USR-010"
    CIRCULAR_IMPORT = "H-USR-011"
    RECURSIVE_TEMPLATE = "H-USR-012"

    # File loading errors (H-TPL-xxx)
    TEMPLATE_NOT_FOUND = "H-TPL-001"
    INVALID_ENCODING = "H-TPL-002"

    # Scripting errors (H-SCR-xxx)
    SCRIPT_ERROR = "H-SCR-001"

    @property
    def category(self) -> str:
        """Error category (e.g., 'parser', 'user', 'template', 'scripting')."""
        prefix = self.value.split("-")[1]
        return {
            "PAR": "parser",
            "USR": "user",
            "TPL": "template",
            "SCR": "scripting",
        }.get(prefix, "unknown")


def format_location(filename: str | None, lineno: int | None) -> str:
    """Format ``file:line`` for diagnostics, falling back to ``<document>``."""
    location = filename or "<document>"
    if lineno:
        location += f":{lineno}"
    return location


class HtmetaError(Exception):
    """Base exception for all htmeta errors.

    Enables broad exception handling around a build:

        >>> try:
        ...     emitter.emit(document, sys.stdout)
        ... except HtmetaError as e:
        ...     print(e.format_compact(), file=sys.stderr)

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format the error as a short terminal diagnostic.

        Returns:
            The message prefixed with the error code, if any.
        """
        header = str(self)
        if self.code and self.code.value not in header:
            return terminal.format_error_header(self.code.value, header)
        return header


class UserError(HtmetaError):
    """A construct was used incorrectly in the source document.

    Carries a human-readable message plus optional source location and a
    suggestion for fixing it.

    Attributes:
        message: Error description
        filename: File the offending node came from
        lineno: Line of the offending node
        suggestion: Actionable fix suggestion
    """

    code: ErrorCode | None = ErrorCode.USER_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        filename: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        self.filename = filename
        self.lineno = lineno
        self.suggestion = suggestion
        super().__init__(message)

    def format_compact(self) -> str:
        parts = [
            terminal.format_error_header(self.code.value if self.code else None, self.message)
        ]
        if self.filename or self.lineno:
            parts.append(f"  --> {terminal.location(format_location(self.filename, self.lineno))}")
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class TemplateNotFoundError(UserError):
    """An ``@import`` or ``@include`` path could not be loaded.

    Raised by loaders when no source exists for the resolved path.
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateSyntaxError(HtmetaError):
    """Parse-time syntax error in document source.

    When ``source`` and ``lineno`` are provided, the error message includes
    the offending line. If ``col_offset`` is also given, a caret (``^``)
    points at the exact column.
    """

    code: ErrorCode | None = None

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        filename: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.filename = filename
        self.source = source
        self.col_offset = col_offset
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    def _location(self) -> str:
        location = format_location(self.filename, self.lineno)
        if self.lineno and self.col_offset is not None:
            location += f":{self.col_offset}"
        return location

    def _snippet(self) -> list[str]:
        if not (self.source and self.lineno):
            return []
        lines = self.source.splitlines()
        if not 0 < self.lineno <= len(lines):
            return []
        snippet = ["   |", f"{self.lineno:>3} | {lines[self.lineno - 1]}"]
        if self.col_offset is not None:
            snippet.append(f"   | {' ' * self.col_offset}^")
        return snippet

    def _format_message(self) -> str:
        return "\n".join([f"Syntax Error: {self.message}", f"  --> {self._location()}", *self._snippet()])

    def format_compact(self) -> str:
        parts = [
            terminal.format_error_header(self.code.value if self.code else None, self.message),
            f"  --> {terminal.location(self._location())}",
        ]
        parts.extend(self._snippet())
        return "\n".join(parts)


@dataclass(frozen=True, slots=True)
class ScriptFailure:
    """One failed script call: what went wrong and the call that caused it."""

    message: str
    source: str


class ScriptingError(HtmetaError):
    """One or more script function calls failed.

    Failures from several calls may be aggregated into a single error, each
    keeping the source text of the call that produced it.
    """

    code: ErrorCode | None = ErrorCode.SCRIPT_ERROR

    def __init__(self, failures: Iterable[ScriptFailure]):
        self.failures = list(failures)
        super().__init__(self._format_message())

    @classmethod
    def single(cls, message: str, source: str) -> ScriptingError:
        return cls([ScriptFailure(message, source)])

    def merge(self, other: ScriptingError) -> ScriptingError:
        """Return a new error holding the failures of both errors."""
        return ScriptingError([*self.failures, *other.failures])

    def _format_message(self) -> str:
        if len(self.failures) == 1:
            failure = self.failures[0]
            return f"`{failure.message}` in [{failure.source}]"
        lines = ["Many errors:"]
        lines.extend(f"`{f.message}` in [{f.source}]" for f in self.failures)
        return "\n".join(lines)
