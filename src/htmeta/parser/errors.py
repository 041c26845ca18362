"""Parser error handling for htmeta.

Provides ParseError with source context and suggestions.
"""

from __future__ import annotations

from htmeta.environment.exceptions import ErrorCode, TemplateSyntaxError


class ParseError(TemplateSyntaxError):
    """Parser or lexer error with rich source context.

    Displays the offending line with a caret under the error column,
    Rust-compiler style:

        Syntax Error: Unterminated string
          --> index.kdl:3:7
           |
          3 | p "Hello
           |   ^
    """

    def __init__(
        self,
        message: str,
        lineno: int,
        col_offset: int,
        *,
        source: str | None = None,
        filename: str | None = None,
        suggestion: str | None = None,
        code: ErrorCode = ErrorCode.UNEXPECTED_CHARACTER,
    ):
        self.suggestion = suggestion
        super().__init__(
            message,
            lineno=lineno,
            filename=filename,
            source=source,
            col_offset=col_offset,
            code=code,
        )

    def _format_message(self) -> str:
        msg = super()._format_message()
        if self.suggestion:
            msg += f"\n\nSuggestion: {self.suggestion}"
        return msg
