"""Lexer for the htmeta document syntax (a KDL subset).

Turns source text into a flat list of tokens. Whitespace, comments and line
continuations are dropped; newlines and semicolons are kept because they
terminate nodes.

Supported:
- Comments: ``// line``, ``/* block (nestable) */``
- Slashdash: ``/-`` comments out the next node, entry or children block
- Strings: ``"escaped\\n"``, raw ``r"..."``, ``r#"..."#``, ``#"..."#``
- Numbers: ``12``, ``-3``, ``1_000``, ``2.5e3``, ``0xff``, ``0o17``, ``0b101``
- Keywords: ``true``, ``false``, ``null`` and ``#true``, ``#false``, ``#null``
- Bare identifiers (``div``, ``$title``, ``@template``, ``!DOCTYPE``)

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from htmeta.environment.exceptions import ErrorCode
from htmeta.nodes import Scalar
from htmeta.parser.errors import ParseError

# Characters that can never appear inside a bare identifier
_NON_IDENT = frozenset('\\/(){}<>;[]=,"')
_NEWLINES = frozenset("\n\r\u0085\u000c\u2028\u2029")
_KEYWORDS: dict[str, Scalar] = {
    "true": True,
    "false": False,
    "null": None,
    "#true": True,
    "#false": False,
    "#null": None,
}
_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "/": "/",
    "b": "\b",
    "f": "\f",
    "s": " ",
}


class TokenType(Enum):
    IDENT = auto()
    STRING = auto()
    NUMBER = auto()
    KEYWORD = auto()
    EQUALS = auto()
    LBRACE = auto()
    RBRACE = auto()
    SEMICOLON = auto()
    NEWLINE = auto()
    SLASHDASH = auto()
    EOF = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """A lexed token.

    ``leading`` holds the whitespace between the start of the line and the
    token when the token is the first thing on its line, else "".
    """

    type: TokenType
    value: Scalar
    lineno: int
    col_offset: int
    leading: str = ""


def _is_whitespace(ch: str) -> bool:
    return ch.isspace() and ch not in _NEWLINES


def _is_ident_char(ch: str) -> bool:
    return not ch.isspace() and ch not in _NON_IDENT


class Lexer:
    """Single-pass character lexer.

    Example:
        >>> [t.type.name for t in Lexer('p "hi"').tokenize()]
        ['IDENT', 'STRING', 'EOF']
    """

    __slots__ = ("_filename", "_line_start", "_lineno", "_pos", "_source", "_tokens")

    def __init__(self, source: str, filename: str | None = None):
        self._source = source
        self._filename = filename
        self._pos = 0
        self._lineno = 1
        self._line_start = 0
        self._tokens: list[Token] = []

    # -- helpers ---------------------------------------------------------

    def _error(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNEXPECTED_CHARACTER,
        suggestion: str | None = None,
        lineno: int | None = None,
        col: int | None = None,
    ) -> ParseError:
        return ParseError(
            message,
            lineno if lineno is not None else self._lineno,
            col if col is not None else self._pos - self._line_start,
            source=self._source,
            filename=self._filename,
            suggestion=suggestion,
            code=code,
        )

    def _peek(self, offset: int = 0) -> str:
        index = self._pos + offset
        return self._source[index] if index < len(self._source) else ""

    def _newline(self) -> None:
        # \r\n counts as a single newline
        if self._peek() == "\r" and self._peek(1) == "\n":
            self._pos += 1
        self._pos += 1
        self._lineno += 1
        self._line_start = self._pos

    def _emit(self, type_: TokenType, value: Scalar, start: int, lineno: int, line_start: int) -> None:
        prefix = self._source[line_start:start]
        leading = prefix if prefix.strip() == "" else ""
        self._tokens.append(Token(type_, value, lineno, start - line_start, leading))

    # -- trivia ----------------------------------------------------------

    def _skip_block_comment(self) -> None:
        lineno, col = self._lineno, self._pos - self._line_start
        depth = 0
        while self._pos < len(self._source):
            if self._peek() == "/" and self._peek(1) == "*":
                depth += 1
                self._pos += 2
            elif self._peek() == "*" and self._peek(1) == "/":
                depth -= 1
                self._pos += 2
                if depth == 0:
                    return
            elif self._peek() in _NEWLINES:
                self._newline()
            else:
                self._pos += 1
        raise self._error(
            "Unclosed block comment",
            ErrorCode.UNCLOSED_BLOCK,
            "Close the comment with */",
            lineno=lineno,
            col=col,
        )

    def _skip_line_comment(self) -> None:
        while self._pos < len(self._source) and self._peek() not in _NEWLINES:
            self._pos += 1

    def _skip_line_continuation(self) -> None:
        self._pos += 1  # the backslash
        while self._pos < len(self._source):
            ch = self._peek()
            if _is_whitespace(ch):
                self._pos += 1
            elif ch == "/" and self._peek(1) == "/":
                self._skip_line_comment()
            elif ch == "/" and self._peek(1) == "*":
                self._skip_block_comment()
            elif ch in _NEWLINES:
                self._newline()
                return
            else:
                break
        if self._pos < len(self._source):
            raise self._error(
                "Expected a newline after line continuation '\\'",
                suggestion="Nothing but whitespace or a comment may follow '\\' on its line",
            )

    # -- values ----------------------------------------------------------

    def _read_string(self) -> str:
        lineno, col = self._lineno, self._pos - self._line_start
        self._pos += 1  # opening quote
        parts: list[str] = []
        while True:
            ch = self._peek()
            if ch == "":
                raise self._error(
                    "Unterminated string",
                    ErrorCode.UNTERMINATED_STRING,
                    'Close the string with "',
                    lineno=lineno,
                    col=col,
                )
            if ch == '"':
                self._pos += 1
                return "".join(parts)
            if ch == "\\":
                parts.append(self._read_escape())
                continue
            if ch in _NEWLINES:
                parts.append(ch)
                self._newline()
                continue
            parts.append(ch)
            self._pos += 1

    def _read_escape(self) -> str:
        self._pos += 1  # backslash
        ch = self._peek()
        if ch in _ESCAPES:
            self._pos += 1
            return _ESCAPES[ch]
        if ch == "u" and self._peek(1) == "{":
            end = self._source.find("}", self._pos)
            digits = self._source[self._pos + 2 : end] if end != -1 else ""
            if (
                not digits
                or len(digits) > 6
                or any(c not in "0123456789abcdefABCDEF" for c in digits)
                or int(digits, 16) > 0x10FFFF
            ):
                raise self._error("Invalid unicode escape", ErrorCode.INVALID_ESCAPE, "Use \\u{1F600}")
            self._pos = end + 1
            return chr(int(digits, 16))
        if ch and ch.isspace():
            # Whitespace escape: drop the backslash and all following whitespace
            while self._peek() and self._peek().isspace():
                if self._peek() in _NEWLINES:
                    self._newline()
                else:
                    self._pos += 1
            return ""
        raise self._error(f"Invalid escape sequence '\\{ch}'", ErrorCode.INVALID_ESCAPE)

    def _read_raw_string(self) -> str:
        lineno, col = self._lineno, self._pos - self._line_start
        if self._peek() == "r":
            self._pos += 1
        hashes = 0
        while self._peek() == "#":
            hashes += 1
            self._pos += 1
        if self._peek() != '"':
            raise self._error("Expected '\"' to start raw string")
        self._pos += 1
        terminator = '"' + "#" * hashes
        end = self._source.find(terminator, self._pos)
        if end == -1:
            raise self._error(
                "Unterminated raw string",
                ErrorCode.UNTERMINATED_STRING,
                f"Close the string with {terminator}",
                lineno=lineno,
                col=col,
            )
        text = self._source[self._pos : end]
        for ch in text:
            if ch == "\n":
                self._lineno += 1
        if "\n" in text:
            self._line_start = self._pos + text.rfind("\n") + 1
        self._pos = end + len(terminator)
        return text

    def _read_bare(self) -> str:
        start = self._pos
        while self._pos < len(self._source) and _is_ident_char(self._peek()):
            self._pos += 1
        return self._source[start : self._pos]

    def _parse_number(self, text: str, col: int) -> int | float:
        cleaned = text.replace("_", "")
        sign = ""
        if cleaned[:1] in "+-":
            sign, cleaned = cleaned[0], cleaned[1:]
        try:
            for prefix, base in (("0x", 16), ("0o", 8), ("0b", 2)):
                if cleaned.startswith(prefix):
                    return int(sign + cleaned[2:], base)
            if any(c in cleaned for c in ".eE"):
                return float(sign + cleaned)
            return int(sign + cleaned)
        except ValueError:
            raise self._error(
                f"Invalid number '{text}'", ErrorCode.INVALID_NUMBER, col=col
            ) from None

    # -- main loop -------------------------------------------------------

    def tokenize(self) -> list[Token]:
        src = self._source
        while self._pos < len(src):
            ch = self._peek()
            start, lineno, line_start = self._pos, self._lineno, self._line_start

            if ch == "\ufeff" or _is_whitespace(ch):
                self._pos += 1
            elif ch in _NEWLINES:
                self._emit(TokenType.NEWLINE, None, start, lineno, line_start)
                self._newline()
            elif ch == "/" and self._peek(1) == "/":
                self._skip_line_comment()
            elif ch == "/" and self._peek(1) == "*":
                self._skip_block_comment()
            elif ch == "/" and self._peek(1) == "-":
                self._pos += 2
                self._emit(TokenType.SLASHDASH, None, start, lineno, line_start)
            elif ch == "\\":
                self._skip_line_continuation()
            elif ch == "{":
                self._pos += 1
                self._emit(TokenType.LBRACE, None, start, lineno, line_start)
            elif ch == "}":
                self._pos += 1
                self._emit(TokenType.RBRACE, None, start, lineno, line_start)
            elif ch == ";":
                self._pos += 1
                self._emit(TokenType.SEMICOLON, None, start, lineno, line_start)
            elif ch == "=":
                self._pos += 1
                self._emit(TokenType.EQUALS, None, start, lineno, line_start)
            elif ch == '"':
                value = self._read_string()
                self._emit(TokenType.STRING, value, start, lineno, line_start)
            elif (ch == "r" and self._peek(1) in ('"', "#")) or (ch == "#" and self._peek(1) in ('"', "#")):
                value = self._read_raw_string()
                self._emit(TokenType.STRING, value, start, lineno, line_start)
            elif _is_ident_char(ch):
                col = start - line_start
                text = self._read_bare()
                if text in _KEYWORDS:
                    self._emit(TokenType.KEYWORD, _KEYWORDS[text], start, lineno, line_start)
                elif text[0].isdigit() or (text[0] in "+-" and text[1:2].isdigit()):
                    self._emit(TokenType.NUMBER, self._parse_number(text, col), start, lineno, line_start)
                elif text.startswith("#"):
                    raise self._error(
                        f"Unknown keyword '{text}'",
                        suggestion="Valid keywords are #true, #false and #null",
                        col=col,
                    )
                else:
                    self._emit(TokenType.IDENT, text, start, lineno, line_start)
            else:
                raise self._error(f"Unexpected character {ch!r}")

        self._emit(TokenType.EOF, None, self._pos, self._lineno, self._line_start)
        return self._tokens


def tokenize(source: str, filename: str | None = None) -> list[Token]:
    """Tokenize ``source``. Convenience wrapper around ``Lexer``."""
    return Lexer(source, filename).tokenize()
