"""Recursive-descent parser producing htmeta ``Node`` trees.

Grammar (informal):
    document := node*
    node     := name entry* ("{" document "}")? terminator
    entry    := value | key "=" value
    name     := IDENT | STRING
    value    := STRING | NUMBER | KEYWORD | IDENT
    terminator := NEWLINE | ";" | EOF | (before) "}"

A slashdash (``/-``) in front of a node, an entry or a children block parses
and discards it.
"""

from __future__ import annotations

from htmeta.environment.exceptions import ErrorCode
from htmeta.nodes import Document, Entry, Node
from htmeta.parser.errors import ParseError
from htmeta.parser.lexer import Token, TokenType, tokenize

_VALUE_TOKENS = frozenset({TokenType.STRING, TokenType.NUMBER, TokenType.KEYWORD, TokenType.IDENT})
_TERMINATORS = frozenset({TokenType.NEWLINE, TokenType.SEMICOLON, TokenType.EOF})


class Parser:
    """Builds a ``Document`` from a token list.

    Example:
        >>> doc = Parser('p class="lead" "Hi"').parse()
        >>> doc[0].name, doc[0].props(), doc[0].args()
        ('p', {'class': 'lead'}, ('Hi',))
    """

    __slots__ = ("_filename", "_pos", "_source", "_tokens")

    def __init__(self, source: str, filename: str | None = None):
        self._source = source
        self._filename = filename
        self._tokens = tokenize(source, filename)
        self._pos = 0

    def _error(
        self,
        message: str,
        token: Token,
        suggestion: str | None = None,
        code: ErrorCode = ErrorCode.UNEXPECTED_CHARACTER,
    ) -> ParseError:
        return ParseError(
            message,
            token.lineno,
            token.col_offset,
            source=self._source,
            filename=self._filename,
            suggestion=suggestion,
            code=code,
        )

    @property
    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.type is not TokenType.EOF:
            self._pos += 1
        return token

    def _skip_terminators(self) -> None:
        while self._current.type in (TokenType.NEWLINE, TokenType.SEMICOLON):
            self._advance()

    def _skip_newlines(self) -> None:
        while self._current.type is TokenType.NEWLINE:
            self._advance()

    def parse(self) -> Document:
        nodes = self._parse_nodes(opening=None)
        return tuple(nodes)

    def _parse_nodes(self, opening: Token | None) -> list[Node]:
        nodes: list[Node] = []
        while True:
            self._skip_terminators()
            token = self._current
            if token.type is TokenType.EOF:
                if opening is not None:
                    raise self._error(
                        "Unclosed children block",
                        opening,
                        "Add a matching '}'",
                        ErrorCode.UNCLOSED_BLOCK,
                    )
                return nodes
            if token.type is TokenType.RBRACE:
                if opening is None:
                    raise self._error("Unexpected '}'", token, "Remove the extra '}'")
                return nodes
            if token.type is TokenType.SLASHDASH:
                self._advance()
                self._skip_newlines()
                self._parse_node()
                continue
            nodes.append(self._parse_node())

    def _parse_node(self) -> Node:
        name_token = self._advance()
        if name_token.type not in (TokenType.IDENT, TokenType.STRING):
            raise self._error(
                "Expected a node name",
                name_token,
                "Node names are identifiers or quoted strings",
            )
        entries: list[Entry] = []
        children: tuple[Node, ...] | None = None

        while True:
            token = self._current
            if token.type in _TERMINATORS or token.type is TokenType.RBRACE:
                break
            if token.type is TokenType.SLASHDASH:
                self._advance()
                if self._current.type is TokenType.LBRACE:
                    self._parse_children()
                else:
                    self._parse_entry()
                continue
            if token.type is TokenType.LBRACE:
                children = self._parse_children()
                after = self._current
                if after.type not in _TERMINATORS and after.type is not TokenType.RBRACE:
                    if after.type is TokenType.SLASHDASH:
                        continue
                    raise self._error(
                        "Expected end of node after children block",
                        after,
                        "Start the next node on a new line or after ';'",
                    )
                break
            entries.append(self._parse_entry())

        return Node(
            name=str(name_token.value),
            entries=tuple(entries),
            children=children,
            lineno=name_token.lineno,
            leading=name_token.leading,
        )

    def _parse_children(self) -> tuple[Node, ...]:
        opening = self._advance()
        nodes = self._parse_nodes(opening)
        self._advance()  # closing brace
        return tuple(nodes)

    def _parse_entry(self) -> Entry:
        token = self._advance()
        if token.type not in _VALUE_TOKENS:
            raise self._error("Expected a value or property", token)
        if self._current.type is TokenType.EQUALS:
            if token.type not in (TokenType.IDENT, TokenType.STRING):
                raise self._error(
                    "Property names must be identifiers or strings",
                    token,
                )
            self._advance()
            value = self._advance()
            if value.type not in _VALUE_TOKENS:
                raise self._error(f"Expected a value for property '{token.value}'", value)
            return Entry(value.value, name=str(token.value))
        return Entry(token.value)


def parse(source: str, filename: str | None = None) -> Document:
    """Parse document source into a tuple of top-level nodes.

    Raises:
        ParseError: If the source is not valid
    """
    return Parser(source, filename).parse()
