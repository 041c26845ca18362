"""Document parser for htmeta.

Reads the KDL-style source syntax into immutable ``Node`` trees:

    >>> from htmeta.parser import parse
    >>> doc = parse('html { body { h1 "Title" } }')
    >>> doc[0].name
    'html'

"""

from htmeta.parser.core import Parser, parse
from htmeta.parser.errors import ParseError
from htmeta.parser.lexer import Lexer, Token, TokenType, tokenize

__all__ = ["Lexer", "ParseError", "Parser", "Token", "TokenType", "parse", "tokenize"]
