"""Tests for the KDL-subset lexer and parser."""

from __future__ import annotations

import pytest
from hypothesis import given, settings

from htmeta.environment.exceptions import ErrorCode, HtmetaError, TemplateSyntaxError
from htmeta.parser import Lexer, ParseError, TokenType, parse, tokenize

from .strategies import arbitrary_source, simple_document_source


class TestNodes:
    """Node names, entries and children."""

    def test_positional_and_keyed_entries(self) -> None:
        (node,) = parse('a href="/home" "Home"')
        assert node.name == "a"
        assert node.args() == ("Home",)
        assert node.props() == {"href": "/home"}
        assert [e.name for e in node.entries] == ["href", None]

    def test_children(self) -> None:
        (node,) = parse('div {\n    p "one"\n    p "two"\n}')
        assert [child.args() for child in node.iter_children()] == [("one",), ("two",)]

    def test_empty_children_block_is_not_none(self) -> None:
        (node,) = parse("div {}")
        assert node.children == ()

    def test_no_children_block_is_none(self) -> None:
        (node,) = parse("br")
        assert node.children is None

    def test_semicolons_separate_nodes(self) -> None:
        assert [n.name for n in parse("a; b; c")] == ["a", "b", "c"]

    def test_single_line_children(self) -> None:
        (node,) = parse('ul { li "a"; li "b" }')
        assert len(node.children) == 2

    def test_quoted_name(self) -> None:
        (node,) = parse('"my node" 1')
        assert node.name == "my node"

    def test_sigils_are_part_of_names(self) -> None:
        names = [n.name for n in parse('$title "x"\n@template t {}\n!DOCTYPE html')]
        assert names == ["$title", "@template", "!DOCTYPE"]

    def test_bare_identifier_values_are_strings(self) -> None:
        (node,) = parse("@for x in a b")
        assert node.args() == ("x", "in", "a", "b")

    def test_line_numbers_and_leading_whitespace(self) -> None:
        doc = parse("a\n\n  b\n\tc")
        assert [n.lineno for n in doc] == [1, 3, 4]
        assert [n.leading for n in doc] == ["", "  ", "\t"]


class TestValues:
    """Scalar literals."""

    def test_numbers(self) -> None:
        (node,) = parse("n 12 -3 1_000 2.5 1e3 0xff 0o17 0b101")
        assert node.args() == (12, -3, 1000, 2.5, 1000.0, 255, 15, 5)

    def test_keywords(self) -> None:
        (node,) = parse("n true false null #true #false #null")
        assert node.args() == (True, False, None, True, False, None)

    def test_escapes(self) -> None:
        (node,) = parse(r'n "a\tb\n\"q\" \\ \u{41}"')
        assert node.args() == ('a\tb\n"q" \\ A',)

    def test_raw_strings(self) -> None:
        (node,) = parse(r'n r"C:\path" r#"say "hi""# #"also raw"#')
        assert node.args() == ("C:\\path", 'say "hi"', "also raw")

    def test_multiline_string(self) -> None:
        doc = parse('p "one\ntwo"\nq')
        assert doc[0].args() == ("one\ntwo",)
        assert doc[1].lineno == 3


class TestTrivia:
    """Comments, slashdash and line continuations."""

    def test_comments(self) -> None:
        doc = parse('// line comment\np /* inline /* nested */ */ "x"')
        assert len(doc) == 1
        assert doc[0].args() == ("x",)

    def test_slashdash_node(self) -> None:
        doc = parse('/-p "gone"\nq')
        assert [n.name for n in doc] == ["q"]

    def test_slashdash_node_with_children(self) -> None:
        doc = parse("/-div {\n    p\n}\nq")
        assert [n.name for n in doc] == ["q"]

    def test_slashdash_entry(self) -> None:
        (node,) = parse('p /-"gone" class="x" "kept"')
        assert node.args() == ("kept",)
        assert node.props() == {"class": "x"}

    def test_slashdash_children(self) -> None:
        (node,) = parse('p "x" /-{ span }')
        assert node.children is None
        assert node.args() == ("x",)

    def test_line_continuation(self) -> None:
        (node,) = parse('p class="a" \\\n    "text"')
        assert node.args() == ("text",)


class TestErrors:
    """Malformed source raises ParseError with location."""

    def test_unterminated_string(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse('p "oops', filename="index.kdl")
        error = exc_info.value
        assert error.code is ErrorCode.UNTERMINATED_STRING
        assert error.lineno == 1
        assert error.filename == "index.kdl"

    def test_unclosed_block(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("div {\n    p")
        assert exc_info.value.code is ErrorCode.UNCLOSED_BLOCK

    def test_stray_closing_brace(self) -> None:
        with pytest.raises(ParseError, match="Unexpected '}'"):
            parse("p }")

    def test_node_after_block_on_same_line(self) -> None:
        with pytest.raises(ParseError, match="after children block"):
            parse("div { } span")

    def test_invalid_number(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("n 12abc")
        assert exc_info.value.code is ErrorCode.INVALID_NUMBER

    def test_invalid_escape(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse(r'n "\q"')
        assert exc_info.value.code is ErrorCode.INVALID_ESCAPE

    def test_message_has_snippet_and_caret(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse('a\nb ( "x"', filename="page.kdl")
        message = str(exc_info.value)
        assert message.startswith("Syntax Error:")
        assert "page.kdl:2:2" in message
        assert "  2 | b ( \"x\"" in message
        assert "^" in message

    def test_parse_error_hierarchy(self) -> None:
        assert issubclass(ParseError, TemplateSyntaxError)
        assert issubclass(ParseError, HtmetaError)


class TestLexer:
    """Token stream details."""

    def test_token_types(self) -> None:
        types = [t.type for t in Lexer('p k=1 "s" {}').tokenize()]
        assert types == [
            TokenType.IDENT,
            TokenType.IDENT,
            TokenType.EQUALS,
            TokenType.NUMBER,
            TokenType.STRING,
            TokenType.LBRACE,
            TokenType.RBRACE,
            TokenType.EOF,
        ]

    def test_crlf_is_one_newline(self) -> None:
        tokens = tokenize("a\r\nb")
        assert [t.lineno for t in tokens if t.type is TokenType.IDENT] == [1, 2]

    def test_bom_is_ignored(self) -> None:
        assert [n.name for n in parse("\ufeffp")] == ["p"]


class TestParserProperties:
    """Property-based parser invariants."""

    @given(source=arbitrary_source)
    @settings(max_examples=300)
    def test_no_unhandled_crash(self, source: str) -> None:
        """Any input either parses or raises ParseError."""
        try:
            parse(source)
        except ParseError:
            pass

    @given(source=simple_document_source)
    @settings(max_examples=100)
    def test_one_node_per_line(self, source: str) -> None:
        doc = parse(source)
        assert len(doc) == source.count("\n") + 1
        assert all(len(node.entries) == 2 for node in doc)
