"""Tests for template registration and instantiation."""

from __future__ import annotations

import pytest

from htmeta import ErrorCode, UserError, parse
from htmeta.nodes import Entry, Node
from htmeta.plugins.template import Param, Template
from htmeta.plugins.template.instantiation import append_props, splice_children

from .conftest import assert_html_equal, render

GREET = '@template greet { @params name="World"; p "Hello, $name!" }\n'


class TestRegistration:
    """``@template`` captures a reusable subtree."""

    def test_from_node(self) -> None:
        (node,) = parse('@template card { @params title subtitle="none"; div { @children } }')
        template = Template.from_node("card", node)
        assert template.params == (Param("title"), Param("subtitle", "none", has_default=True))
        assert template.uses_children
        assert [n.name for n in template.body] == ["div"]
        assert template.is_param("subtitle")
        assert not template.is_param("class")
        assert template.defaults() == [("subtitle", "none")]

    def test_without_params_or_children(self) -> None:
        (node,) = parse('@template t { p "x" }')
        template = Template.from_node("t", node)
        assert template.params == ()
        assert not template.uses_children

    def test_registration_emits_nothing(self, minified) -> None:
        assert render(minified, GREET) == ""

    def test_name_property(self, minified) -> None:
        assert render(minified, '@template name="t" { p "x" }\n@t') == "<p>x</p>"

    def test_name_is_expanded(self, minified) -> None:
        assert render(minified, '$kind "box"\n@template "$kind" { p "x" }\n@box') == "<p>x</p>"

    def test_missing_name(self, minified) -> None:
        with pytest.raises(UserError) as exc_info:
            render(minified, '@template { p "x" }')
        assert exc_info.value.code is ErrorCode.MISSING_TEMPLATE_NAME

    def test_missing_body(self, minified) -> None:
        with pytest.raises(UserError) as exc_info:
            render(minified, "@template t")
        assert exc_info.value.code is ErrorCode.MISSING_TEMPLATE_BODY

    def test_reregistration_overwrites(self, minified) -> None:
        html = render(minified, '@template t { p "a" }\n@t\n@template t { p "b" }\n@t')
        assert html == "<p>a</p><p>b</p>"

    def test_registration_in_child_scope_does_not_leak(self, minified) -> None:
        with pytest.raises(UserError) as exc_info:
            render(minified, 'div { @template t { p "x" } }\n@t')
        assert exc_info.value.code is ErrorCode.UNKNOWN_TEMPLATE

    def test_registration_visible_in_child_scopes(self, minified) -> None:
        assert render(minified, '@template t { p "x" }\ndiv { @t }') == "<div><p>x</p></div>"

    def test_templates_do_not_survive_builds(self, minified) -> None:
        emitter = minified.build()
        emitter.render(parse('@template t { p "x" }'))
        with pytest.raises(UserError):
            emitter.render(parse("@t"))


class TestBinding:
    """Parameters, positional arguments and defaults."""

    def test_default(self, minified) -> None:
        assert render(minified, GREET + "@greet") == "<p>Hello, World!</p>"

    def test_override(self, minified) -> None:
        assert render(minified, GREET + '@greet name="Rust"') == "<p>Hello, Rust!</p>"

    def test_positional_arguments(self, minified) -> None:
        html = render(minified, '@template t { p "$0-$1" }\n@t "a" "b"')
        assert html == "<p>a-b</p>"

    def test_positional_numbering_skips_keyed(self, minified) -> None:
        html = render(minified, '@template t { @params k; p "$0 $k $1" }\n@t "a" k="K" "b"')
        assert html == "<p>a K b</p>"

    def test_defaults_expand_in_caller_scope(self, minified) -> None:
        source = '@template t { @params who="$name"; p "$who" }\n$name "Ann"\n@t'
        assert render(minified, source) == "<p>Ann</p>"

    def test_arguments_expand_in_caller_scope(self, minified) -> None:
        source = '$x "caller"\n@template t { $x "body"; p "$arg $x" }\n@t arg="$x"'
        assert render(minified, source) == "<p>caller body</p>"

    def test_caller_variables_visible_in_body(self, minified) -> None:
        assert render(minified, '$site "htmeta"\n@template t { p "$site" }\n@t') == "<p>htmeta</p>"

    def test_body_bindings_do_not_leak(self, minified) -> None:
        source = '@template t { $leak "x"; p "in" }\n@t\np "[$leak][$0]"'
        assert render(minified, source) == "<p>in</p><p>[][]</p>"

    def test_parameter_without_default_is_empty(self, minified) -> None:
        assert render(minified, '@template t { @params title; h1 "[$title]" }\n@t') == "<h1>[]</h1>"

    def test_template_calling_template(self, minified) -> None:
        source = GREET + '@template twice { @greet name="$0"; @greet }\n@twice "A"'
        assert render(minified, source) == "<p>Hello, A!</p><p>Hello, World!</p>"


class TestChildren:
    """``@children`` splicing."""

    CARD = '@template card { div class="card" { @children } }\n'

    def test_children_are_spliced(self, minified) -> None:
        html = render(minified, self.CARD + '@card { p "x"; p "y" }')
        assert html == '<div class="card"><p>x</p><p>y</p></div>'

    def test_absent_children_omit_splice(self, minified) -> None:
        assert render(minified, self.CARD + "@card") == '<div class="card"></div>'

    def test_splice_everywhere(self, minified) -> None:
        source = '@template t { header { @children }; footer { @children } }\n@t { b "x" }'
        assert render(minified, source) == "<header><b>x</b></header><footer><b>x</b></footer>"

    def test_unsupported_children(self, minified) -> None:
        with pytest.raises(UserError) as exc_info:
            render(minified, '@template t { p "x" }\n@t { span }')
        assert exc_info.value.code is ErrorCode.UNSUPPORTED_CHILDREN
        assert "does not support it" in str(exc_info.value)

    def test_recursion_guard(self, minified) -> None:
        with pytest.raises(UserError) as exc_info:
            render(minified, self.CARD + "@card { div { @children } }")
        assert exc_info.value.code is ErrorCode.RECURSIVE_CHILDREN

    def test_splice_entries_propagate(self, minified) -> None:
        source = '@template list { ul { @children class="item" } }\n@list { li "a"; li class="x" "b" }'
        html = render(minified, source)
        assert html == '<ul><li class="item">a</li><li class="x">b</li></ul>'

    def test_children_see_caller_and_template_bindings(self, minified) -> None:
        source = '@template t { @params n; div { @children } }\n@t n="1" { p "$n" }'
        assert render(minified, source) == "<div><p>1</p></div>"

    def test_nested_templates_with_children(self, minified) -> None:
        source = (
            self.CARD
            + '@template page { main { @card { @children } } }\n'
            + '@page { p "deep" }'
        )
        assert render(minified, source) == '<main><div class="card"><p>deep</p></div></main>'

    def test_stray_children_marker(self, minified) -> None:
        with pytest.raises(UserError, match="@children"):
            render(minified, "@children")

    def test_splice_does_not_touch_template(self) -> None:
        (node,) = parse('@template t { div { @children } }')
        template = Template.from_node("t", node)
        spliced = splice_children(template, (Node("p"),))
        assert spliced[0].children == (Node("p"),)
        assert template.body[0].children[0].name == "@children"


class TestProps:
    """Leftover keyed arguments."""

    BUTTON = '@template btn { @params kind="button"; button type="$kind" "$0" }\n'

    def test_props_are_appended_to_single_element(self, minified) -> None:
        html = render(minified, self.BUTTON + '@btn "Go" class="big" id="b1"')
        assert html == '<button type="button" class="big" id="b1">Go</button>'

    def test_parameters_are_not_props(self, minified) -> None:
        html = render(minified, self.BUTTON + '@btn "Go" kind="submit"')
        assert html == '<button type="submit">Go</button>'

    def test_props_variable(self, minified) -> None:
        source = '@template t { span "$props"; span "b" }\n@t x="1" y="2"'
        assert render(minified, source) == '<span>x="1" y="2"</span><span>b</span>'

    def test_props_not_appended_to_multiple_children(self, minified) -> None:
        source = '@template t { span "a"; span "b" }\n@t class="c"'
        assert render(minified, source) == "<span>a</span><span>b</span>"

    def test_empty_props_are_kept(self, minified) -> None:
        html = render(minified, '@template t { div }\n@t class="$missing"')
        assert html == '<div class=""></div>'

    def test_empty_props_in_variable(self, minified) -> None:
        source = '@template t { p "$props"; p }\n@t a="" b="2"'
        assert render(minified, source) == '<p>a="" b="2"</p><p></p>'

    def test_props_are_expanded_in_caller_scope(self, minified) -> None:
        html = render(minified, '$c "wide"\n@template t { div }\n@t class="$c"')
        assert html == '<div class="wide"></div>'

    def test_append_props_before_inline_text(self) -> None:
        body = (Node("a", (Entry("/", name="href"), Entry("Home"))),)
        (node,) = append_props(body, 'id="x"')
        assert node.entries == (Entry("/", name="href"), Entry('id="x"', fragment=True), Entry("Home"))

    def test_append_props_skips_commands(self) -> None:
        body = (Node("@other"),)
        assert append_props(body, 'id="x"') == body

    def test_props_with_children(self, minified) -> None:
        source = '@template box { section { @children } }\n@box id="main" { p "x" }'
        assert_html_equal(render(minified, source), '<section id="main"><p>x</p></section>')


class TestRecursion:
    """Templates that call themselves."""

    def test_self_call(self, minified) -> None:
        with pytest.raises(UserError) as exc_info:
            render(minified, "@template loop { div { @loop } }\n@loop")
        error = exc_info.value
        assert error.code is ErrorCode.RECURSIVE_TEMPLATE
        assert "Maximum template nesting depth (50) exceeded" in error.message
        assert error.message.endswith("... -> loop -> loop -> loop -> loop -> loop")

    def test_mutual_calls(self, minified) -> None:
        source = "@template ping { @pong }\n@template pong { @ping }\n@ping"
        with pytest.raises(UserError) as exc_info:
            render(minified, source)
        assert exc_info.value.code is ErrorCode.RECURSIVE_TEMPLATE
        assert "ping -> pong" in exc_info.value.message

    def test_limit_follows_max_depth(self, minified) -> None:
        source = GREET + "@template a { @greet }\n@template b { @a }\n@b"
        assert render(minified, source) == "<p>Hello, World!</p>"
        with pytest.raises(UserError) as exc_info:
            render(minified.max_depth(2), source)
        assert exc_info.value.message.startswith("greet: Maximum template nesting depth (2)")
        assert exc_info.value.message.endswith("b -> a -> greet")

    def test_template_in_its_own_children(self, minified) -> None:
        source = '@template box { div { @children } }\n@box { @box { p "x" } }'
        assert render(minified, source) == "<div><div><p>x</p></div></div>"

    def test_error_points_at_call(self, minified) -> None:
        with pytest.raises(UserError) as exc_info:
            render(minified, "p\n@template loop { @loop }\n@loop", filename="index.kdl")
        assert exc_info.value.filename == "index.kdl"
        assert exc_info.value.lineno == 2


class TestUnknown:
    """Calls to templates that do not exist."""

    def test_unknown_template(self, minified) -> None:
        with pytest.raises(UserError) as exc_info:
            render(minified, "@nothing")
        assert exc_info.value.code is ErrorCode.UNKNOWN_TEMPLATE

    def test_did_you_mean(self, minified) -> None:
        with pytest.raises(UserError) as exc_info:
            render(minified, '@template card { p "x" }\n@crad')
        assert exc_info.value.suggestion == "Did you mean '@card'?"
        assert "Did you mean '@card'?" in exc_info.value.format_compact()

    def test_misspelled_command(self, minified) -> None:
        with pytest.raises(UserError) as exc_info:
            render(minified, "@templat t { p }")
        assert exc_info.value.suggestion == "Did you mean '@template'?"
