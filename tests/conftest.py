"""Pytest configuration and fixtures for htmeta tests."""

import pytest

from htmeta import DictLoader, EmitterBuilder, TemplatePlugin, render_string
from htmeta.environment import terminal


@pytest.fixture(autouse=True)
def no_colors(monkeypatch):
    """Keep diagnostics free of ANSI codes regardless of the terminal."""
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def builder():
    """A pretty-printing builder (4 spaces) with the template plugin."""
    return EmitterBuilder().add_plugin(TemplatePlugin())


@pytest.fixture
def minified():
    """A minifying builder with the template plugin."""
    return EmitterBuilder().minify().add_plugin(TemplatePlugin())


@pytest.fixture
def loader():
    """An in-memory file tree for @import / @include tests."""
    return DictLoader(
        {
            "parts/nav.kdl": 'nav { @include "link.kdl" }',
            "parts/link.kdl": 'a href="/" "Home"',
            "parts/theme.kdl": '$accent "red"',
            "lib/buttons.kdl": (
                '@import "icons.kdl"\n'
                '@template button { @params label="OK"; button "$label" }\n'
                'p "never emitted"\n'
            ),
            "lib/icons.kdl": '@template icon { i class="icon-$0" }',
        }
    )


@pytest.fixture
def with_loader(loader):
    """A minifying builder whose template plugin reads from ``loader``."""
    return EmitterBuilder().minify().add_plugin(TemplatePlugin(loader=loader))


def render(builder: EmitterBuilder, source: str, filename: str | None = None) -> str:
    """Render ``source`` with a fresh emitter from ``builder``."""
    return render_string(source, builder, filename)


def assert_html_equal(result: str, expected: str) -> None:
    """Assert rendered HTML equals expected, ignoring whitespace differences.

    Args:
        result: The actual rendering result.
        expected: The expected output.
    """
    actual_normalized = " ".join(result.split())
    expected_normalized = " ".join(expected.split())
    assert actual_normalized == expected_normalized, (
        f"HTML output mismatch:\n"
        f"  Actual: {actual_normalized!r}\n"
        f"  Expected: {expected_normalized!r}"
    )
