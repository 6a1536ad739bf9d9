"""
Tests for the substitution engine and its invocation aliases.

Tests cover:
- The documented scenarios (plain, alias, repeated, unknown, unterminated)
- Determinism and identity on content without placeholders
- Argument ordering policy
- Alias identity
"""

import pytest

from webio_macros import html, make_alias, replace, substitute
from webio_macros.errors import UnknownPlaceholderError, UnterminatedPlaceholderError
from webio_macros.templating import INVOCATIONS, iter_segments, unused_arguments
from webio_macros.templating.scanner import PlaceholderToken


class TestScenarios:
    """Reference scenarios."""

    def test_hello_name(self):
        assert replace("Hello {{name}}", name="Ahmed") == "Hello Ahmed"

    def test_html_alias(self):
        assert html("<div>{{name}}</div>", name="Ahmed") == "<div>Ahmed</div>"

    def test_repeated_placeholder(self):
        """Each occurrence is substituted with the same value."""
        assert replace("{{a}}{{a}}", a="x") == "xx"

    def test_missing_argument(self):
        with pytest.raises(UnknownPlaceholderError) as exc_info:
            replace("{{missing}}")
        assert exc_info.value.name == "missing"
        assert "{{missing}}" in exc_info.value.message

    def test_unterminated(self):
        with pytest.raises(UnterminatedPlaceholderError):
            replace("{{unterminated")


class TestSubstitute:
    """Test the pure substitution function."""

    def test_identity_without_placeholders(self):
        content = "no markers { here } at all"
        assert substitute(content, {"unused": 1}) == content

    def test_deterministic(self):
        arguments = [("greeting", "Hi"), ("name", "Ada")]
        first = substitute("{{greeting}}, {{name}}!", arguments)
        assert first == substitute("{{greeting}}, {{name}}!", arguments)
        assert first == "Hi, Ada!"

    def test_first_argument_wins(self):
        """Duplicate names resolve to the first pair."""
        assert substitute("{{x}}", [("x", "first"), ("x", "second")]) == "first"

    def test_values_rendered_with_str(self):
        assert substitute("{{n}} {{flag}} {{none}}", {"n": 3, "flag": True, "none": None}) == "3 True None"

    def test_unused_arguments_ignored(self):
        assert substitute("{{a}}", {"a": 1, "b": 2}) == "1"

    def test_value_containing_markers_is_not_rescanned(self):
        """Substituted values are emitted as-is."""
        assert substitute("{{a}}", {"a": "{{b}}"}) == "{{b}}"

    def test_exact_name_match(self):
        with pytest.raises(UnknownPlaceholderError) as exc_info:
            substitute("{{ name }}", {"name": "x"})
        assert exc_info.value.name == " name "

    def test_embedded_markup(self):
        template = '<script>console.log("User: {{user}}");</script>'
        assert replace(template, user="Admin") == '<script>console.log("User: Admin");</script>'


class TestSegments:
    def test_iter_segments(self):
        segments = list(iter_segments("a{{x}}b{{y}}"))
        assert segments == ["a", PlaceholderToken("x", 1, 6), "b", PlaceholderToken("y", 7, 12)]

    def test_unused_arguments(self):
        assert unused_arguments("{{a}}", [("a", 1), ("b", 2), ("c", 3)]) == ["b", "c"]


class TestAliases:
    """Aliases must never diverge from replace()."""

    @pytest.mark.parametrize(
        "content,arguments",
        [
            ("Hello {{name}}", {"name": "Ahmed"}),
            ("<p>{{a}}{{a}}</p>", {"a": 1}),
            ("plain", {}),
        ],
    )
    def test_html_matches_replace(self, content, arguments):
        assert html(content, **arguments) == replace(content, **arguments)

    def test_html_raises_the_same_errors(self):
        with pytest.raises(UnknownPlaceholderError):
            html("{{missing}}")

    def test_make_alias(self):
        css = make_alias("css")
        assert css.__name__ == "css"
        assert css(".btn { color: {{color}}; }", color="red") == ".btn { color: red; }"

    def test_invocation_table(self):
        assert set(INVOCATIONS) == {"replace", "html"}
        assert INVOCATIONS["html"]("{{x}}", x=1) == "1"

    def test_content_keyword_is_an_argument(self):
        """The template text is positional-only, so 'content' can be a placeholder."""
        assert replace("{{content}}", content="body") == "body"
