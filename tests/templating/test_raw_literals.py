"""Tests for the raw-literal normalizer."""

import pytest

from webio_macros.errors import TemplateLiteralError
from webio_macros.templating import is_raw_literal, normalize_literal


class TestNormalizeLiteral:
    def test_plain_literal_decodes_escapes(self):
        assert normalize_literal(r'"a\tb"') == "a\tb"

    def test_raw_literal_is_verbatim(self):
        """Backslashes and escaped quotes survive unchanged."""
        assert normalize_literal(r'r"C:\new\{{dir}}"') == r"C:\new\{{dir}}"

    def test_raw_literal_with_embedded_quotes(self):
        source = "r'''<a href=\"{{url}}\">it's</a>'''"
        assert normalize_literal(source) == '<a href="{{url}}">it\'s</a>'

    def test_upper_case_prefix(self):
        assert normalize_literal(r'R"\d+"') == r"\d+"

    def test_implicit_concatenation_mixes_forms(self):
        source = 'r"\\n" "\\n"'
        assert normalize_literal(source) == "\\n\n"

    def test_multiline_concatenation_with_comment(self):
        source = '"a"  # first\n    r"\\b"'
        assert normalize_literal(source) == "a\\b"

    def test_bytes_rejected(self):
        with pytest.raises(TemplateLiteralError):
            normalize_literal('b"{{x}}"')

    def test_fstring_rejected(self):
        with pytest.raises(TemplateLiteralError):
            normalize_literal('f"{x}"')

    def test_not_a_literal(self):
        with pytest.raises(TemplateLiteralError):
            normalize_literal("name")


class TestIsRawLiteral:
    def test_raw(self):
        assert is_raw_literal('r"x"')

    def test_plain(self):
        assert not is_raw_literal('"x"')

    def test_mixed(self):
        assert is_raw_literal('"x" r"y"')
