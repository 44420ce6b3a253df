"""
Unit tests for whitespace normalization and minimum-length checks.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from contextiq.errors import ContentTooShortError
from contextiq.normalizer import (
    ContentNormalizer,
    collapse_whitespace,
    ensure_min_length,
    normalize_line_endings,
    normalize_whitespace,
    preview,
)


@pytest.mark.unit
class TestWhitespace:
    def test_line_endings(self):
        assert normalize_line_endings("a\r\nb\rc\nd") == "a\nb\nc\nd"

    def test_normalize_whitespace_keeps_paragraphs(self):
        text = "  Title\t\t here \r\n\r\n\r\n\r\n  Body   text  \n"
        assert normalize_whitespace(text) == "Title here\n\nBody text"

    def test_collapse_whitespace_flattens_lines(self):
        assert collapse_whitespace(" a \n\n b\t c d ") == "a b c d"

    def test_preview(self):
        assert preview("abcdef", 4) == "abcd"
        assert preview("ab", 4) == "ab"

    @given(st.text())
    def test_normalize_whitespace_is_idempotent(self, text):
        once = normalize_whitespace(text)
        assert normalize_whitespace(once) == once

    @given(st.text())
    def test_collapse_whitespace_has_no_runs(self, text):
        result = collapse_whitespace(text)
        assert "  " not in result
        assert result == result.strip()


@pytest.mark.unit
class TestMinimumLength:
    def test_ensure_min_length_passes_at_boundary(self):
        assert ensure_min_length("x" * 10, 10) == "x" * 10

    def test_ensure_min_length_rejects_below(self):
        with pytest.raises(ContentTooShortError) as exc_info:
            ensure_min_length("x" * 9, 10)
        assert exc_info.value.length == 9
        assert exc_info.value.minimum == 10

    def test_normalize_text_uses_text_floor(self):
        normalizer = ContentNormalizer()
        assert normalizer.normalize_text("  0123456789  ") == "0123456789"
        with pytest.raises(ContentTooShortError):
            normalizer.normalize_text("   short   ")

    def test_whitespace_only_is_too_short(self):
        with pytest.raises(ContentTooShortError) as exc_info:
            ContentNormalizer().normalize_text(" \n\t \n ")
        assert exc_info.value.length == 0

    def test_normalize_web_uses_web_floor(self):
        normalizer = ContentNormalizer(min_web_length=50)
        assert normalizer.normalize_web("a" * 50) == "a" * 50
        with pytest.raises(ContentTooShortError):
            normalizer.normalize_web("a" * 49)
