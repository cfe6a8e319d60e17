"""
Unit tests for generated error pages.
"""

import pytest

from webcache.handlers.error_pages import (
    DEFAULT_ERROR_CODE,
    ERROR_PAGE_TEMPLATE,
    parse_error_code,
    render_error_page,
)


class TestParseErrorCode:
    """Tests for parse_error_code()."""

    @pytest.mark.parametrize("segment, code", [
        ("404", 404),
        ("500", 500),
        ("0", 0),
        ("007", 7),
        ("99999", 99999),
    ])
    def test_digits(self, segment: str, code: int):
        assert parse_error_code(segment) == code

    @pytest.mark.parametrize("segment", ["abc", "", "+404", "-1", "4 04", "404.html", "٤٠٤", "²"])
    def test_non_digits_give_default(self, segment: str):
        assert parse_error_code(segment) == DEFAULT_ERROR_CODE == 500

    def test_custom_default(self):
        assert parse_error_code("x", default=404) == 404


class TestRenderErrorPage:
    """Tests for render_error_page()."""

    def test_exact_markup(self):
        """The page is a single fixed line with code and phrase filled in."""
        assert render_error_page(404) == (
            b"<html><head><title>Error 404</title></head>"
            b'<body style="text-align:center;"><h1>404</h1><p>Not Found</p></body></html>'
        )

    def test_matches_template(self):
        expected = ERROR_PAGE_TEMPLATE.format(code=503, phrase="Service Unavailable")
        assert render_error_page(503) == expected.encode("utf-8")

    def test_unknown_code_has_empty_phrase(self):
        page = render_error_page(999)

        assert b"<title>Error 999</title>" in page
        assert b"<h1>999</h1><p></p>" in page

    def test_same_code_same_bytes(self):
        assert render_error_page(500) == render_error_page(500)
