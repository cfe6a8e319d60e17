"""
Unit tests for Content-Type lookup.
"""

import pytest

from webcache.http.mime_types import get_mime_type, is_text_type, type_by_extension


@pytest.mark.parametrize("path, expected", [
    ("/index.html", "text/html; charset=utf-8"),
    ("/blog/post.HTM", "text/html; charset=utf-8"),
    ("/style.css", "text/css; charset=utf-8"),
    ("/app.js", "text/javascript; charset=utf-8"),
    ("/data.json", "application/json; charset=utf-8"),
    ("/icon.svg", "image/svg+xml; charset=utf-8"),
    ("/logo.png", "image/png"),
    ("/photo.jpeg", "image/jpeg"),
    ("/font.woff2", "font/woff2"),
    ("/doc.pdf", "application/pdf"),
])
def test_type_by_extension(path: str, expected: str):
    assert type_by_extension(path) == expected


def test_no_extension_is_empty():
    assert type_by_extension("/README") == ""
    assert get_mime_type("/LICENSE") == ""


def test_unknown_extension_is_empty():
    assert type_by_extension("/blob.nosuchextension") == ""


def test_extension_of_directory_is_ignored():
    assert get_mime_type("/v1.2/README") == ""


def test_custom_charset():
    assert type_by_extension("/a.txt", charset="iso-8859-1") == "text/plain; charset=iso-8859-1"


def test_is_text_type():
    assert is_text_type("text/css")
    assert is_text_type("application/json")
    assert not is_text_type("image/png")
    assert not is_text_type("application/pdf")
