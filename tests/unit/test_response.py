"""
Unit tests for HTTP response building.
"""

from datetime import datetime, timezone

import pytest

from webcache.http.response import (
    HTTPResponse,
    ResponseBuilder,
    error_response,
    format_http_date,
)
from webcache.http.status_codes import HTTPStatus, is_valid_status, reason_phrase


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        response = HTTPResponse(status=HTTPStatus.OK)
        assert response.status_line == "HTTP/1.1 200 OK"

        response = HTTPResponse(status=HTTPStatus.SEE_OTHER)
        assert response.status_line == "HTTP/1.1 303 See Other"

    def test_status_line_plain_int(self):
        """Test that plain integer codes print like enum members."""
        assert HTTPResponse(status=404).status_line == "HTTP/1.1 404 Not Found"

    def test_status_line_unknown_code(self):
        """Test that codes without a phrase keep an empty reason."""
        assert HTTPResponse(status=599).status_line == "HTTP/1.1 599 "

    def test_to_bytes_includes_headers(self):
        """Test that to_bytes includes all headers."""
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"X-Custom": "value"},
            body=b"test",
        )

        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"X-Custom: value\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert b"Server: webcache/1.0\r\n" in result
        assert b"Date: " in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_to_bytes_does_not_modify_headers(self):
        """Test that serializing leaves the stored headers alone."""
        response = HTTPResponse(body=b"x")
        response.to_bytes()

        assert response.headers == {}

    def test_to_bytes_custom_server_name(self):
        result = HTTPResponse().to_bytes(server_name="edge")
        assert b"Server: edge\r\n" in result

    def test_set_header_chaining(self):
        """Test method chaining for headers."""
        response = (HTTPResponse()
            .set_header("X-One", "1")
            .set_header("X-Two", "2"))

        assert response.headers == {"X-One": "1", "X-Two": "2"}

    def test_without_body_keeps_length(self):
        """Test the HEAD form of a response."""
        response = HTTPResponse(headers={"Content-Type": "text/css"}, body=b"abcdef")
        head = response.without_body()

        assert head.body == b""
        assert head.headers["Content-Length"] == "6"
        assert head.headers["Content-Type"] == "text/css"
        assert response.body == b"abcdef"
        assert "Content-Length" not in response.headers


class TestResponseBuilder:
    """Tests for ResponseBuilder."""

    def test_defaults(self):
        response = ResponseBuilder().build()

        assert response.status == HTTPStatus.OK
        assert response.headers == {}
        assert response.body == b""

    def test_content_type_and_body(self):
        """Test building a cached-content response."""
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("image/png")
            .body(b"\x89PNG")
            .build())

        assert response.headers == {"Content-Type": "image/png"}
        assert response.body == b"\x89PNG"

    def test_empty_content_type_is_omitted(self):
        """Test that an unknown type sends no Content-Type at all."""
        response = ResponseBuilder().content_type("").body(b"x").build()
        assert "Content-Type" not in response.headers

    def test_string_body_is_encoded(self):
        response = ResponseBuilder().body("héllo").build()
        assert response.body == "héllo".encode("utf-8")

    def test_text(self):
        response = ResponseBuilder().text("Bad Request").build()

        assert response.body == b"Bad Request"
        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"

    def test_redirect_defaults_to_see_other(self):
        """Test the redirect used for unknown paths."""
        response = ResponseBuilder().redirect("/error/404").build()

        assert response.status == HTTPStatus.SEE_OTHER
        assert response.headers == {"Location": "/error/404"}
        assert response.body == b""

    def test_redirect_with_not_found(self):
        response = ResponseBuilder().redirect("/error/404", HTTPStatus.NOT_FOUND).build()

        assert response.status == 404
        assert response.headers["Location"] == "/error/404"

    def test_close_connection(self):
        response = ResponseBuilder().close_connection().build()
        assert response.headers["Connection"] == "close"

    def test_to_bytes(self):
        result = ResponseBuilder().status(418).to_bytes()
        assert result.startswith(b"HTTP/1.1 418 I'm a teapot\r\n")


class TestErrorResponse:
    """Tests for transport-level error responses."""

    def test_error_response(self):
        response = error_response(HTTPStatus.BAD_REQUEST, "Invalid request line")

        assert response.status == 400
        assert response.body == b"Invalid request line"
        assert response.headers["Connection"] == "close"
        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"


class TestStatusCodes:
    """Tests for reason phrases and status validity."""

    @pytest.mark.parametrize("code, phrase", [
        (200, "OK"),
        (303, "See Other"),
        (404, "Not Found"),
        (413, "Request Entity Too Large"),
        (414, "Request URI Too Long"),
        (416, "Requested Range Not Satisfiable"),
        (500, "Internal Server Error"),
    ])
    def test_reason_phrase(self, code: int, phrase: str):
        assert reason_phrase(code) == phrase

    def test_unknown_code_has_empty_phrase(self):
        assert reason_phrase(999) == ""
        assert reason_phrase(299) == ""

    def test_enum_properties(self):
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.SEE_OTHER.is_redirect
        assert HTTPStatus.INTERNAL_SERVER_ERROR.is_error
        assert not HTTPStatus.OK.is_error

    @pytest.mark.parametrize("code, valid", [
        (99, False), (100, True), (404, True), (599, True), (600, False), (999, False),
    ])
    def test_is_valid_status(self, code: int, valid: bool):
        assert is_valid_status(code) is valid


def test_format_http_date():
    """Test RFC 7231 date formatting."""
    dt = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    assert format_http_date(dt) == "Thu, 01 Jan 2026 12:00:00 GMT"
