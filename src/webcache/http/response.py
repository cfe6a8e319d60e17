"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them for the socket.

=============================================================================
RESPONSE ANATOMY
=============================================================================

    HTTP/1.1 200 OK\r\n                      ← status line
    Content-Type: text/css; charset=utf-8\r\n ← set by the cache handler
    Content-Length: 1843\r\n                  ← added by to_bytes()
    Date: Mon, 19 Oct 2026 12:00:00 GMT\r\n   ← added by to_bytes()
    Server: webcache/1.0\r\n                  ← added by to_bytes()
    \r\n
    body { margin: 0 } ...                    ← cached bytes, as loaded

The cache handler only ever decides three things: the status, at most
one Content-Type (or a Location for redirects) and the body. Everything
that frames the message on the wire is the job of to_bytes().

Status codes are plain integers here, not only HTTPStatus members:
synthesized error pages may carry any code a client asked for
(/error/418), and the status line must still be printable.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Union

from .status_codes import HTTPStatus, reason_phrase


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

    Handlers usually build these through ResponseBuilder.
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        The first line of the response, e.g. "HTTP/1.1 404 Not Found".

        Codes without a standard phrase keep the trailing space, which
        RFC 7230 allows (reason-phrase may be empty).
        """
        return f"{self.version} {int(self.status)} {reason_phrase(self.status)}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header and return self for chaining."""
        self.headers[name] = value
        return self

    def without_body(self) -> "HTTPResponse":
        """
        Copy of this response with an empty body but the original
        Content-Length, as required for HEAD requests.
        """
        headers = dict(self.headers)
        headers.setdefault("Content-Length", str(len(self.body)))
        return HTTPResponse(
            status=self.status,
            headers=headers,
            body=b"",
            version=self.version,
        )

    def to_bytes(self, server_name: str = "webcache/1.0") -> bytes:
        """
        Serialize the response to bytes for socket.sendall().

        Adds Content-Length, Date and Server unless already present.
        The stored headers are not modified.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))
        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("text/html; utf-8")
            .body(cached_bytes)
            .build())

    Every method except build() returns self.
    """

    def __init__(self, server_name: str = "webcache/1.0"):
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._server_name = server_name

    # =========================================================================
    # STATUS
    # =========================================================================

    def status(self, status: int) -> "ResponseBuilder":
        """Set the status code (HTTPStatus member or plain int)."""
        self._status = status
        return self

    # =========================================================================
    # HEADERS
    # =========================================================================

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header."""
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """
        Set the Content-Type header.

        An empty value leaves the header out entirely: cached files with
        an unknown extension are sent without a Content-Type.
        """
        if content_type:
            self._headers["Content-Type"] = content_type
        return self

    def close_connection(self) -> "ResponseBuilder":
        """Set Connection: close."""
        self._headers["Connection"] = "close"
        return self

    # =========================================================================
    # BODY
    # =========================================================================

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the body; strings are encoded as UTF-8."""
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """Plain text body with a text/plain Content-Type."""
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = "text/plain; charset=utf-8"
        return self

    # =========================================================================
    # REDIRECTS
    # =========================================================================

    def redirect(self, location: str, status: int = HTTPStatus.SEE_OTHER) -> "ResponseBuilder":
        """
        Redirect to location.

        =====================================================================
        WHICH STATUS?
        =====================================================================

            303 See Other   - the client follows Location with a GET.
                              Default for "page missing, go to the
                              error page".
            404 Not Found   - Location is sent, but browsers show the
                              (empty) 404 body instead of following it.
                              Kept for clients that treat the redirect
                              target as a hint only.

        =====================================================================
        """
        self._status = status
        self._headers["Location"] = location
        return self

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(self) -> HTTPResponse:
        """Construct the HTTPResponse."""
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )

    def to_bytes(self) -> bytes:
        """Build and serialize in one step."""
        return self.build().to_bytes(self._server_name)


def format_http_date(dt: datetime) -> str:
    """
    Format a UTC datetime as an RFC 7231 HTTP-date.

        >>> format_http_date(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))
        'Thu, 01 Jan 2026 12:00:00 GMT'
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def error_response(status: int, message: str) -> HTTPResponse:
    """
    Plain-text error used by the transport layer (parse errors, overload).

    These never reach the cache handler, so they do not go through the
    error page machinery.
    """
    return (ResponseBuilder()
        .status(status)
        .text(message)
        .close_connection()
        .build())
