"""
HTTP protocol layer: request parsing, response building, status codes
and MIME types.
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import HTTPResponse, ResponseBuilder, error_response, format_http_date
from .status_codes import HTTPStatus, reason_phrase, is_valid_status
from .mime_types import get_mime_type, type_by_extension

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "error_response",
    "format_http_date",

    # Status codes
    "HTTPStatus",
    "reason_phrase",
    "is_valid_status",

    # MIME types
    "get_mime_type",
    "type_by_extension",
]
