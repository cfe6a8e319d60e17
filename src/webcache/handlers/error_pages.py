"""
Generated error pages.

Used whenever an error page is requested that has no custom file in the
error directory. The markup is fixed; only the code (twice) and the
reason phrase change:

    <html><head><title>Error 404</title></head>
    <body style="text-align:center;"><h1>404</h1><p>Not Found</p></body></html>

(shown wrapped here; the real page is a single line)
"""

from ..http.status_codes import HTTPStatus, reason_phrase


ERROR_PAGE_TEMPLATE = (
    "<html><head><title>Error {code}</title></head>"
    '<body style="text-align:center;"><h1>{code}</h1><p>{phrase}</p></body></html>'
)

DEFAULT_ERROR_CODE = HTTPStatus.INTERNAL_SERVER_ERROR


def parse_error_code(segment: str, default: int = DEFAULT_ERROR_CODE) -> int:
    """
    Parse the last path segment of an error URL as a status code.

    Only ASCII decimal digits are accepted; anything else ("abc", "+4",
    "٤٠٤") gives default.

        >>> parse_error_code("404")
        404
        >>> parse_error_code("abc")
        500
    """
    if segment.isascii() and segment.isdigit():
        return int(segment)
    return int(default)


def render_error_page(code: int) -> bytes:
    """Render the generated page for code; unknown codes get an empty phrase."""
    return ERROR_PAGE_TEMPLATE.format(code=code, phrase=reason_phrase(code)).encode("utf-8")
