"""
=============================================================================
CACHE DISPATCHER
=============================================================================

Answers every request from the two in-memory caches.

=============================================================================
RESOLUTION ORDER
=============================================================================

    request path P
          │
          ▼
    ┌──────────────────────────────┐   yes   ┌──────────────────────────┐
    │ P ends with /error/<digits>? ├────────►│ custom page cached?      │
    └──────────────┬───────────────┘         │  yes → 200, cached bytes │
                   │ no                      │  no  → generated page    │
                   ▼                         └──────────────────────────┘
    ┌──────────────────────────────┐   yes
    │ P in the content cache?      ├────────► 200, cached bytes, its type
    └──────────────┬───────────────┘
                   │ no
                   ▼
    ┌──────────────────────────────┐   yes
    │ P ends with /error/<other>?  ├────────► generated 500 page
    └──────────────┬───────────────┘
                   │ no
                   ▼
         redirect to /error/404  ──► (the client comes back, first branch)

Numeric error paths are tested FIRST: a content file that happens to
live at /error/404 is never served from the content cache. Content
under a non-numeric error path (/blog/error/handling.html) is served.

Lookups are exact string matches. No filesystem access happens here,
and nothing is written, so one dispatcher serves every worker thread.

=============================================================================
"""

import logging
import re
from enum import Enum
from typing import Optional

from ..cache.entries import (
    INDEX_CONTENT_TYPE,
    ContentCache,
    ErrorCache,
    EMPTY_CONTENT_CACHE,
    EMPTY_ERROR_CACHE,
)
from ..cache.loader import load_content, load_error_pages
from ..config import ServerConfig
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus, is_valid_status
from .error_pages import parse_error_code, render_error_page


logger = logging.getLogger(__name__)

ERROR_CONTENT_TYPE = INDEX_CONTENT_TYPE


class ErrorPathMatcher:
    """
    Recognizes error page paths at the end of a request path.

    match_code() only accepts "<prefix>/<digits>"; match() accepts any
    final segment without a slash, which the classifier consults only
    after the content cache.

        >>> matcher = ErrorPathMatcher()
        >>> matcher.match_code("/error/404")
        '404'
        >>> matcher.match_code("/docs/error/abc") is None
        True
        >>> matcher.match("/docs/error/abc")
        'abc'
        >>> matcher.match("/error/404/") is None
        True
    """

    def __init__(self, prefix: str = "/error"):
        self.prefix = prefix.rstrip("/")
        self._code_pattern = re.compile(re.escape(self.prefix) + r"/([0-9]+)$")
        self._segment_pattern = re.compile(re.escape(self.prefix) + r"/([^/]+)$")

    def match_code(self, path: str) -> Optional[str]:
        """Return the digits of a numeric error path, or None."""
        found = self._code_pattern.search(path)
        return found.group(1) if found else None

    def match(self, path: str) -> Optional[str]:
        """Return the last segment of any error path, or None."""
        found = self._segment_pattern.search(path)
        return found.group(1) if found else None


class PathKind(Enum):
    """What a request path refers to."""

    ERROR = "error"
    CONTENT = "content"
    UNKNOWN = "unknown"


class PathClassifier:
    """
    Sorts request paths into error, content or unknown.

        /error/<digits>        error, even when a content file has that path
        cached content path    content
        /error/<anything>      error (answered with 500)
        everything else        unknown
    """

    def __init__(self, content: ContentCache, matcher: ErrorPathMatcher):
        self._content = content
        self._matcher = matcher

    def classify(self, path: str) -> PathKind:
        if self._matcher.match_code(path) is not None:
            return PathKind.ERROR
        if path in self._content:
            return PathKind.CONTENT
        if self._matcher.match(path) is not None:
            return PathKind.ERROR
        return PathKind.UNKNOWN


class CacheDispatcher:
    """
    Request handler serving pre-loaded content and error pages.

    =========================================================================
    USAGE
    =========================================================================

        dispatcher = CacheDispatcher.from_config(config)  # loads both trees
        response = dispatcher.handle(request)              # any method

        # or with caches built elsewhere (tests, embedding):
        dispatcher = CacheDispatcher(content, errors)
        response = dispatcher.resolve("/blog")

    =========================================================================
    STATUS POLICY
    =========================================================================

        cached content                    200
        cached custom error page          200
        generated error page              its own code when 100-599,
                                          500 otherwise
                                          (200 with error_status_from_code
                                          set to False)
        unknown path                      redirect_status (303 or 404)

    =========================================================================
    """

    def __init__(
        self,
        content: ContentCache = EMPTY_CONTENT_CACHE,
        errors: ErrorCache = EMPTY_ERROR_CACHE,
        *,
        error_url_prefix: str = "/error",
        redirect_status: int = HTTPStatus.SEE_OTHER,
        error_status_from_code: bool = True,
    ):
        self._content = content
        self._errors = errors
        self._matcher = ErrorPathMatcher(error_url_prefix)
        self._classifier = PathClassifier(content, self._matcher)
        self.redirect_status = redirect_status
        self.error_status_from_code = error_status_from_code
        self.not_found_location = f"{self._matcher.prefix}/{int(HTTPStatus.NOT_FOUND)}"

    @classmethod
    def from_config(cls, config: ServerConfig) -> "CacheDispatcher":
        """
        Load both caches as configured and build a dispatcher.

        Raises:
            CacheLoadError: if either tree cannot be loaded.
        """
        content = load_content(config.content_dir, index_file=config.index_file)
        errors = load_error_pages(config.error_dir, url_prefix=config.error_url_prefix)
        return cls(
            content,
            errors,
            error_url_prefix=config.error_url_prefix,
            redirect_status=config.redirect_status,
            error_status_from_code=config.error_status_from_code,
        )

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Handle a request. The method is not looked at."""
        return self.resolve(request.path)

    def resolve(self, path: str) -> HTTPResponse:
        """Build the response for a request path."""
        kind = self._classifier.classify(path)

        if kind is PathKind.ERROR:
            return self._serve_error(path)
        if kind is PathKind.CONTENT:
            return self._serve_content(path)
        return self._redirect_missing(path)

    def _serve_error(self, path: str) -> HTTPResponse:
        cached = self._errors.get(path)
        if cached is not None:
            return (ResponseBuilder()
                .status(HTTPStatus.OK)
                .content_type(ERROR_CONTENT_TYPE)
                .body(cached)
                .build())

        code = parse_error_code(self._matcher.match(path) or "")
        logger.debug(f"Generating error page {code} for {path}")

        return (ResponseBuilder()
            .status(self._generated_status(code))
            .content_type(ERROR_CONTENT_TYPE)
            .body(render_error_page(code))
            .build())

    def _generated_status(self, code: int) -> int:
        if not self.error_status_from_code:
            return HTTPStatus.OK
        if is_valid_status(code):
            return code
        return HTTPStatus.INTERNAL_SERVER_ERROR

    def _serve_content(self, path: str) -> HTTPResponse:
        entry = self._content[path]
        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type(entry.mime_type)
            .body(entry.data)
            .build())

    def _redirect_missing(self, path: str) -> HTTPResponse:
        logger.debug(f"No content for {path}, redirecting to {self.not_found_location}")
        return (ResponseBuilder()
            .redirect(self.not_found_location, self.redirect_status)
            .build())

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def content_paths(self) -> list[str]:
        """Sorted list of every servable content path."""
        return sorted(self._content)

    def error_paths(self) -> list[str]:
        """Sorted list of every custom error page path."""
        return sorted(self._errors)

    def __repr__(self) -> str:
        return (
            f"CacheDispatcher(content={len(self._content)} paths, "
            f"errors={len(self._errors)} pages)"
        )
