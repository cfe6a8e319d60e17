"""
Exceptions raised by webcache outside the HTTP parsing layer.
"""

from typing import Optional


class WebCacheError(Exception):
    """Base class for webcache errors."""


class CacheLoadError(WebCacheError):
    """
    Raised when a content or error-page tree cannot be loaded.

    Loading is all-or-nothing: when this is raised no cache is returned,
    and the server must not start. A half-filled cache would answer
    redirects to /error/404 for files that actually exist.

    Attributes:
        path: The file or directory that failed.
        cause: The underlying OSError, if any.
    """

    def __init__(self, message: str, path: str, cause: Optional[OSError] = None):
        super().__init__(f"{message}: {path}" + (f" ({cause})" if cause else ""))
        self.path = path
        self.cause = cause
