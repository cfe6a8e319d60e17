"""
Request handlers.

CacheDispatcher is the only handler the server runs: it answers every
request from memory.
"""

from .dispatcher import CacheDispatcher, ErrorPathMatcher, PathClassifier, PathKind
from .error_pages import ERROR_PAGE_TEMPLATE, parse_error_code, render_error_page

__all__ = [
    "CacheDispatcher",
    "ErrorPathMatcher",
    "PathClassifier",
    "PathKind",
    "ERROR_PAGE_TEMPLATE",
    "parse_error_code",
    "render_error_page",
]
