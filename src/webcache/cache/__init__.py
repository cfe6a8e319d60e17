"""
In-memory caches built once at startup.
"""

from .entries import ContentEntry, ContentCache, ErrorCache, INDEX_CONTENT_TYPE
from .loader import load_content, load_error_pages, shorten_index_path

__all__ = [
    "ContentEntry",
    "ContentCache",
    "ErrorCache",
    "INDEX_CONTENT_TYPE",
    "load_content",
    "load_error_pages",
    "shorten_index_path",
]
