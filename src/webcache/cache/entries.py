"""
Cached content types.

Both caches are plain dicts while they are being filled and are handed
out only as read-only views (types.MappingProxyType). Worker threads
share them without locking: nothing can write to them once loading has
returned.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


# Content-Type for the shortened "/blog" entry of a directory index.
INDEX_CONTENT_TYPE = "text/html; utf-8"


@dataclass(frozen=True)
class ContentEntry:
    """
    One cached file.

    Attributes:
        path: URL path the entry is registered under ("/blog/index.html").
        mime_type: Content-Type to send, "" to send none.
        data: The file's bytes, exactly as read from disk.
    """

    path: str
    mime_type: str
    data: bytes


ContentCache = Mapping[str, ContentEntry]
ErrorCache = Mapping[str, bytes]


def freeze(entries: dict) -> Mapping:
    """Return a read-only view over a private copy of entries."""
    return MappingProxyType(dict(entries))


EMPTY_CONTENT_CACHE: ContentCache = freeze({})
EMPTY_ERROR_CACHE: ErrorCache = freeze({})
