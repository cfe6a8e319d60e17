"""
=============================================================================
CACHE LOADERS
=============================================================================

Reads the content tree and the error-page tree into memory, once, before
the server accepts its first connection.

=============================================================================
CONTENT TREE ──► CONTENT CACHE
=============================================================================

    serve/                          key                  Content-Type
    ├── index.html          ──►     /index.html          text/html; charset=utf-8
    │                       ──►     /                    text/html; utf-8
    ├── style.css           ──►     /style.css           text/css; charset=utf-8
    └── blog/
        ├── index.html      ──►     /blog/index.html     text/html; charset=utf-8
        │                   ──►     /blog                text/html; utf-8
        └── logo.png        ──►     /blog/logo.png       image/png

A file named like the index sentinel is registered twice. Both keys
point at the same bytes object; only the Content-Type differs.

=============================================================================
ERROR TREE ──► ERROR CACHE
=============================================================================

    error/
    ├── 404.html            ──►     /error/404
    ├── 500.html            ──►     /error/500
    └── oops.html           ──►     (skipped, not a numeric code)

=============================================================================
FAILURE POLICY
=============================================================================

Any OSError while walking or reading aborts the whole load with a
CacheLoadError. There is no partial result: a cache missing half its
files would quietly redirect real pages to /error/404.

=============================================================================
"""

import logging
import os
import re
import stat
from pathlib import Path
from typing import Iterator, Optional, Union

from ..errors import CacheLoadError
from ..http.mime_types import type_by_extension
from .entries import (
    INDEX_CONTENT_TYPE,
    ContentCache,
    ContentEntry,
    ErrorCache,
    EMPTY_CONTENT_CACHE,
    EMPTY_ERROR_CACHE,
    freeze,
)


logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


# =============================================================================
# DIRECTORY WALK
# =============================================================================

def _walk_files(root: Path) -> Iterator[tuple[Path, str]]:
    """
    Yield (filesystem path, relative posix path) for every regular file
    under root, in sorted order.

    Symlinks to files are followed; symlinked directories are not
    descended into. Sockets, FIFOs and device nodes are skipped.
    """
    def _fail(error: OSError) -> None:
        raise CacheLoadError("Cannot read directory", error.filename or str(root), error)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_fail):
        dirnames.sort()
        for name in sorted(filenames):
            full_path = Path(dirpath) / name
            try:
                mode = os.stat(full_path).st_mode
            except OSError as e:
                raise CacheLoadError("Cannot stat file", str(full_path), e)

            if not stat.S_ISREG(mode):
                logger.debug(f"Skipping non-regular file {full_path}")
                continue

            yield full_path, full_path.relative_to(root).as_posix()


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise CacheLoadError("Cannot read file", str(path), e)


# =============================================================================
# CONTENT CACHE
# =============================================================================

def shorten_index_path(path: str, index_file: str = "index.html") -> str:
    """
    Directory path under which an index file is also reachable.

        >>> shorten_index_path("/blog/index.html")
        '/blog'
        >>> shorten_index_path("/index.html")
        '/'
    """
    short = path[: len(path) - len(index_file)]
    if short != "/" and short.endswith("/"):
        short = short[:-1]
    return short


def load_content(
    root: Optional[PathLike],
    index_file: str = "index.html",
) -> ContentCache:
    """
    Load every file under root into a read-only ContentCache.

    Args:
        root: Content directory. None gives an empty cache.
        index_file: Base name treated as a directory's default document.

    Returns:
        Mapping of URL path to ContentEntry.

    Raises:
        CacheLoadError: root is missing or any file cannot be read.
    """
    if root is None:
        logger.info("No content directory configured, content cache is empty")
        return EMPTY_CONTENT_CACHE

    root = Path(root)
    if not root.is_dir():
        raise CacheLoadError("Content directory does not exist", str(root))

    cache: dict[str, ContentEntry] = {}
    total_bytes = 0

    for full_path, relative in _walk_files(root):
        data = _read(full_path)
        key = "/" + relative
        total_bytes += len(data)

        if full_path.name == index_file:
            short = shorten_index_path(key, index_file)
            cache[short] = ContentEntry(short, INDEX_CONTENT_TYPE, data)

        cache[key] = ContentEntry(key, type_by_extension(key), data)

    logger.info(
        f"Loaded {len(cache)} content paths ({total_bytes} bytes) from {root}"
    )
    return freeze(cache)


# =============================================================================
# ERROR CACHE
# =============================================================================

def load_error_pages(
    root: Optional[PathLike],
    url_prefix: str = "/error",
) -> ErrorCache:
    """
    Load custom error pages into a read-only ErrorCache.

    "404.html" is registered as "<url_prefix>/404". Files that would not
    produce a numeric "<url_prefix>/<digits>" key are skipped with a
    warning.

    An unset or missing directory is valid and gives an empty cache:
    every error page is then synthesized.

    Raises:
        CacheLoadError: root exists but is not a directory, or a page
            cannot be read.
    """
    if root is None:
        logger.info("No error page directory configured")
        return EMPTY_ERROR_CACHE

    root = Path(root)
    if not root.exists():
        logger.info(f"Error page directory {root} not found, using generated pages")
        return EMPTY_ERROR_CACHE
    if not root.is_dir():
        raise CacheLoadError("Error page path is not a directory", str(root))

    prefix = url_prefix.rstrip("/")
    key_pattern = re.compile(re.escape(prefix) + r"/[0-9]+")
    cache: dict[str, bytes] = {}

    for full_path, relative in _walk_files(root):
        key = prefix + "/" + relative.removesuffix(".html")
        if not key_pattern.fullmatch(key):
            logger.warning(f"Skipping error page {full_path}: not named after a status code")
            continue
        cache[key] = _read(full_path)

    logger.info(f"Loaded {len(cache)} custom error pages from {root}")
    return freeze(cache)
