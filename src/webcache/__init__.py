"""
=============================================================================
WEBCACHE
=============================================================================

A small HTTP server that serves a fixed set of files from memory.

    serve/   ──► loaded once at startup ──► answered from a frozen dict
    error/   ──► custom error pages (optional), generated ones otherwise

No file is opened while requests are being served. Unknown paths are
redirected to /error/404, which is answered by a custom page or a
generated one.

    python -m webcache --content ./serve --errors ./error --port 8080

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .errors import CacheLoadError, WebCacheError
from .handlers import CacheDispatcher
from .server import WebCacheServer, create_server

__all__ = [
    "ServerConfig",
    "CacheDispatcher",
    "CacheLoadError",
    "WebCacheError",
    "WebCacheServer",
    "create_server",
    "__version__",
]
