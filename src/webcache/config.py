"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All settings for the cache server in one dataclass.

=============================================================================
WHERE SETTINGS COME FROM
=============================================================================

    ServerConfig()             defaults below (development)
    ServerConfig.from_env()    WEBCACHE_* environment variables
    python -m webcache ...     CLI flags (see __main__.py)

validate() runs before anything is loaded, so a bad port or an
impossible redirect status stops the process before it reads a single
file.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .http.status_codes import HTTPStatus


# Redirect statuses accepted for the "unknown path" fallback.
REDIRECT_STATUSES = (HTTPStatus.SEE_OTHER, HTTPStatus.NOT_FOUND)


@dataclass
class ServerConfig:
    """
    Configuration for the cache server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK     host, port, backlog, buffer_size, timeout
    HTTP        keep_alive, keep_alive_timeout, max_request_size
    THREADING   workers, queue_size
    CONTENT     content_dir, error_dir, index_file, error_url_prefix,
                redirect_status, error_status_from_code
    LOGGING     log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind; "0.0.0.0" for all interfaces."""

    port: int = 8080
    """Port to listen on. 0 lets the OS pick one."""

    backlog: int = 128
    """Maximum queued connections not yet accepted."""

    buffer_size: int = 8192
    """Bytes read per recv() call."""

    timeout: Optional[float] = 30.0
    """Socket timeout for the first request on a connection, in seconds."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    """Allow several requests per TCP connection."""

    keep_alive_timeout: float = 5.0
    """Idle seconds before a kept-alive connection is closed."""

    max_request_size: int = 1024 * 1024
    """
    Largest accepted request, in bytes. The server never reads request
    bodies for anything, so this is much smaller than for an API server.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREADING
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 8
    """Worker threads handling connections."""

    queue_size: int = 128
    """Connections that may wait for a worker before new ones get 503."""

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    content_dir: Optional[str] = "serve"
    """Directory whose files are served. Must exist when set."""

    error_dir: Optional[str] = "error"
    """Directory of custom error pages (404.html, ...). May be missing."""

    index_file: str = "index.html"
    """File name that also answers for its directory ("/blog")."""

    error_url_prefix: str = "/error"
    """URL prefix of error pages; unknown paths redirect to <prefix>/404."""

    redirect_status: int = HTTPStatus.SEE_OTHER
    """
    Status of the unknown-path redirect.
    303 - browsers follow it to the error page (default)
    404 - the redirect carries the error itself, Location is a hint
    """

    error_status_from_code: bool = True
    """
    Send synthesized error pages with their own status (/error/404 -> 404).
    False answers them with 200, like a cached custom page.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    log_format: str = "text"
    """Access log format: "text" (Apache style) or "json"."""

    server_name: str = "webcache/1.0"
    """Value of the Server header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        WEBCACHE_HOST             bind address (127.0.0.1)
        WEBCACHE_PORT             port (8080)
        WEBCACHE_WORKERS          worker threads (8)
        WEBCACHE_TIMEOUT          request timeout in seconds (30)
        WEBCACHE_CONTENT_DIR      content directory (serve)
        WEBCACHE_ERROR_DIR        error page directory (error)
        WEBCACHE_REDIRECT_STATUS  303 or 404 (303)
        WEBCACHE_LOG_LEVEL        logging level (INFO)
        WEBCACHE_LOG_FORMAT       text or json (text)
        """
        return cls(
            host=os.getenv("WEBCACHE_HOST", "127.0.0.1"),
            port=int(os.getenv("WEBCACHE_PORT", "8080")),
            workers=int(os.getenv("WEBCACHE_WORKERS", "8")),
            timeout=float(os.getenv("WEBCACHE_TIMEOUT", "30")),
            content_dir=os.getenv("WEBCACHE_CONTENT_DIR", "serve"),
            error_dir=os.getenv("WEBCACHE_ERROR_DIR", "error"),
            redirect_status=int(os.getenv("WEBCACHE_REDIRECT_STATUS", "303")),
            log_level=os.getenv("WEBCACHE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("WEBCACHE_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Check every value, raising ValueError on the first bad one.

        Called by the server before any file is loaded.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.workers < 1:
            raise ValueError("workers must be >= 1")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.redirect_status not in REDIRECT_STATUSES:
            raise ValueError(
                f"redirect_status must be 303 or 404, got {self.redirect_status}"
            )

        if not self.index_file or "/" in self.index_file:
            raise ValueError(f"index_file must be a plain file name: {self.index_file!r}")

        if not self.error_url_prefix.startswith("/") or self.error_url_prefix == "/":
            raise ValueError(
                f"error_url_prefix must start with / and name a path: {self.error_url_prefix!r}"
            )

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json': {self.log_format!r}")
