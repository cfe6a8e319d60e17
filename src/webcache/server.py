"""
=============================================================================
CACHE SERVER
=============================================================================

Ties the pieces together:

    ServerConfig ──► CacheDispatcher.from_config()   (load both trees, once)
                          │
    SocketServer ──► ThreadPool ──► Connection loop
                                        │
                         RequestParser ──► middleware ──► dispatcher.handle

=============================================================================
STARTUP ORDER
=============================================================================

    1. validate config             ValueError stops everything
    2. configure logging
    3. load content + error pages  CacheLoadError stops everything
    4. start worker threads
    5. bind and accept

The caches are complete and frozen before step 4, so no worker can
ever observe a partially loaded cache.

=============================================================================
"""

import logging
from typing import Callable, Optional

from .config import ServerConfig
from .core import Connection, RequestTooLarge, SocketServer, ThreadPool
from .errors import CacheLoadError
from .handlers import CacheDispatcher
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    error_response,
)
from .middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the process."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("webcache").setLevel(numeric_level)


class WebCacheServer:
    """
    HTTP server that answers every request from memory.

    =========================================================================
    USAGE
    =========================================================================

        server = WebCacheServer(ServerConfig(content_dir="public"))
        server.run()                          # blocks until Ctrl+C

        # with caches built elsewhere
        server = WebCacheServer(config, dispatcher=CacheDispatcher(content))

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        dispatcher: Optional[CacheDispatcher] = None,
    ):
        self.config = config or ServerConfig()
        self.config.validate()

        self._dispatcher = dispatcher
        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            workers=self.config.workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))

        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "WebCacheServer":
        """Add middleware inside the access logger. Returns self."""
        self._middleware.add(middleware)
        return self

    @property
    def dispatcher(self) -> CacheDispatcher:
        """The dispatcher, loading the caches on first access."""
        if self._dispatcher is None:
            self._dispatcher = self.load()
        return self._dispatcher

    @property
    def address(self) -> tuple[str, int]:
        return self._socket_server.address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server accepts connections."""
        return self._socket_server.wait_until_ready(timeout)

    def load(self) -> CacheDispatcher:
        """
        Load both caches from the configured directories.

        Raises:
            CacheLoadError: logged once here, then re-raised.
        """
        try:
            dispatcher = CacheDispatcher.from_config(self.config)
        except CacheLoadError as e:
            logger.error(f"Cannot start, content failed to load: {e}")
            raise
        logger.info(f"Cache ready: {dispatcher!r}")
        return dispatcher

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Load content and serve until shutdown (blocking).

        Raises:
            CacheLoadError: content could not be loaded; nothing was served.
            OSError: the address could not be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        setup_logging(self.config.log_level)

        self._handler = self._middleware.wrap(self.dispatcher.handle)
        self._thread_pool.start()
        self._running = True

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop; run() returns shortly after."""
        self._socket_server.shutdown()

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._socket_server.shutdown()
        self._thread_pool.shutdown(timeout=self.config.keep_alive_timeout + 5.0)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Hand an accepted connection to the pool, or refuse it with 503."""
        if not self._thread_pool.submit(self._process_connection, conn):
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """Keep-alive loop for one connection (runs on a worker thread)."""
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except RequestTooLarge as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    self._send_error(conn, e.status_code, str(e))
                    break

                conn.state = conn.state.PROCESSING
                response = self._respond(conn, request)
                keep_alive = request.is_keep_alive and self.config.keep_alive

                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if request.method == "HEAD":
                    response = response.without_body()

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    break
                if not keep_alive:
                    break
                conn.set_keep_alive()

    def _respond(self, conn: Connection, request: HTTPRequest) -> HTTPResponse:
        try:
            return self._handler(request)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")

    def _send_error(self, conn: Connection, status: int, message: str):
        """Answer a request that never reached the dispatcher."""
        conn.send_response(error_response(status, message).to_bytes(self.config.server_name))


def create_server(config: Optional[ServerConfig] = None) -> WebCacheServer:
    """Create a server; content is loaded when it starts."""
    return WebCacheServer(config)
