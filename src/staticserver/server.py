"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Ties the transport to the static file pipeline.

    SocketServer.accept()
        │
        ▼
    ThreadPool ──▶ _process_connection(conn)        (one worker thread)
                      │
                      └── keep-alive loop:
                            read_request()     → bytes
                            RequestParser      → HTTPRequest   (400/413/505)
                            middleware(handler)→ HTTPResponse
                            Connection header
                            send_stream()      → always closes the response
                                                 (HEAD: head only)

=============================================================================
WHEN THE CONNECTION IS CLOSED
=============================================================================

    ┌────────────────────────────────────────────┬───────────────────────┐
    │ Situation                                  │ After the response    │
    ├────────────────────────────────────────────┼───────────────────────┤
    │ client sent "Connection: close" / HTTP/1.0 │ close                 │
    │ keep_alive disabled in config              │ close                 │
    │ body length unknown (gzip stream)          │ close (end of body    │
    │                                            │ IS the close)         │
    │ peer vanished mid-body                     │ close                 │
    │ reading the file failed mid-body           │ close (logged; the    │
    │                                            │ head is already sent) │
    │ otherwise                                  │ wait for next request │
    └────────────────────────────────────────────┴───────────────────────┘

=============================================================================
"""

import logging
from typing import Optional, Callable

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, RequestTooLarge, ThreadPool
from .handlers import StaticFileHandler
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, error_response,
)
from .middleware import LoggingMiddleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Multi-threaded HTTP/1.1 server for the files under `config.root`.

    Usage:
        server = HTTPServer(ServerConfig(port=3000, root="./public"))
        server.run()                      # blocks until SIGINT / SIGTERM

    From another thread (tests, embedding):
        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_ready()
        ...
        server.shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None, access_log: bool = True):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self.static_files = StaticFileHandler(
            root=self.config.root,
            index_file=self.config.index_file,
            chunk_size=self.config.chunk_size,
            compression_level=self.config.compression_level,
        )

        self._middleware = MiddlewarePipeline()
        if access_log:
            self._middleware.add(LoggingMiddleware(self.config.access_log_format))

        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False

    @property
    def address(self) -> tuple[str, int]:
        """(host, port) actually bound once running."""
        return self._socket_server.address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.ready.wait(timeout)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self):
        """Serve until shutdown() or a termination signal."""
        self._running = True
        self._handler = self._middleware.wrap(self.static_files.handle)
        self._thread_pool.start()

        logger.info(f"Serving {self.config.root} on {self.config.host}:{self.config.port}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._stop()

    def shutdown(self):
        """Stop accepting connections; run() then returns."""
        self._socket_server.shutdown()

    def setup_logging(self):
        """Configure the root logger from config.log_level."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("staticserver").setLevel(level)

    def _stop(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            queue_timeout=self.config.timeout,
        )
        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE)
            conn.close()

    def _process_connection(self, conn: Connection):
        """Keep-alive loop for one connection (runs in a worker thread)."""
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT)
                    break
                except RequestTooLarge:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE)
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.debug(f"[{conn.id}] Bad request: {e}")
                    self._send_error(conn, e.status_code)
                    break

                conn.state = ConnectionState.PROCESSING
                response = self._respond(conn, request)

                keep_open = (
                    self.config.keep_alive
                    and request.is_keep_alive
                    and response.has_known_length
                )
                if keep_open:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                # HEAD gets the full GET response minus the body bytes
                try:
                    sent = conn.send_stream(
                        response.head_bytes(self.config.server_name),
                        response,
                        include_body=request.method != "HEAD",
                    )
                except OSError as e:
                    logger.error(f"[{conn.id}] Stream aborted for {request.target}: {e}")
                    break

                if not sent or not keep_open:
                    break

                conn.set_keep_alive()

    def _respond(self, conn: Connection, request: HTTPRequest) -> HTTPResponse:
        try:
            return self._handler(request)
        except Exception as e:
            # The handler already maps its own failures to 500; this catches
            # anything raised by middleware
            logger.exception(f"[{conn.id}] Handler error: {e}")
            return error_response(HTTPStatus.INTERNAL_SERVER_ERROR)

    def _send_error(self, conn: Connection, status: HTTPStatus):
        """Error sent outside the pipeline (parse errors, timeouts)."""
        response = error_response(status, Connection="close")
        conn.send_response(response.to_bytes(self.config.server_name))
