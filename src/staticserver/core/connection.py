"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: reads whole HTTP requests out of the
TCP byte stream and writes responses back, fixed or streamed.

=============================================================================
READING: TCP HAS NO MESSAGE BOUNDARIES
=============================================================================

A request can arrive split over many recv() calls, or two pipelined
requests can arrive in one. Bytes are buffered until the blank line that
ends the head, then until Content-Length body bytes are present; anything
after that stays buffered for the next request.

    recv() → "GET /a.txt HT"          buffer, keep reading
    recv() → "TP/1.1\r\nHost: x\r\n"  buffer, keep reading
    recv() → "\r\nGET /b.txt ..."     head complete → return request #1,
                                      "GET /b.txt ..." stays buffered

=============================================================================
WRITING: STREAMED BODIES MUST ALWAYS BE CLOSED
=============================================================================

    send_stream(head, response)
        │
        ├── sendall(head)
        ├── for chunk in response.iter_body(): sendall(chunk)
        │        ↑ peer may vanish here (EPIPE / ECONNRESET)
        └── finally: response.close()    ← file descriptor released
                                            on success AND on failure

=============================================================================
"""

import socket
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional

from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


class RequestTooLarge(ValueError):
    """The request head or body exceeded max_request_size."""


@dataclass
class Connection:
    """
    One client connection.

    Attributes:
        socket:           The accepted client socket.
        address:          Client's (ip, port).
        id:               Short identifier used in log lines.
        state:            Current ConnectionState.
        requests_handled: Requests read on this connection so far.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request (head and body).

        Returns:
            The request bytes, or None if the peer closed the connection
            or an idle keep-alive connection timed out.

        Raises:
            TimeoutError:    If the first request does not arrive in time.
            RequestTooLarge: If the request exceeds max_request_size.
        """
        self.state = ConnectionState.READING

        # Subsequent requests on a kept-alive connection get less patience
        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._buffer += chunk
                self._check_size()

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break
                self._buffer += chunk
                self._check_size()

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

        finally:
            self.socket.settimeout(self.timeout)

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _check_size(self) -> None:
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLarge(f"Request too large: {len(self._buffer)} bytes")

    @staticmethod
    def _parse_content_length(head: bytes) -> int:
        """Content-Length from the raw head, 0 when absent or invalid."""
        for line in head.decode("utf-8", errors="replace").lower().split("\r\n"):
            if line.startswith("content-length:"):
                value = line.split(":", 1)[1].strip()
                return int(value) if value.isdigit() else 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send bytes with sendall().

        Returns:
            True on success, False if the peer is gone.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def send_stream(self, head: bytes, response: HTTPResponse, include_body: bool = True) -> bool:
        """
        Send a response head followed by its body chunks.

        The response is closed before returning, whatever happens. With
        include_body=False (HEAD requests) only the head is sent.

        Returns:
            True if every byte was sent, False if the peer disconnected.

        Raises:
            OSError: If reading the body source fails mid-transfer. Some
                     bytes may already be on the wire, so the caller must
                     close the connection.
        """
        self.state = ConnectionState.WRITING
        try:
            if not self.send_response(head):
                return False
            if not include_body:
                return True
            for chunk in response.iter_body():
                if not self.send_response(chunk):
                    logger.debug(f"[{self.id}] Peer disconnected mid-stream")
                    return False
            return True
        finally:
            response.close()

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close gracefully: shutdown(SHUT_WR) sends FIN, whatever the client
        still sends is drained briefly, then the descriptor is released.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
