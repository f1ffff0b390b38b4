"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses, either with a small in-memory body or with a
streamed body read incrementally from disk.

=============================================================================
FIXED BODY VS STREAMED BODY
=============================================================================

    FIXED (error pages, directory listings)
    ──────────────────────────────────────
        HTTPResponse(body=b"404 Not Found")
        to_bytes() → head + body, Content-Length computed for us

    STREAMED (file contents)
    ────────────────────────
        HTTPResponse(stream=FileRange(...))
        head_bytes()  → status line + headers only
        iter_body()   → chunks pulled lazily from the stream
        close()       → releases the file / compressor

    ┌─────────────────────────────────────────────────────────────────────┐
    │  A streamed body of unknown length (gzip output) is sent WITHOUT    │
    │  Content-Length; the server then closes the connection to mark the  │
    │  end of the body.                                                   │
    └─────────────────────────────────────────────────────────────────────┘

Whoever sends a streamed response MUST call close(), also when the peer
disappears mid-transfer; otherwise the file descriptor leaks.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, Optional, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

    Attributes:
        status:  Status code.
        headers: Header name → value, in insertion order.
        body:    Fixed body bytes (ignored when `stream` is set).
        stream:  Optional iterable of body chunks. If it has a close()
                 method, close() releases it.
        version: HTTP version for the status line.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    stream: Optional[Iterable[bytes]] = field(default=None, repr=False)
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 206 Partial Content"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def is_streamed(self) -> bool:
        return self.stream is not None

    @property
    def has_known_length(self) -> bool:
        """
        Whether the receiver can find the end of the body without the
        connection being closed.
        """
        if not self.status.allows_body:
            return True
        return not self.is_streamed or "Content-Length" in self.headers

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def head_bytes(self, server_name: str = "StaticServer/1.0") -> bytes:
        """
        Serialize the status line and headers, including the blank line.

        Adds Date and Server. Content-Length is added only for fixed bodies
        and never for 304.
        """
        response_headers = dict(self.headers)

        if (
            self.status.allows_body
            and not self.is_streamed
            and "Content-Length" not in response_headers
        ):
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        return "\r\n".join(lines).encode("utf-8") + b"\r\n"

    def iter_body(self) -> Iterator[bytes]:
        """Yield the body in chunks (one chunk for fixed bodies)."""
        if not self.status.allows_body:
            return
        if self.stream is None:
            if self.body:
                yield self.body
            return
        for chunk in self.stream:
            if chunk:
                yield chunk

    def close(self) -> None:
        """Release the body stream, if any. Safe to call twice."""
        close = getattr(self.stream, "close", None)
        if close is not None:
            close()

    def to_bytes(self, server_name: str = "StaticServer/1.0") -> bytes:
        """
        Serialize the whole response. Drains and closes a streamed body,
        so use it only for small responses and in tests.
        """
        try:
            return self.head_bytes(server_name) + b"".join(self.iter_body())
        finally:
            self.close()


class ResponseBuilder:
    """
    Fluent builder for HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.PARTIAL_CONTENT)
            .header("Content-Range", "bytes 0-99/5000")
            .stream(source)
            .build())

    Every method except build() returns the builder itself.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._stream: Optional[Iterable[bytes]] = None

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set a fixed body (strings are UTF-8 encoded)."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def html(self, html: str) -> "ResponseBuilder":
        self._body = html.encode("utf-8")
        self._headers["Content-Type"] = "text/html; charset=utf-8"
        return self

    def stream(self, stream: Iterable[bytes]) -> "ResponseBuilder":
        """
        Set a streamed body. Content-Length must be set separately when
        the length is known in advance.
        """
        self._stream = stream
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
            stream=self._stream,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231 IMF-fixdate).

    Example: Thu, 15 Jan 2026 12:30:45 GMT

    Naive datetimes are taken to be UTC already. Locale-independent,
    unlike strftime("%a").
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return (
        f"{_DAYS[dt.weekday()]}, "
        f"{dt.day:02d} {_MONTHS[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def error_response(status: HTTPStatus, **headers: str) -> HTTPResponse:
    """
    Plain-text error response whose body is "<code> <phrase>".

    Extra headers are passed as keyword arguments with underscores in
    place of dashes:

        error_response(HTTPStatus.RANGE_NOT_SATISFIABLE,
                       Content_Range="bytes */5000")
    """
    builder = ResponseBuilder().status(status).text(status.status_text)
    for name, value in headers.items():
        builder.header(name.replace("_", "-"), value)
    return builder.build()


def forbidden() -> HTTPResponse:
    return error_response(HTTPStatus.FORBIDDEN)


def not_found() -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND)


def internal_error() -> HTTPResponse:
    """
    500 response. The body is the generic status text only; details of
    what failed go to the log, never to the client.
    """
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR)
