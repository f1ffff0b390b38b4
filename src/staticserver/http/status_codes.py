"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes a file server actually sends, with their reason phrases.

=============================================================================
WHICH CODES AND WHEN
=============================================================================

    ┌──────┬──────────────────────────┬──────────────────────────────────────┐
    │ Code │ Phrase                   │ Sent when                            │
    ├──────┼──────────────────────────┼──────────────────────────────────────┤
    │ 200  │ OK                       │ Whole file or directory listing      │
    │ 206  │ Partial Content          │ A satisfiable Range header           │
    │ 304  │ Not Modified             │ Client cache validators still match  │
    │ 400  │ Bad Request              │ Unparsable request line              │
    │ 403  │ Forbidden                │ Path escapes root, unlistable dir    │
    │ 404  │ Not Found                │ Nothing at the resolved path         │
    │ 416  │ Range Not Satisfiable    │ Range outside the file, or garbage   │
    │ 500  │ Internal Server Error    │ Unexpected filesystem failure        │
    │ 503  │ Service Unavailable      │ Worker queue is full                 │
    └──────┴──────────────────────────┴──────────────────────────────────────┘

The remaining members cover the transport's own failures (timeouts, size
limits, unsupported methods and versions).

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.PARTIAL_CONTENT == 206
        True
        >>> HTTPStatus.PARTIAL_CONTENT.phrase
        'Partial Content'
    """

    # 2xx SUCCESS
    OK = 200
    PARTIAL_CONTENT = 206               # Range request fulfilled

    # 3xx REDIRECTION
    NOT_MODIFIED = 304                  # Cached copy is still valid

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    RANGE_NOT_SATISFIABLE = 416

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line, e.g. "Not Found"."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def status_text(self) -> str:
        """Code and phrase together, e.g. "404 Not Found"."""
        return f"{int(self)} {self.phrase}"

    @property
    def allows_body(self) -> bool:
        """
        Whether a response with this status may carry a body.

        304 responses never do (RFC 7232 section 4.1).
        """
        return self != HTTPStatus.NOT_MODIFIED

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Range Not Satisfiable",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
