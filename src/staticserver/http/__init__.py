"""
=============================================================================
HTTP MODULE
=============================================================================

HTTP/1.1 messages and the per-request decisions a static file server makes.

    ┌──────────────────┬──────────────────────────────────────────────────┐
    │ request.py       │ raw bytes → HTTPRequest                          │
    │ response.py      │ HTTPResponse (fixed or streamed) → bytes         │
    │ status_codes.py  │ the status codes this server sends               │
    │ mime_types.py    │ extension → Content-Type                         │
    │ caching.py       │ ETag / Last-Modified / Cache-Control, 304        │
    │ ranges.py        │ Range header → ByteRange, 416                    │
    │ compression.py   │ gzip eligibility and streaming compressor        │
    └──────────────────┴──────────────────────────────────────────────────┘

    REQUEST:                          RESPONSE:
    ─────────                         ──────────
    GET /a.txt HTTP/1.1\r\n           HTTP/1.1 206 Partial Content\r\n
    Host: localhost:3000\r\n          Content-Range: bytes 0-99/5000\r\n
    Range: bytes=0-99\r\n             Content-Length: 100\r\n
    \r\n                              \r\n
                                      [100 bytes]

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    error_response,
    format_http_date,
    forbidden,
    not_found,
    internal_error,
)
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type
from .caching import CacheValidation, CacheValidator
from .ranges import ByteRange, parse_range
from .compression import GzipStream, should_compress

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",

    "HTTPResponse",
    "ResponseBuilder",
    "error_response",
    "format_http_date",
    "forbidden",
    "not_found",
    "internal_error",

    "HTTPStatus",

    "get_mime_type",
    "get_content_type",

    "CacheValidation",
    "CacheValidator",
    "ByteRange",
    "parse_range",
    "GzipStream",
    "should_compress",
]
