"""
=============================================================================
RESPONSE EMITTER
=============================================================================

Turns the outcome of the pipeline into an HTTPResponse with correct framing.

=============================================================================
FOUR WAYS TO DELIVER A FILE
=============================================================================

The delivery is picked once, from two independent questions:

                         │  no Range          │  satisfiable Range
    ─────────────────────┼────────────────────┼──────────────────────────
    not compressed       │  FULL_PLAIN   200  │  PARTIAL_PLAIN   206
    compressed (gzip)    │  FULL_GZIP    200  │  PARTIAL_GZIP    206

    ┌────────────────┬──────────────────┬────────────────┬─────────────────┐
    │ Delivery       │ Content-Length   │ Content-Range  │ Content-Encoding│
    ├────────────────┼──────────────────┼────────────────┼─────────────────┤
    │ FULL_PLAIN     │ file size        │ -              │ -               │
    │ FULL_GZIP      │ -  (unknown)     │ -              │ gzip            │
    │ PARTIAL_PLAIN  │ end - start + 1  │ bytes s-e/size │ -               │
    │ PARTIAL_GZIP   │ -  (unknown)     │ bytes s-e/size │ gzip            │
    └────────────────┴──────────────────┴────────────────┴─────────────────┘

Each variant has its own method; headers are assembled from scratch in one
place from the (immutable) outputs of the earlier stages.

Every file response also carries Content-Type, ETag, Last-Modified,
Cache-Control and Accept-Ranges. Compressed responses add
Vary: Accept-Encoding.

=============================================================================
"""

from enum import Enum
from typing import Callable, Dict, Iterable, Optional

from ..files.filesystem import DEFAULT_CHUNK_SIZE, FileRange
from ..http.caching import CacheValidation
from ..http.compression import GzipStream
from ..http.mime_types import get_content_type
from ..http.ranges import ByteRange
from ..http.response import HTTPResponse, ResponseBuilder, error_response
from ..http.status_codes import HTTPStatus


class Delivery(Enum):
    FULL_PLAIN = "full-plain"
    FULL_GZIP = "full-gzip"
    PARTIAL_PLAIN = "partial-plain"
    PARTIAL_GZIP = "partial-gzip"

    @property
    def is_partial(self) -> bool:
        return self in (Delivery.PARTIAL_PLAIN, Delivery.PARTIAL_GZIP)

    @property
    def is_compressed(self) -> bool:
        return self in (Delivery.FULL_GZIP, Delivery.PARTIAL_GZIP)


class ResponseEmitter:
    """
    Builds the final response for every outcome of the pipeline.

    Args:
        chunk_size:        Bytes read from disk per chunk.
        compression_level: zlib level used for gzip deliveries.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, compression_level: int = 6):
        self.chunk_size = chunk_size
        self.compression_level = compression_level
        self._emitters: Dict[Delivery, Callable[..., HTTPResponse]] = {
            Delivery.FULL_PLAIN: self._full_plain,
            Delivery.FULL_GZIP: self._full_gzip,
            Delivery.PARTIAL_PLAIN: self._partial_plain,
            Delivery.PARTIAL_GZIP: self._partial_gzip,
        }

    @staticmethod
    def choose(byte_range: Optional[ByteRange], compress: bool) -> Delivery:
        if byte_range is None:
            return Delivery.FULL_GZIP if compress else Delivery.FULL_PLAIN
        return Delivery.PARTIAL_GZIP if compress else Delivery.PARTIAL_PLAIN

    def emit(
        self,
        path: str,
        size: int,
        validation: CacheValidation,
        byte_range: Optional[ByteRange] = None,
        compress: bool = False,
    ) -> HTTPResponse:
        """
        Build a 200/206 response streaming `path`.

        The file is opened here, before anything is sent.

        Raises:
            OSError: If the file can no longer be opened.
        """
        delivery = self.choose(byte_range, compress)
        byte_range = byte_range or ByteRange(0, size - 1)

        headers = {
            "Content-Type": get_content_type(path),
            "Accept-Ranges": "bytes",
        }
        headers.update(validation.headers())

        if size == 0:
            # An empty file has no valid interval to seek into
            source: Iterable[bytes] = ()
        else:
            source = FileRange(path, byte_range.start, byte_range.end, self.chunk_size)

        return self._emitters[delivery](headers, source, byte_range, size)

    # -------------------------------------------------------------------------
    # One method per delivery
    # -------------------------------------------------------------------------

    def _full_plain(self, headers, source, byte_range, size) -> HTTPResponse:
        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .headers(headers)
            .header("Content-Length", str(size))
            .stream(source)
            .build())

    def _full_gzip(self, headers, source, byte_range, size) -> HTTPResponse:
        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .headers(headers)
            .header("Content-Encoding", "gzip")
            .header("Vary", "Accept-Encoding")
            .stream(GzipStream(source, self.compression_level))
            .build())

    def _partial_plain(self, headers, source, byte_range, size) -> HTTPResponse:
        return (ResponseBuilder()
            .status(HTTPStatus.PARTIAL_CONTENT)
            .headers(headers)
            .header("Content-Range", byte_range.content_range(size))
            .header("Content-Length", str(byte_range.length))
            .stream(source)
            .build())

    def _partial_gzip(self, headers, source, byte_range, size) -> HTTPResponse:
        return (ResponseBuilder()
            .status(HTTPStatus.PARTIAL_CONTENT)
            .headers(headers)
            .header("Content-Range", byte_range.content_range(size))
            .header("Content-Encoding", "gzip")
            .header("Vary", "Accept-Encoding")
            .stream(GzipStream(source, self.compression_level))
            .build())

    # -------------------------------------------------------------------------
    # Responses without a file body
    # -------------------------------------------------------------------------

    def not_modified(self, validation: CacheValidation) -> HTTPResponse:
        """304 with the validators and no body."""
        return (ResponseBuilder()
            .status(HTTPStatus.NOT_MODIFIED)
            .headers(validation.headers())
            .build())

    def range_not_satisfiable(self, size: int) -> HTTPResponse:
        return error_response(
            HTTPStatus.RANGE_NOT_SATISFIABLE,
            Content_Range=f"bytes */{size}",
        )

    def listing(self, page: str) -> HTTPResponse:
        return ResponseBuilder().status(HTTPStatus.OK).html(page).build()
