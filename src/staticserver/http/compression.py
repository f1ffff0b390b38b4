"""
=============================================================================
GZIP COMPRESSION
=============================================================================

Decides whether a response is compressed and compresses it on the fly.

=============================================================================
ELIGIBILITY
=============================================================================

Both must hold:

    1. Accept-Encoding mentions "gzip"
    2. the file's extension is on the allow-list below

Images, video, fonts and archives are already compressed; gzipping them
again burns CPU for nothing.

=============================================================================
STREAMING
=============================================================================

    FileRange ──chunk──▶ compressobj ──deflated──▶ socket
       ...                   ...
       EOF      ──────▶   flush()    ──trailer───▶ socket

The output length is unknown until the last chunk, so a compressed response
has no Content-Length. Ranges are cut from the UNCOMPRESSED file first and
then compressed.

=============================================================================
"""

import zlib
from typing import Iterable, Iterator

from .mime_types import get_extension
from .request import HTTPRequest


COMPRESSIBLE_EXTENSIONS = frozenset({
    ".html", ".htm", ".css", ".js", ".json",
    ".xml", ".txt", ".svg", ".webmanifest",
})

# wbits = 16 + MAX_WBITS → gzip header and trailer instead of raw zlib
GZIP_WBITS = 16 + zlib.MAX_WBITS


def accepts_gzip(request: HTTPRequest) -> bool:
    return "gzip" in request.get_header("Accept-Encoding").lower()


def is_compressible(path: str) -> bool:
    return get_extension(path) in COMPRESSIBLE_EXTENSIONS


def should_compress(request: HTTPRequest, path: str) -> bool:
    return accepts_gzip(request) and is_compressible(path)


class GzipStream:
    """
    Gzip-compresses a chunk iterable lazily.

    close() also closes the source, so a response only has to close the
    outermost stream.

    Args:
        source: Iterable of raw chunks, usually a FileRange.
        level:  zlib compression level, 1 (fast) to 9 (small).
    """

    def __init__(self, source: Iterable[bytes], level: int = 6):
        self.source = source
        self.level = level
        self._closed = False

    def __iter__(self) -> Iterator[bytes]:
        compressor = zlib.compressobj(self.level, zlib.DEFLATED, GZIP_WBITS)
        for chunk in self.source:
            data = compressor.compress(chunk)
            if data:
                yield data
        yield compressor.flush()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self.source, "close", None)
        if close is not None:
            close()
