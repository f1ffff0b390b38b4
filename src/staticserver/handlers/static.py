"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

The request-to-response pipeline. One call to handle() per request; the
only state shared between requests is read-only configuration.

=============================================================================
THE PIPELINE
=============================================================================

    request
       │
       ▼
    PathResolver ───── rejected ───────────────────────────▶ 403
       │
       ▼
    probe ──────────── ABSENT ─────────────────────────────▶ 404
       │               OTHER (fifo, socket, device) ───────▶ 403
       │
       ▼ directory?
    DirectoryHandler ─ index.html is a file → continue with it
       │               else listing ok ────────────────────▶ 200 html
       │               else ───────────────────────────────▶ 403
       ▼
    CacheValidator ─── fresh ──────────────────────────────▶ 304
       │
       ▼ Range header?
    parse_range ────── unsatisfiable ──────────────────────▶ 416
       │
       ▼
    ResponseEmitter ── 200 / 206, plain or gzip ───────────▶ stream

Any unexpected exception (EACCES, EIO, ...) becomes a 500 with a generic
body; the details go to the log.

=============================================================================
"""

import logging

from ..files.filesystem import PathKind, probe
from ..files.listing import DirectoryHandler
from ..files.resolver import PathResolver
from ..http.caching import CacheValidator
from ..http.compression import should_compress
from ..http.ranges import parse_range
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, forbidden, internal_error, not_found
from .emitter import ResponseEmitter


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Serves the files under `root`.

    Usage:
        handler = StaticFileHandler("/srv/www")
        response = handler.handle(request)

    Args:
        root:              Directory to serve.
        index_file:        File served for directory requests.
        chunk_size:        Bytes read from disk per chunk.
        compression_level: zlib level for gzip responses.
    """

    def __init__(
        self,
        root: str,
        index_file: str = "index.html",
        chunk_size: int = 64 * 1024,
        compression_level: int = 6,
    ):
        self.resolver = PathResolver(root)
        self.directories = DirectoryHandler(index_file)
        self.validator = CacheValidator()
        self.emitter = ResponseEmitter(chunk_size, compression_level)

    @property
    def root(self) -> str:
        return self.resolver.root

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Produce exactly one response for `request`. Never raises."""
        try:
            return self._serve(request)
        except Exception:
            logger.exception(f"Error serving {request.method} {request.target}")
            return internal_error()

    def _serve(self, request: HTTPRequest) -> HTTPResponse:
        path = self.resolver.resolve(request.target, request.host)
        if path is None:
            return forbidden()

        metadata = probe(path)

        if metadata.is_directory:
            index = self.directories.find_index(path)
            if index is None:
                page = self.directories.render_listing(path, request.path)
                if page is None:
                    return forbidden()
                return self.emitter.listing(page)
            path, metadata = index

        if metadata.kind is PathKind.ABSENT:
            return not_found()
        if metadata.kind is not PathKind.FILE:
            return forbidden()

        validation = self.validator.validate(request, path, metadata)
        if validation.is_fresh:
            return self.emitter.not_modified(validation)

        byte_range = None
        range_header = request.get_header("Range")
        if range_header:
            byte_range = parse_range(range_header, metadata.size)
            if byte_range is None:
                return self.emitter.range_not_satisfiable(metadata.size)

        return self.emitter.emit(
            path,
            metadata.size,
            validation,
            byte_range=byte_range,
            compress=should_compress(request, path),
        )
