"""
=============================================================================
CACHE VALIDATION
=============================================================================

Computes a file's validators and decides whether the client's cached copy
is still good.

=============================================================================
THE FINGERPRINT (ETag)
=============================================================================

    ┌─────────────────────┬──────────────────────────────────────────────┐
    │ File size           │ ETag = md5 of ...                            │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ < 1 MiB             │ the whole content                            │
    │                     │ → changes if and only if the bytes change,   │
    │                     │   even when mtime is preserved (rsync -t,    │
    │                     │   cp -p, git checkout)                       │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ >= 1 MiB            │ "<size>-<mtime in epoch milliseconds>"       │
    │                     │ → no need to read a video just to answer 304 │
    └─────────────────────┴──────────────────────────────────────────────┘

=============================================================================
THE DECISION
=============================================================================

    If-None-Match     == ETag           ─┐
                                         ├─ either one → 304 Not Modified
    If-Modified-Since == Last-Modified  ─┘

Both comparisons are exact string equality. No date parsing, no weak
validators, no "*".

=============================================================================
CACHE-CONTROL POLICY
=============================================================================

    .html        → no-cache, must-revalidate
                   (the entry point of an app, always revalidated)
    everything   → public, max-age=31536000, immutable
    else           (fingerprinted assets, cached for a year)

=============================================================================
"""

import hashlib
from dataclasses import dataclass
from typing import Dict

from .mime_types import get_extension
from .request import HTTPRequest
from .response import format_http_date
from ..files.filesystem import FileMetadata, read_file


CONTENT_HASH_THRESHOLD = 1024 * 1024

REVALIDATE = "no-cache, must-revalidate"
IMMUTABLE = "public, max-age=31536000, immutable"


@dataclass(frozen=True)
class CacheValidation:
    """
    Outcome of cache validation for one request.

    Attributes:
        etag:          Quoted entity tag, e.g. '"5d41402abc4b2a76..."'.
        last_modified: HTTP-date of the file's mtime.
        cache_control: Cache-Control directive for this file type.
        is_fresh:      True when the client's copy is still valid.
    """

    etag: str
    last_modified: str
    cache_control: str
    is_fresh: bool

    def headers(self) -> Dict[str, str]:
        """The validator headers, as a new dict."""
        return {
            "ETag": self.etag,
            "Last-Modified": self.last_modified,
            "Cache-Control": self.cache_control,
        }


class CacheValidator:
    """
    Computes validators for a file and matches them against the request.

    Args:
        content_hash_threshold: Files smaller than this many bytes get a
                                content hash; larger ones a size/mtime hash.
    """

    def __init__(self, content_hash_threshold: int = CONTENT_HASH_THRESHOLD):
        self.content_hash_threshold = content_hash_threshold

    def validate(
        self,
        request: HTTPRequest,
        path: str,
        metadata: FileMetadata,
    ) -> CacheValidation:
        """
        Raises:
            OSError: If the file cannot be read for hashing.
        """
        etag = self.fingerprint(path, metadata)
        last_modified = format_http_date(metadata.modified_at)

        is_fresh = (
            request.get_header("If-None-Match") == etag
            or request.get_header("If-Modified-Since") == last_modified
        )

        return CacheValidation(
            etag=etag,
            last_modified=last_modified,
            cache_control=cache_control_for(path),
            is_fresh=is_fresh,
        )

    def fingerprint(self, path: str, metadata: FileMetadata) -> str:
        """Quoted md5 entity tag for the file (see module docstring)."""
        if metadata.size < self.content_hash_threshold:
            source = read_file(path)
        else:
            source = f"{metadata.size}-{metadata.modified_ms}".encode("ascii")
        digest = hashlib.md5(source, usedforsecurity=False).hexdigest()
        return f'"{digest}"'


def cache_control_for(path: str) -> str:
    """Cache-Control value chosen by file extension."""
    return REVALIDATE if get_extension(path) == ".html" else IMMUTABLE
