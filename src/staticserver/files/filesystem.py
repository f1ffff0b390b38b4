"""
=============================================================================
FILESYSTEM ACCESS
=============================================================================

The four filesystem operations the request pipeline needs:

    probe(path)            → FileMetadata (ABSENT is a result, not an error)
    read_file(path)        → whole content, for small-file fingerprints
    FileRange(path, s, e)  → incremental reader over bytes s..e inclusive
    list_directory(path)   → sorted entry names

=============================================================================
"NOT FOUND" IS NOT AN EXCEPTION
=============================================================================

A missing file is the everyday outcome of a typo in a URL. probe() folds it
into its return value so callers branch on `metadata.kind` instead of
catching exceptions:

    ┌──────────────────────────┬──────────────────────────────────────────┐
    │ os.stat outcome          │ probe() result                           │
    ├──────────────────────────┼──────────────────────────────────────────┤
    │ regular file             │ FileMetadata(kind=FILE, size, mtime)     │
    │ directory                │ FileMetadata(kind=DIRECTORY, ...)        │
    │ fifo / socket / device   │ FileMetadata(kind=OTHER, ...)            │
    │ FileNotFoundError        │ FileMetadata(kind=ABSENT)                │
    │ NotADirectoryError       │ FileMetadata(kind=ABSENT)                │
    │ anything else (EACCES,   │ raised: the caller answers 500           │
    │ EIO, ELOOP, ...)         │                                          │
    └──────────────────────────┴──────────────────────────────────────────┘

=============================================================================
"""

import os
import stat
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator, Optional


DEFAULT_CHUNK_SIZE = 64 * 1024


class PathKind(Enum):
    ABSENT = "absent"
    DIRECTORY = "directory"
    FILE = "file"
    OTHER = "other"


@dataclass(frozen=True)
class FileMetadata:
    """
    Result of probing a path. Read fresh for every request.

    Attributes:
        kind:        What (if anything) lives at the path.
        size:        Size in bytes (0 unless kind is FILE or DIRECTORY).
        modified_ns: Modification time, nanoseconds since the epoch.
    """

    kind: PathKind
    size: int = 0
    modified_ns: int = 0

    @property
    def exists(self) -> bool:
        return self.kind is not PathKind.ABSENT

    @property
    def is_file(self) -> bool:
        return self.kind is PathKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is PathKind.DIRECTORY

    @property
    def modified_ms(self) -> int:
        """Modification time in whole milliseconds since the epoch."""
        return self.modified_ns // 1_000_000

    @property
    def modified_at(self) -> datetime:
        """Modification time as an aware UTC datetime, truncated to the second."""
        return datetime.fromtimestamp(self.modified_ns // 1_000_000_000, tz=timezone.utc)


ABSENT = FileMetadata(kind=PathKind.ABSENT)


def probe(path: str) -> FileMetadata:
    """
    Stat `path` and classify it.

    Raises:
        OSError: For any failure other than the path not existing.
    """
    try:
        st = os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return ABSENT

    if stat.S_ISREG(st.st_mode):
        kind = PathKind.FILE
    elif stat.S_ISDIR(st.st_mode):
        kind = PathKind.DIRECTORY
    else:
        kind = PathKind.OTHER

    return FileMetadata(kind=kind, size=st.st_size, modified_ns=st.st_mtime_ns)


def read_file(path: str) -> bytes:
    """Read a whole file into memory."""
    with open(path, "rb") as f:
        return f.read()


def list_directory(path: str) -> list[str]:
    """
    Names of the immediate entries of a directory, sorted.

    Raises:
        OSError: If the directory cannot be listed.
    """
    return sorted(os.listdir(path))


class FileRange:
    """
    Streams bytes `start`..`end` (inclusive) of a file in chunks.

    The file is opened in the constructor, so a file that vanished or
    became unreadable since it was probed fails BEFORE any response bytes
    are sent. close() releases the descriptor; it is idempotent and must be
    called whether or not iteration finished.

        source = FileRange("/srv/www/video.mp4", 0, 1023)
        try:
            for chunk in source:
                sock.sendall(chunk)
        finally:
            source.close()
    """

    def __init__(
        self,
        path: str,
        start: int = 0,
        end: Optional[int] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.path = path
        self.start = start
        self.end = end
        self.chunk_size = chunk_size
        self._file = open(path, "rb")
        try:
            self._file.seek(start)
        except OSError:
            self._file.close()
            raise

    @property
    def closed(self) -> bool:
        return self._file.closed

    def __iter__(self) -> Iterator[bytes]:
        remaining = None if self.end is None else self.end - self.start + 1
        while remaining is None or remaining > 0:
            size = self.chunk_size if remaining is None else min(self.chunk_size, remaining)
            data = self._file.read(size)
            if not data:
                # File shrank while streaming; stop rather than block
                break
            if remaining is not None:
                remaining -= len(data)
            yield data

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> "FileRange":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
