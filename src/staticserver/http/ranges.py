"""
=============================================================================
BYTE RANGES
=============================================================================

Parses a Range header into one inclusive byte interval of the file.

    Range: bytes=<start>-<end>

=============================================================================
THE THREE FORMS (size = 5000)
=============================================================================

    ┌─────────────────┬─────────────────┬──────────────────────────────────┐
    │ Header          │ Interval        │ Meaning                          │
    ├─────────────────┼─────────────────┼──────────────────────────────────┤
    │ bytes=0-99      │ 0 .. 99         │ first 100 bytes                  │
    │ bytes=4000-     │ 4000 .. 4999    │ from 4000 to the end             │
    │ bytes=-10       │ 4990 .. 4999    │ last 10 bytes                    │
    └─────────────────┴─────────────────┴──────────────────────────────────┘

=============================================================================
UNSATISFIABLE (→ 416)
=============================================================================

    bytes=5000-5005     start >= size
    bytes=0-5000        end >= size     (rejected, NOT clamped)
    bytes=-6000         suffix longer than the file
    bytes=10-5          start > end
    bytes=a-b           not a number
    bytes=-             no bounds at all
    items=0-10          unknown unit

Only the first clause of a multi-range header is looked at:

    bytes=0-10,20-30    → 0 .. 10

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ByteRange:
    """
    Inclusive byte interval, always inside the file it was parsed for.

    Attributes:
        start: First byte offset.
        end:   Last byte offset (inclusive).
    """

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        """Content-Range value, e.g. "bytes 0-99/5000"."""
        return f"bytes {self.start}-{self.end}/{size}"


def parse_range(header: str, size: int) -> Optional[ByteRange]:
    """
    Parse a Range header value against a file of `size` bytes.

    Returns:
        The satisfiable ByteRange, or None if the header cannot be
        satisfied for this file.
    """
    unit, sep, clauses = header.strip().partition("=")
    if not sep or unit.strip().lower() != "bytes":
        return None

    first = clauses.split(",", 1)[0].strip()
    start_text, dash, end_text = first.partition("-")
    if not dash:
        return None

    start_text = start_text.strip()
    end_text = end_text.strip()

    if not _is_bound(start_text) or not _is_bound(end_text):
        return None

    if not start_text and not end_text:
        return None

    if not start_text:
        # Suffix form: the last N bytes
        start = size - int(end_text)
        end = size - 1
    elif not end_text:
        start = int(start_text)
        end = size - 1
    else:
        start = int(start_text)
        end = int(end_text)

    if start < 0 or start >= size or end >= size or start > end:
        return None

    return ByteRange(start, end)


def _is_bound(text: str) -> bool:
    """Empty, or ASCII digits only (int() alone would accept "+5" or "٣")."""
    return text == "" or (text.isascii() and text.isdigit())
