"""
=============================================================================
FILES MODULE
=============================================================================

Everything that touches the filesystem on behalf of a request:

    resolver.py    - request-target → absolute path inside the root
    filesystem.py  - probe / read / byte-range stream / list
    listing.py     - index-file lookup and generated directory pages

=============================================================================
"""

from .filesystem import (
    ABSENT,
    FileMetadata,
    FileRange,
    PathKind,
    list_directory,
    probe,
    read_file,
)
from .listing import DirectoryHandler
from .resolver import PathResolver

__all__ = [
    "ABSENT",
    "FileMetadata",
    "FileRange",
    "PathKind",
    "list_directory",
    "probe",
    "read_file",
    "DirectoryHandler",
    "PathResolver",
]
