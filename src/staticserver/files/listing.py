"""
=============================================================================
DIRECTORY HANDLING
=============================================================================

What to serve when the resolved path is a directory:

    GET /docs/
        │
        ├── /srv/www/docs/index.html is a file?
        │       YES → serve it as if /docs/index.html had been requested
        │
        └── NO  → list /srv/www/docs
                    ├── listing succeeded → 200 text/html index page
                    └── listing failed    → 403 Forbidden (no partial page)

Links in the generated page are absolute: the request path exactly as the
client sent it (still percent-encoded) joined with the raw entry name.

    request path "/my%20docs"  +  entry "a.txt"  →  href="/my%20docs/a.txt"

=============================================================================
"""

import os
import html
import logging
import posixpath
from typing import Optional
from urllib.parse import unquote

from .filesystem import FileMetadata, list_directory, probe


logger = logging.getLogger(__name__)


class DirectoryHandler:
    """
    Index-file lookup and listing generation for directory requests.

    Args:
        index_file: File name served in place of a directory,
                    usually "index.html".
    """

    def __init__(self, index_file: str = "index.html"):
        self.index_file = index_file

    def find_index(self, directory: str) -> Optional[tuple[str, FileMetadata]]:
        """
        Look for the index file inside `directory`.

        Returns:
            (index path, its metadata) when it exists and is a regular
            file, otherwise None.

        Raises:
            OSError: If probing fails for a reason other than absence.
        """
        index_path = os.path.join(directory, self.index_file)
        metadata = probe(index_path)
        if not metadata.is_file:
            return None
        return index_path, metadata

    def render_listing(self, directory: str, request_path: str) -> Optional[str]:
        """
        Build the HTML listing page for `directory`.

        Args:
            directory:    Absolute path of the directory to list.
            request_path: Path component of the request, undecoded.

        Returns:
            The complete page, or None if the directory could not be read.
        """
        try:
            entries = list_directory(directory)
        except OSError as e:
            logger.warning(f"Cannot list directory {directory}: {e}")
            return None

        items = "".join(
            f'<li><a href="{html.escape(posixpath.join(request_path, name))}">'
            f"{html.escape(name)}</a></li>"
            for name in entries
        )
        title = html.escape(unquote(request_path))

        return (
            "<!DOCTYPE html>"
            '<html><head><meta charset="utf-8">'
            f"<title>Index of {title}</title></head>"
            f"<body><h1>Index of {title}</h1>"
            f"<ul>{items}</ul>"
            "</body></html>"
        )
