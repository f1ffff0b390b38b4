"""
=============================================================================
PATH RESOLVER
=============================================================================

Maps a request-target onto an absolute path inside the served root, or
refuses to.

=============================================================================
ORDER OF OPERATIONS
=============================================================================

    "/static/%2e%2e/%2e%2e/etc/passwd"
            │
            ▼  1. percent-decode
    "/static/../../etc/passwd"
            │
            ▼  2. append to root  (string concatenation)
    "/srv/www//static/../../etc/passwd"
            │
            ▼  3. normalize       (., .., duplicate slashes)
    "/etc/passwd"
            │
            ▼  4. containment: == root  or  startswith(root + "/") ?
    REJECTED  →  403 Forbidden

Decoding happens BEFORE normalization and the containment test happens
AFTER it, so encoded dot segments get no special treatment.

The containment test compares whole path components: "/srv/www-old" is
NOT inside "/srv/www".

=============================================================================
KNOWN LIMITATIONS
=============================================================================

The check is lexical. A symlink inside the root that points outside it is
followed. On case-insensitive filesystems differently-cased spellings of
the root are compared as different strings.

=============================================================================
"""

import os
import logging
from typing import Optional
from urllib.parse import unquote, urlsplit


logger = logging.getLogger(__name__)


class PathResolver:
    """
    Confines request paths to a root directory.

    Usage:
        resolver = PathResolver("/srv/www")
        resolver.resolve("/css/site.css", "localhost:3000")
        # → "/srv/www/css/site.css"
        resolver.resolve("/../etc/passwd", "localhost:3000")
        # → None
    """

    def __init__(self, root: str):
        self.root = os.path.normpath(os.path.abspath(root))
        # "/" is its own prefix; everything else needs a trailing separator
        self._prefix = self.root if self.root.endswith(os.sep) else self.root + os.sep

    def resolve(self, target: str, host: str) -> Optional[str]:
        """
        Resolve a request-target to an absolute filesystem path.

        Args:
            target: The raw request-target, e.g. "/a%20b/c.txt?x=1".
                    Absolute-form targets use only their path.
            host:   The Host header. Required, and must be a bare
                    "name[:port]" authority.

        Returns:
            The normalized absolute path, or None when the request is
            malformed or the path escapes the root.
        """
        if not target or not host:
            return None

        try:
            authority = urlsplit(f"http://{host}")
            if not authority.hostname or authority.path or authority.query:
                return None
            authority.port  # raises ValueError on a non-numeric port

            decoded = unquote(urlsplit(target).path, errors="strict")
        except (ValueError, UnicodeDecodeError):
            return None

        if "\x00" in decoded:
            return None

        candidate = os.path.normpath(self.root + "/" + decoded)

        if not self.contains(candidate):
            logger.warning(f"Path traversal attempt: {target!r} → {candidate!r}")
            return None

        return candidate

    def contains(self, path: str) -> bool:
        """True if the normalized `path` is the root or below it."""
        return path == self.root or path.startswith(self._prefix)
