"""
=============================================================================
MIME TYPES
=============================================================================

Maps file extensions to Content-Type values.

The table is fixed. A browser trusts the Content-Type more than the file
name, so a wrong entry here breaks pages in ways that are hard to debug:

    app.js   served as text/plain  →  script refuses to execute
    logo.svg served as text/xml    →  image does not render

Unknown extensions fall back to application/octet-stream, which browsers
treat as an opaque download.

=============================================================================
"""

from pathlib import Path


MIME_TYPES = {
    # Text and documents
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".map": "application/json",        # Source maps
    ".webmanifest": "application/manifest+json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".avif": "image/avif",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",

    # Audio and video (the usual targets of Range requests)
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",

    # Archives and binaries
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".wasm": "application/wasm",
}

DEFAULT_MIME_TYPE = "application/octet-stream"

# application/* types that are really text and deserve a charset
_TEXTUAL_APPLICATION_TYPES = {
    "application/json",
    "application/manifest+json",
    "application/xml",
    "image/svg+xml",
}


def get_extension(path: str | Path) -> str:
    """Lowercased extension including the dot ("" when there is none)."""
    return Path(path).suffix.lower()


def get_mime_type(path: str | Path) -> str:
    """
    Get the MIME type for a file based on its extension.

    Examples:
        >>> get_mime_type("style.CSS")
        'text/css'
        >>> get_mime_type("archive.unknown")
        'application/octet-stream'
    """
    return MIME_TYPES.get(get_extension(path), DEFAULT_MIME_TYPE)


def is_text_type(mime_type: str) -> bool:
    """True for text/* and the text-based application types."""
    return mime_type.startswith("text/") or mime_type in _TEXTUAL_APPLICATION_TYPES


def get_content_type(path: str | Path, charset: str = "utf-8") -> str:
    """
    Full Content-Type header value for a file.

    Text types carry a charset parameter, binary types do not:

        >>> get_content_type("index.html")
        'text/html; charset=utf-8'
        >>> get_content_type("photo.png")
        'image/png'
    """
    mime_type = get_mime_type(path)
    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type
