"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything the server needs to know at startup, in one immutable object.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── staticserver --port 8000 --root ./public                   │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── STATIC_PORT=8000 STATIC_ROOT=./public staticserver         │
    │                                                                     │
    │   3. Default values (in this dataclass)                             │
    └─────────────────────────────────────────────────────────────────────┘

The config is frozen: it is built once at startup and then only read,
concurrently, by every worker thread.

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the static file server.

    `root` is normalized to an absolute path on construction, so relative
    roots are interpreted against the working directory at startup.

        config = ServerConfig(port=8000, root="./public")
        config.root   # → "/home/me/site/public"
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind to. "0.0.0.0" listens on all interfaces."""

    port: int = 3000

    backlog: int = 128
    """Maximum number of connections waiting to be accepted."""

    buffer_size: int = 8192
    """Bytes per recv() call."""

    timeout: Optional[float] = 30.0
    """Socket timeout in seconds. None blocks forever."""

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    root: str = field(default_factory=os.getcwd)
    """Directory whose contents are served."""

    index_file: str = "index.html"
    """File served in place of a directory."""

    chunk_size: int = 64 * 1024
    """Bytes read from disk per chunk when streaming a file."""

    compression_level: int = 6
    """zlib level for gzip responses, 1 (fast) to 9 (small)."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True

    keep_alive_timeout: float = 5.0
    """Idle seconds before a kept-alive connection is closed."""

    max_request_size: int = 1024 * 1024
    """Largest accepted request (head + body) in bytes."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4

    max_workers: int = 16

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    access_log_format: str = "text"
    """"text" (common log style) or "json", one object per line."""

    server_name: str = "StaticServer/1.0"

    def __post_init__(self):
        # frozen=True forbids plain assignment
        object.__setattr__(self, "root", os.path.abspath(self.root))

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        STATIC_HOST       Bind address            (default: 127.0.0.1)
        STATIC_PORT       Port                    (default: 3000)
        STATIC_ROOT       Served directory        (default: cwd)
        STATIC_INDEX      Index file name         (default: index.html)
        STATIC_WORKERS    Max worker threads      (default: 16)
        STATIC_LOG_LEVEL  Logging level           (default: INFO)
        STATIC_LOG_FORMAT Access log format       (default: text)

        A STATIC_WORKERS below the default min_workers lowers min_workers
        with it.

        =====================================================================

        Raises:
            ValueError: If a numeric variable is not a number.
        """
        max_workers = int(os.getenv("STATIC_WORKERS", str(cls.max_workers)))

        return cls(
            host=os.getenv("STATIC_HOST", "127.0.0.1"),
            port=int(os.getenv("STATIC_PORT", "3000")),
            root=os.getenv("STATIC_ROOT") or os.getcwd(),
            index_file=os.getenv("STATIC_INDEX", "index.html"),
            min_workers=min(cls.min_workers, max_workers),
            max_workers=max_workers,
            log_level=os.getenv("STATIC_LOG_LEVEL", "INFO"),
            access_log_format=os.getenv("STATIC_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Fail fast on a configuration the server cannot run with.

        Raises:
            ValueError: Describing the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not os.path.isdir(self.root):
            raise ValueError(f"Root is not a directory: {self.root}")

        if not self.index_file or "/" in self.index_file or os.sep in self.index_file:
            raise ValueError(f"Invalid index file name: {self.index_file!r}")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        if not 1 <= self.compression_level <= 9:
            raise ValueError("compression_level must be between 1 and 9")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.access_log_format not in ("text", "json"):
            raise ValueError(f"Invalid access log format: {self.access_log_format!r}")
