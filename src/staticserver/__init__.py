"""
=============================================================================
STATICSERVER - Static File HTTP/1.1 Server
=============================================================================

Serves a directory over HTTP using raw sockets and a thread pool, with
conditional caching, byte ranges, on-the-fly gzip and directory listings.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    staticserver/
    ├── __main__.py          # CLI (staticserver / python -m staticserver)
    ├── server.py            # HTTPServer: transport + pipeline
    ├── config.py            # ServerConfig
    ├── core/                # sockets, connections, thread pool
    ├── http/                # messages, caching, ranges, compression
    ├── files/               # path resolution, filesystem, listings
    ├── handlers/            # StaticFileHandler, ResponseEmitter
    └── middleware/          # access log

=============================================================================
QUICK START
=============================================================================

    from staticserver import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=3000, root="./public"))
    server.setup_logging()
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]
