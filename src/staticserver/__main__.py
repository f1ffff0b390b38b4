"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

    staticserver                         # serve the current directory on :3000
    staticserver -p 8000 -r ./public     # custom port and root
    python -m staticserver --help

Command-line options override STATIC_* environment variables, which
override the defaults in ServerConfig.

=============================================================================
"""

import argparse
import dataclasses
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Serve a directory over HTTP with caching, ranges and gzip.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  staticserver                          # serve ./ on 127.0.0.1:3000
  staticserver -p 8000 -r ./public      # custom port and root
  staticserver -H 0.0.0.0               # listen on all interfaces
  staticserver -i default.htm           # different index file
        """,
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 3000)",
    )
    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Directory to serve (default: current directory)",
    )
    parser.add_argument(
        "--index", "-i",
        dest="index_file",
        default=None,
        help="File served for directory requests (default: index.html)",
    )
    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Address to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum worker threads (default: 16)",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticserver {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment-derived config with explicitly passed options on top."""
    base = ServerConfig.from_env()

    overrides = {
        name: value
        for name, value in (
            ("port", args.port),
            ("root", args.root),
            ("index_file", args.index_file),
            ("host", args.host),
            ("max_workers", args.workers),
            ("log_level", args.log_level),
            ("access_log_format", args.log_format),
        )
        if value is not None
    }
    if "max_workers" in overrides:
        overrides["min_workers"] = min(ServerConfig.min_workers, overrides["max_workers"])

    return dataclasses.replace(base, **overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
        server = HTTPServer(config)
    except ValueError as e:
        parser.error(str(e))

    server.setup_logging()

    try:
        server.run()
    except OSError as e:
        print(f"staticserver: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
