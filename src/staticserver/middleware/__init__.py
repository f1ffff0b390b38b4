"""
=============================================================================
MIDDLEWARE MODULE
=============================================================================

Cross-cutting layers around the static file handler.

    base.py     - Middleware ABC and MiddlewarePipeline
    logging.py  - access log

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
]
