"""
=============================================================================
HANDLERS MODULE
=============================================================================

    static.py   - StaticFileHandler: the request → response pipeline
    emitter.py  - ResponseEmitter: status, framing headers and body source

=============================================================================
"""

from .emitter import Delivery, ResponseEmitter
from .static import StaticFileHandler

__all__ = [
    "Delivery",
    "ResponseEmitter",
    "StaticFileHandler",
]
