"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

Middleware wraps the request handler like layers of an onion. Each layer
sees the request on the way in and the response on the way out.

    pipeline = MiddlewarePipeline().use(LoggingMiddleware())
    handler = pipeline.wrap(static_files.handle)

        ┌─────────────────────────────────────────┐
        │  LoggingMiddleware                      │
        │  ┌───────────────────────────────────┐  │
        │  │  StaticFileHandler.handle         │  │
        │  └───────────────────────────────────┘  │
        └─────────────────────────────────────────┘

A middleware must not read a streamed body: the stream belongs to the
connection that sends it.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware, or the final handler
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Base class for middleware.

        class ServerTiming(Middleware):
            def __call__(self, request, next):
                start = time.perf_counter()
                response = next(request)
                response.set_header("Server-Timing", f"app;dur={...}")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Handle `request`, normally by calling next(request)."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """Ordered middleware chain; the first added is the outermost."""

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build MW1(MW2(...(handler))). Wrapping runs in reverse so the
        first-added middleware ends up outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

