"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One line per request on the "staticserver.access" logger, in a format close
to the Apache common log:

    127.0.0.1 - - [18/Oct/2026:09:12:01 +0000] "GET /a.txt?v=2" 206 100 0.41ms
    127.0.0.1 - - [18/Oct/2026:09:12:02 +0000] "GET /app.js" 200 - 0.77ms
                                                                 │
                          gzip responses have no Content-Length ─┘

The duration covers building the response, not sending a streamed body.

Pass log_format="json" for one JSON object per line.

=============================================================================
"""

import time
import json
import logging
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


# Separate from the module loggers so access logs can be routed on their own
logger = logging.getLogger("staticserver.access")


@dataclass
class RequestLog:
    method: str
    target: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: str
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Access logging. Add it first so it sees every response, including
    the ones produced by error handling further in.

    Args:
        log_format: "text" or "json".
    """

    FORMATS = ("text", "json")

    def __init__(self, log_format: str = "text"):
        if log_format not in self.FORMATS:
            raise ValueError(f"Unknown access log format: {log_format!r}")
        self.log_format = log_format

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.target} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        entry = RequestLog(
            method=request.method,
            target=request.target,
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=_content_length(response),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.info(json.dumps(entry.to_dict()))
        else:
            logger.info(entry.to_text())

        return response


def _content_length(response: HTTPResponse) -> str:
    """Bytes the body will have, or "-" when unknown until sent."""
    if "Content-Length" in response.headers:
        return response.headers["Content-Length"]
    if not response.is_streamed and response.status.allows_body:
        return str(len(response.body))
    return "-"
