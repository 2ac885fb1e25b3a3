"""
Logging middleware for Monitoring SDK.

This module provides LoggingMiddleware, a built-in middleware that logs
all HTTP requests and responses with timing information. Useful for
debugging, monitoring, and understanding SDK behavior.

Features:
- Request logging with method, URL, query parameters
- Response logging with status code and timing
- Optional body logging (bodies are cloned, never consumed)
- Configurable log level
"""

import logging
import time
from collections import OrderedDict

from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response
from monitoring_sdk.middleware import MiddlewareContext

logger = logging.getLogger("monitoring_sdk.middleware.logging")

_REDACTED_HEADERS = {"authorization", "cookie", "x-api-key"}


class LoggingMiddleware:
    """
    Middleware for logging HTTP requests and responses in MonitoringClient.
    Uses standard Python logging.

    Timings are kept per call (keyed by request id), so one instance can
    serve concurrent requests. Calls that fail before the response phase never
    pop their entry; at most `max_pending` start times are kept and the oldest
    are dropped first.
    """

    def __init__(
        self,
        log_bodies: bool = False,
        level: int = logging.INFO,
        max_pending: int = 1024,
    ):
        self.log_bodies = log_bodies
        self.level = level
        self.max_pending = max_pending
        self._start_times: OrderedDict[str, float] = OrderedDict()

    def on_request(self, request: Request, context: MiddlewareContext) -> None:
        self._start_times[context.request_id] = time.monotonic()
        while len(self._start_times) > self.max_pending:
            self._start_times.popitem(last=False)
        headers = {
            k: ("***" if k.lower() in _REDACTED_HEADERS else v)
            for k, v in request.headers.items()
        }
        message = f"Request: {request.method} {request.url} | headers={headers} | params={request.params}"
        if self.log_bodies and request.body is not None:
            message += f" | body={request.clone().text()}"
        logger.log(self.level, message)

    def on_response(self, response: Response, context: MiddlewareContext) -> None:
        start = self._start_times.pop(context.request_id, None)
        elapsed = (time.monotonic() - start) if start is not None else None
        message = f"Response: {response.status_code} {context.method} {context.schema_path}" + (
            f" | elapsed={elapsed:.3f}s" if elapsed is not None else ""
        )
        if self.log_bodies and response.body is not None:
            message += f" | body={response.clone().text()}"
        logger.log(self.level, message)
