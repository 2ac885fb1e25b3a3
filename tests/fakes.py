"""
Test utilities and mock objects for Monitoring SDK.

This module provides a mock transport and recording middleware for testing
the SDK without making real HTTP requests.
"""

import inspect
import json

from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response
from monitoring_sdk.middleware import MiddlewareContext
from monitoring_sdk.transport.base import BaseTransport

BASE_URL = "https://api.test"


def json_response(status_code=200, data=None, url=""):
    content = json.dumps(data).encode() if data is not None else b""
    return Response(
        status_code,
        headers={"Content-Type": "application/json"},
        content=content,
        url=url,
    )


def make_context(schema_path="/v2/monitoring/alerts", method="GET", **params):
    return MiddlewareContext(
        method=method, schema_path=schema_path, base_url=BASE_URL, params=params
    )


def make_request(method="GET", path="/v2/monitoring/alerts", **kwargs):
    return Request(method, f"{BASE_URL}{path}", **kwargs)


class MockTransport(BaseTransport):
    """Mock transport for testing."""

    def __init__(self, handler=None):
        """
        Initialize mock transport.

        Args:
            handler: Optional function (sync or async) that takes the recorded
                   call dict and returns a Response. If not provided, every
                   call gets an empty 200 JSON response.
        """
        self.handler = handler
        self.request_calls = []
        self.closed = False

    @property
    def request_count(self):
        """Number of requests made to this transport."""
        return len(self.request_calls)

    @property
    def last_call(self):
        return self.request_calls[-1]

    async def send(self, request: Request) -> Response:
        body = request.read()
        call = {
            "method": request.method,
            "url": request.url,
            "headers": dict(request.headers),
            "params": dict(request.params),
            "body": body,
        }
        self.request_calls.append(call)

        if self.handler:
            response = self.handler(call)
            if inspect.isawaitable(response):
                response = await response
            return response
        return json_response(200, {}, url=request.url)

    async def close(self):
        """Mock close method."""
        self.closed = True


class RecordingMiddleware:
    """Appends '<phase>:<name>' to a shared log and never changes anything."""

    def __init__(self, name, log):
        self.name = name
        self.log = log

    async def on_request(self, request, context):
        self.log.append(f"request:{self.name}")

    async def on_response(self, response, context):
        self.log.append(f"response:{self.name}")
