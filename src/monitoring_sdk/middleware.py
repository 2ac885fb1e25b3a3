"""
Middleware interface for MonitoringClient.

This module defines the `Middleware` protocol used in the Monitoring SDK.
It allows users to hook into the request/response lifecycle of every HTTP
operation performed by the `MonitoringClient`.

Both hooks are optional: a middleware may implement only `on_request`, only
`on_response`, or both. Hooks may be plain functions or coroutines.

Current implementations:
- Authentication (see: AuthMiddleware) - injects the access token
- Logging (see: LoggingMiddleware) - logs requests/responses with timing
- Status checking (see: RaiseForStatusMiddleware) - turns error responses into exceptions
- Cache invalidation (see: AlertCacheMiddleware) - clears cached alert policies after writes
"""

from typing import Any
from typing import Awaitable
from typing import Protocol
from uuid import uuid4

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response


class MiddlewareContext(BaseModel):
    """
    Per-call metadata handed to every hook next to the request or response.

    Attributes:
        request_id (str): Unique id of this call, stable across both phases
        method (str): HTTP method of the operation
        schema_path (str): Path template of the operation, e.g. '/v2/monitoring/alerts/{alert_uuid}'
        base_url (str): API base URL
        params (dict): Path and query parameter values the call was made with
    """

    model_config = ConfigDict(frozen=True)

    request_id: str = Field(default_factory=lambda: uuid4().hex)
    method: str
    schema_path: str
    base_url: str = ""
    params: dict[str, Any] = Field(default_factory=dict)


class Middleware(Protocol):
    def on_request(
        self, request: Request, context: MiddlewareContext
    ) -> Request | None | Awaitable[Request | None]:
        """
        Called before the HTTP request is executed, in registration order.

        This can be used to:
        - Add or modify headers (current: AuthMiddleware)
        - Log request details (current: LoggingMiddleware)
        - Cancel or abort execution (by raising)

        Args:
            request (Request): The request as produced by the previous stage
            context (MiddlewareContext): Call metadata

        Returns:
            Request | None: A replacement request, or None to leave it unchanged
        """

    def on_response(
        self, response: Response, context: MiddlewareContext
    ) -> Response | None | Awaitable[Response | None]:
        """
        Called after the HTTP response is received, in reverse registration order.

        This can be used to:
        - Log response status and timing (current: LoggingMiddleware)
        - Turn error statuses into exceptions (current: RaiseForStatusMiddleware)
        - Perform cache invalidation (current: AlertCacheMiddleware)

        Reading the body consumes it; clone the response first if it is forwarded.

        Args:
            response (Response): The response as produced by the previous stage
            context (MiddlewareContext): Call metadata

        Returns:
            Response | None: A replacement response, or None to leave it unchanged
        """
