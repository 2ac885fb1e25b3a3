"""
Middleware that turns error responses into exceptions.

Its response hook runs after those of every middleware registered later, and
aborts the call for non-2xx statuses. Inside MonitoringClient the built-in
middleware are registered before any user middleware, so raising here skips
their response hooks; the client still invalidates the token on a raised 401.
"""

import json
import logging
from typing import Iterable

from monitoring_sdk.exceptions import UnexpectedStatusError
from monitoring_sdk.messages import Response
from monitoring_sdk.middleware import MiddlewareContext

logger = logging.getLogger("monitoring_sdk.middleware.status")


class RaiseForStatusMiddleware:
    """
    Raises UnexpectedStatusError for every non-2xx response.

    The API reports errors as {"id": "...", "message": "..."}; the message is
    used for the exception text and the whole payload becomes its details.

    Args:
        ignore_statuses (Iterable[int]): Statuses passed through untouched
    """

    def __init__(self, ignore_statuses: Iterable[int] = ()):
        self.ignore_statuses = frozenset(ignore_statuses)

    def on_response(self, response: Response, context: MiddlewareContext) -> None:
        if response.ok or response.status_code in self.ignore_statuses:
            return None

        # The response is not forwarded, so reading it directly is fine
        raw = response.text()
        try:
            details = json.loads(raw) if raw else None
        except ValueError:
            details = raw

        message = None
        if isinstance(details, dict):
            message = details.get("message")
        message = message or response.reason_phrase or "Unexpected status"

        logger.debug(f"{context.method} {context.schema_path} failed: {response.status_code}")
        raise UnexpectedStatusError(
            response.status_code,
            f"{response.url or context.schema_path}: {response.status_code} {message}",
            details=details,
        )
