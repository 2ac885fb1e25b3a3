import asyncio

import requests

from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response

from .base import BaseTransport


class RequestsTransport(BaseTransport):
    """
    Sync transport implementation using requests.Session.

    This transport wraps the synchronous requests library in an async interface
    to provide compatibility with the async-first SDK design.

    Note: This is a compatibility layer for users who need to use requests
    in an async context. For best performance, use httpx or aiohttp.
    """

    def __init__(self, timeout: float = 30.0):
        self._timeout = timeout
        self._session = requests.Session()

    async def send(self, request: Request) -> Response:
        """
        Async wrapper around synchronous requests.

        This method runs the synchronous requests call in a thread pool
        to avoid blocking the event loop.
        """
        content = request.read() or None

        def make_request() -> requests.Response:
            return self._session.request(
                method=request.method,
                url=request.url,
                headers=dict(request.headers),
                params=request.params or None,
                data=content,
                timeout=self._timeout,
            )

        # Run sync requests in thread pool to avoid blocking
        loop = asyncio.get_event_loop()
        response = await loop.run_in_executor(None, make_request)
        return Response(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
            url=response.url,
        )

    async def close(self):
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._session.close)
