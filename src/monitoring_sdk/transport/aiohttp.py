"""
Aiohttp transport implementation for Monitoring SDK.

This module provides AiohttpTransport, an alternative async HTTP client for the SDK.
The session is created lazily on first use so the transport can be built
outside a running event loop.
"""

import aiohttp

from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response

from .base import BaseTransport


class AiohttpTransport(BaseTransport):
    """
    Async transport implementation using aiohttp.ClientSession.
    """

    def __init__(self, timeout: float = 30.0):
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def send(self, request: Request) -> Response:
        # Create session if not exists
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )

        async with self._session.request(
            method=request.method,
            url=request.url,
            headers=dict(request.headers),
            params=request.params or None,
            data=request.read() or None,
        ) as response:
            content = await response.read()
            return Response(
                status_code=response.status,
                headers=list(response.headers.items()),
                content=content,
                url=str(response.url),
            )

    async def close(self):
        if self._session:
            await self._session.close()
            self._session = None
