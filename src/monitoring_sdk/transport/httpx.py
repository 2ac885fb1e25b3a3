import httpx

from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response

from .base import BaseTransport


class HttpxTransport(BaseTransport):
    """
    Async transport implementation using httpx.AsyncClient.

    Args:
        timeout (float): Request timeout in seconds
        client (httpx.AsyncClient | None): Preconfigured client, e.g. one built
            around ``httpx.MockTransport`` in tests
    """

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    async def send(self, request: Request) -> Response:
        response = await self._client.request(
            method=request.method,
            url=request.url,
            headers=request.headers,
            params=request.params or None,
            content=request.read() or None,
        )
        return Response(
            status_code=response.status_code,
            headers=response.headers,
            content=response.content,
            url=str(response.url),
        )

    async def close(self):
        await self._client.aclose()
