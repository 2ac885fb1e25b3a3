from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response


class BaseTransport:
    """
    Abstract transport layer interface for Monitoring SDK.
    All HTTP client backends should inherit from this class.

    A transport is the last stage of the middleware pipeline: it reads the
    request body, performs the call and wraps the result into a `Response`.

    Supported transports:
    - httpx: Native async HTTP client
    - aiohttp: Native async HTTP client
    - requests: Sync HTTP client wrapped in async interface
    """

    async def send(self, request: Request) -> Response:
        """
        Async send method for all transports.
        Override this method in transport implementations.
        """
        raise NotImplementedError(
            "Transport implementations must override this method."
        )

    async def close(self):
        pass
