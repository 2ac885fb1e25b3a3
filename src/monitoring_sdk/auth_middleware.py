"""
Authentication middleware for Monitoring SDK.

Injects `Authorization: Bearer <token>` into every request whose path template
is not listed as unprotected. The token comes from a TokenProvider, which
caches it and only calls back into the application when it expires.

A 401 answer invalidates the cached token so the next call fetches a new one.
"""

import logging
from http import HTTPStatus
from typing import Sequence

from monitoring_sdk.auth import TokenProvider
from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response
from monitoring_sdk.middleware import MiddlewareContext

logger = logging.getLogger("monitoring_sdk.middleware.auth")


class AuthMiddleware:
    """
    Middleware that authenticates requests with a token from a TokenProvider.

    Args:
        token_provider (TokenProvider): Source of access tokens
        header (str): Header to set (default: 'Authorization')
        scheme (str): Prefix placed before the token (default: 'Bearer')
        unprotected_paths (Sequence[str]): Path template prefixes sent without a token

    Example:
        provider = TokenProvider.static("dop_v1_...")
        client.use(AuthMiddleware(provider, unprotected_paths=["/v2/public/"]))
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        header: str = "Authorization",
        scheme: str = "Bearer",
        unprotected_paths: Sequence[str] = (),
    ):
        self.token_provider = token_provider
        self.header = header
        self.scheme = scheme
        self.unprotected_paths = tuple(unprotected_paths)

    async def on_request(
        self, request: Request, context: MiddlewareContext
    ) -> Request | None:
        if context.schema_path.startswith(self.unprotected_paths):
            return None
        # Respect credentials set explicitly by the caller
        if self.header in request.headers:
            return None

        token = await self.token_provider.get_token()
        value = f"{self.scheme} {token}" if self.scheme else token
        return request.with_headers({self.header: value})

    async def on_response(
        self, response: Response, context: MiddlewareContext
    ) -> Response | None:
        if response.status_code == HTTPStatus.UNAUTHORIZED:
            logger.warning(
                f"Got 401 for {context.method} {context.schema_path}, invalidating token"
            )
            await self.token_provider.invalidate()
        return None
