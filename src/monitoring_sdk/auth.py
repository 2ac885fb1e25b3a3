"""
This module provides an asynchronous TokenProvider class responsible for:
- obtaining access tokens through a user-supplied callback
- retrying transient failures (with exponential backoff)
- managing token expiration and reuse across calls.

The provider owns its cache: it is created by the application and handed to
AuthMiddleware, instead of keeping the token in module-level state.
"""

import asyncio
import inspect
import logging
import math
import time
from typing import Awaitable
from typing import Callable
from typing import Optional
from typing import Union

from tenacity import AsyncRetrying
from tenacity import retry_if_not_exception_type
from tenacity import stop_after_attempt
from tenacity import wait_exponential
from tenacity.wait import wait_base

from monitoring_sdk.token_store import TokenStore

logger = logging.getLogger("monitoring_sdk.auth")

TokenCallback = Callable[[], Union[str, Awaitable[str]]]


class AuthError(Exception):
    """Custom exception for authentication errors."""

    pass


class TokenProvider:
    """
    Hands out a valid access token, fetching a new one only when needed.

    Concurrent callers that find the token missing or expired share a single
    fetch: the first one refreshes, the others wait and reuse its result.

    Attributes:
        ttl (float | None): Token lifetime in seconds, None for tokens that never expire.
        token_store (TokenStore | None): Optional persistence between processes.

    Example:
        async def fetch_token() -> str:
            return await my_oauth_client.exchange(refresh_token)

        provider = TokenProvider(fetch_token, ttl=300)
        client = MonitoringClient(settings, token_provider=provider)
    """

    def __init__(
        self,
        fetch_token: TokenCallback,
        ttl: Optional[float] = 300.0,
        retry_attempts: int = 3,
        token_store: Optional[TokenStore] = None,
        expiry_margin: float = 10.0,
        retry_wait: Optional[wait_base] = None,
    ):
        """
        Args:
            fetch_token (TokenCallback): Returns a fresh access token; may be a coroutine function.
            ttl (float | None, optional): Seconds a fetched token stays valid. Defaults to 300.
            retry_attempts (int, optional): How many times to call fetch_token before giving up. Defaults to 3.
            token_store (TokenStore | None, optional): Where to persist tokens.
            expiry_margin (float, optional): Seconds before expiry at which a token counts as stale.
            retry_wait (wait_base | None, optional): tenacity wait strategy between attempts.
        """
        self._fetch_token = fetch_token
        self.ttl = ttl
        self.token_store = token_store
        self._retry_attempts = retry_attempts
        self._expiry_margin = expiry_margin
        self._retry_wait = retry_wait or wait_exponential(multiplier=0.5, min=1, max=5)
        self._access_token: Optional[str] = None
        self._token_expiry: float = 0
        self._lock = asyncio.Lock()

    @classmethod
    def static(cls, token: str) -> "TokenProvider":
        """Provider for a long-lived token, e.g. a personal access token."""
        if not token or not token.strip():
            raise AuthError("Token is missing or empty")

        def _fetch() -> str:
            return token

        return cls(_fetch, ttl=None)

    def is_token_expired(self) -> bool:
        """
        Checks if the current access token is expired or about to expire.

        Returns:
            bool: True if the token is missing or expired.
        """
        return not self._access_token or (
            time.time() > self._token_expiry - self._expiry_margin
        )

    async def get_token(self) -> str:
        """
        Returns a valid access token. Fetches a new one only if it's expired or missing.
        """
        if not self.is_token_expired():
            return self._access_token

        async with self._lock:
            # Another caller may have refreshed while we waited
            if not self.is_token_expired():
                logger.debug("Using token refreshed by a concurrent call")
                return self._access_token

            if not self._access_token and self.token_store:
                logger.debug("Attempting to load token from store...")
                token_data = await self.token_store.load()
                if token_data:
                    self._access_token = token_data["access_token"]
                    self._token_expiry = token_data["expires_at"]
                    if not self.is_token_expired():
                        logger.debug("Using token from store")
                        return self._access_token

            logger.debug("No valid token. Fetching...")
            return await self._refresh()

    async def invalidate(self):
        """Forget the current token so the next `get_token` fetches a new one."""
        async with self._lock:
            self._access_token = None
            self._token_expiry = 0
            if self.token_store:
                await self.token_store.clear()
        logger.debug("Access token invalidated")

    async def _refresh(self) -> str:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=self._retry_wait,
                retry=retry_if_not_exception_type(AuthError),
                reraise=True,
            ):
                with attempt:
                    token = self._fetch_token()
                    if inspect.isawaitable(token):
                        token = await token
                    if not token or not str(token).strip():
                        raise AuthError("Token callback returned an empty token")
        except AuthError:
            raise
        except Exception as exc:
            logger.error(f"Token callback failed after {self._retry_attempts} attempts: {exc}")
            raise AuthError(
                f"Failed to acquire access token after {self._retry_attempts} attempts"
            ) from exc

        self._access_token = token
        self._token_expiry = math.inf if self.ttl is None else time.time() + self.ttl
        logger.debug("New access token acquired")

        if self.token_store and self.ttl is not None:
            try:
                await self.token_store.save(self._access_token, self._token_expiry)
            except Exception as e:
                logger.warning(f"Failed to save token: {e}")
        return self._access_token
