"""
Async-first Monitoring API SDK Client.

This module provides the main MonitoringClient class that handles all interactions
with the monitoring API. Features include:

- Async-first design with async/await for all API operations
- Every call flows through an ordered middleware pipeline
- Token injection through AuthMiddleware and an injectable TokenProvider
- Multiple HTTP transport backends (httpx, aiohttp, requests)
- Parameter validation against the monitoring parameter catalog
- Configurable caching with TTL for metric windows and alert policies
- Comprehensive error handling with meaningful exceptions

Example usage:
    from monitoring_sdk import MonitoringClient, MonitoringAPISettings

    settings = MonitoringAPISettings(token="your-token")
    async with MonitoringClient(settings) as client:
        cpu = await client.get_droplet_metrics("cpu", "17209102", start, end)
        policies = await client.list_alert_policies()
"""

import json
import logging
from datetime import datetime
from http import HTTPStatus
from typing import Any
from typing import Awaitable
from typing import Callable
from typing import Iterable
from typing import Mapping
from urllib.parse import quote

from aiocache import SimpleMemoryCache

from monitoring_sdk.auth import TokenCallback
from monitoring_sdk.auth import TokenProvider
from monitoring_sdk.auth_middleware import AuthMiddleware
from monitoring_sdk.cache_clear_middleware import ALERT_POLICY_PATH
from monitoring_sdk.cache_clear_middleware import AlertCacheMiddleware
from monitoring_sdk.cache_clear_middleware import alert_cache_key
from monitoring_sdk.config import MonitoringAPISettings
from monitoring_sdk.exceptions import ParameterValidationError
from monitoring_sdk.exceptions import UnexpectedStatusError
from monitoring_sdk.messages import UNSET
from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response
from monitoring_sdk.middleware import Middleware
from monitoring_sdk.middleware import MiddlewareContext
from monitoring_sdk.models import AlertPolicy
from monitoring_sdk.models import AlertPolicyList
from monitoring_sdk.models import MetricsResponse
from monitoring_sdk.parameters import resolve_parameters
from monitoring_sdk.pipeline import MiddlewarePipeline
from monitoring_sdk.token_store import FileTokenStore
from monitoring_sdk.transport import get_transport
from monitoring_sdk.transport.base import BaseTransport

logger = logging.getLogger("monitoring_sdk.client")

ALERTS_PATH = "/v2/monitoring/alerts"
DROPLET_BANDWIDTH_PATH = "/v2/monitoring/metrics/droplet/bandwidth"

DROPLET_METRICS = frozenset(
    {
        "cpu",
        "memory_free",
        "memory_available",
        "memory_cached",
        "memory_total",
        "load_1",
        "load_5",
        "load_15",
        "filesystem_free",
        "filesystem_size",
    }
)
APP_METRICS = frozenset({"cpu_percentage", "memory_percentage", "restart_count"})

_WINDOW = ("metric_timestamp_start", "metric_timestamp_end")

Timestamp = int | str | datetime


class MonitoringClient:
    """
    Async-first client for the monitoring API.

    All calls, typed or raw, go through `self.pipeline`. When a token source is
    available, an AuthMiddleware is registered first so it has first refusal
    over every request and sees every response last. A 401 raised by a later
    middleware skips that hook, so `request` invalidates the token itself.

    Args:
        settings (MonitoringAPISettings): SDK configuration with support for environment variables
        transport_name (str | None): Transport backend ('httpx', 'aiohttp', 'requests').
                                   Defaults to settings.transport
        middlewares (list[Middleware] | None): Extra middleware, registered after the built-in ones
        token_provider (TokenProvider | None): Source of access tokens
        fetch_token (TokenCallback | None): Callback used to build a TokenProvider when
                                          none is given
        metrics_cache_ttl (int | None): TTL for cached metric windows and alert policies
                                      in seconds (default: from settings)
        transport (BaseTransport | None): Ready transport instance, overrides transport_name

    Example:
        async def fetch_token() -> str:
            return await vault.read("monitoring-token")

        client = MonitoringClient(
            settings,
            fetch_token=fetch_token,
            middlewares=[LoggingMiddleware()],
        )
    """

    def __init__(
        self,
        settings: MonitoringAPISettings,
        transport_name: str | None = None,
        middlewares: list[Middleware] | None = None,
        token_provider: TokenProvider | None = None,
        fetch_token: TokenCallback | None = None,
        metrics_cache_ttl: int | None = None,
        transport: BaseTransport | None = None,
    ):
        self.settings = settings
        self.transport = transport or get_transport(
            transport_name or settings.transport, timeout=settings.timeout
        )

        if token_provider is None and fetch_token is not None:
            token_store = (
                FileTokenStore(settings.token_cache_path)
                if settings.persist_token
                else None
            )
            token_provider = TokenProvider(
                fetch_token, ttl=settings.token_ttl, token_store=token_store
            )
        elif token_provider is None and settings.token:
            token_provider = TokenProvider.static(settings.token)
        self.token_provider = token_provider

        self._cache = SimpleMemoryCache()
        self.metrics_cache_ttl = metrics_cache_ttl or settings.metrics_cache_ttl

        builtins: list[Middleware] = []
        if token_provider is not None:
            builtins.append(AuthMiddleware(token_provider))
        builtins.append(AlertCacheMiddleware(self._cache))
        self.pipeline = MiddlewarePipeline(builtins + list(middlewares or []))

    def use(self, *middlewares: Middleware) -> None:
        """Register middleware at the end of the chain."""
        self.pipeline.use(*middlewares)

    def eject(self, *middlewares: Middleware) -> None:
        """Remove the first registration of each given middleware."""
        self.pipeline.eject(*middlewares)

    def _build_url(self, schema_path: str, path_params: Mapping[str, Any]) -> str:
        try:
            path = schema_path.format(
                **{k: quote(str(v), safe="") for k, v in path_params.items()}
            )
        except KeyError as err:
            raise ParameterValidationError(
                f"Missing path parameter {err} for {schema_path}"
            ) from err
        return self.settings.base_url.rstrip("/") + path

    async def request(
        self,
        method: str,
        schema_path: str,
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        json: Any = UNSET,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        """
        Perform a raw call through the middleware pipeline.

        Args:
            method (str): HTTP method
            schema_path (str): Path template, e.g. '/v2/monitoring/alerts/{alert_uuid}'
            path_params (Mapping | None): Values for the template placeholders
            query (Mapping | None): Query parameters; None values are dropped
            json (Any): JSON body; None is sent as JSON null
            headers (Mapping | None): Extra request headers

        Returns:
            Response: The response after all middleware ran. Its body is unread.

        Raises:
            UnexpectedStatusError: Raised by a middleware; a 401 also invalidates
                the cached token
        """
        path_params = dict(path_params or {})
        query = {k: v for k, v in (query or {}).items() if v is not None}
        url = self._build_url(schema_path, path_params)

        request = Request(
            method,
            url,
            headers={"Accept": "application/json", **(headers or {})},
            params=query,
            json=json,
        )
        context = MiddlewareContext(
            method=request.method,
            schema_path=schema_path,
            base_url=self.settings.base_url,
            params={**query, **path_params},
        )
        try:
            return await self.pipeline.dispatch(request, context, self.transport.send)
        except UnexpectedStatusError as err:
            # A middleware that raises on the 401 skips AuthMiddleware.on_response
            if (
                err.status_code == HTTPStatus.UNAUTHORIZED
                and self.token_provider is not None
            ):
                await self.token_provider.invalidate()
            raise

    async def _handle_response(
        self, response: Response, expected: Iterable[int] = (HTTPStatus.OK,)
    ) -> Any:
        if response.status_code in expected:
            if response.status_code == HTTPStatus.NO_CONTENT:
                return None
            return response.json()

        raw = response.text()
        try:
            details = json.loads(raw) if raw else None
        except ValueError:
            details = raw

        status = response.status_code
        if status == HTTPStatus.UNAUTHORIZED:
            raise UnexpectedStatusError(
                status, "Unauthorized: invalid or expired token.", details=details
            )
        if status == HTTPStatus.NOT_FOUND:
            raise UnexpectedStatusError(status, "Resource not found.", details=details)
        if status == HTTPStatus.TOO_MANY_REQUESTS:
            raise UnexpectedStatusError(
                status, "Rate limited by the API, try again later.", details=details
            )
        if status == HTTPStatus.UNPROCESSABLE_ENTITY:
            message = details.get("message") if isinstance(details, dict) else None
            raise UnexpectedStatusError(
                status,
                f"Validation error: {message or 'Unspecified error'}",
                details=details,
            )
        raise UnexpectedStatusError(status, f"Unexpected status: {status}", details=details)

    async def _get_metrics(
        self, schema_path: str, refs: Iterable[str], values: Mapping[str, Any]
    ) -> MetricsResponse:
        path_params, query = resolve_parameters(refs, values)
        response = await self.request(
            "GET", schema_path, path_params=path_params, query=query
        )
        return MetricsResponse.model_validate(await self._handle_response(response))

    async def get_droplet_metrics(
        self, metric: str, host_id: str, start: Timestamp, end: Timestamp
    ) -> MetricsResponse:
        """
        Retrieve a droplet metric (cpu, memory_*, load_*, filesystem_*) over a time window.

        Args:
            metric (str): One of DROPLET_METRICS
            host_id (str): The droplet ID
            start (int | str | datetime): Start of the window
            end (int | str | datetime): End of the window

        Raises:
            ParameterValidationError: On an unknown metric or invalid parameter
            UnexpectedStatusError: On API errors
        """
        if metric not in DROPLET_METRICS:
            raise ParameterValidationError(
                f"Unknown droplet metric '{metric}'",
                details={"allowed": sorted(DROPLET_METRICS)},
            )
        return await self._get_metrics(
            f"/v2/monitoring/metrics/droplet/{metric}",
            ("droplet_id", *_WINDOW),
            {"host_id": host_id, "start": start, "end": end},
        )

    async def get_droplet_bandwidth(
        self,
        host_id: str,
        interface: str,
        direction: str,
        start: Timestamp,
        end: Timestamp,
    ) -> MetricsResponse:
        """
        Retrieve droplet bandwidth for a network interface and traffic direction.

        Args:
            interface (str): 'private' or 'public'
            direction (str): 'inbound' or 'outbound'
        """
        return await self._get_metrics(
            DROPLET_BANDWIDTH_PATH,
            ("droplet_id", "network_interface", "network_direction", *_WINDOW),
            {
                "host_id": host_id,
                "interface": interface,
                "direction": direction,
                "start": start,
                "end": end,
            },
        )

    async def get_app_metrics(
        self,
        metric: str,
        app_id: str,
        start: Timestamp,
        end: Timestamp,
        app_component: str | None = None,
    ) -> MetricsResponse:
        """Retrieve an app platform metric, optionally for a single component."""
        if metric not in APP_METRICS:
            raise ParameterValidationError(
                f"Unknown app metric '{metric}'",
                details={"allowed": sorted(APP_METRICS)},
            )
        return await self._get_metrics(
            f"/v2/monitoring/metrics/apps/{metric}",
            ("app_id", "app_component", *_WINDOW),
            {
                "app_id": app_id,
                "app_component": app_component,
                "start": start,
                "end": end,
            },
        )

    async def _cached(
        self, key: str, loader: Callable[[], Awaitable[Any]], dump: Callable[[Any], Any]
    ) -> tuple[Any, bool]:
        try:
            cached = await self._cache.get(key)
            if cached is not None:
                logger.info(f"Cache HIT for {key}")
                return json.loads(cached), True
        except Exception as e:
            logger.warning(f"Failed to read cache for {key}: {e}")

        logger.info(f"Cache MISS for {key} - fetching from API")
        result = await loader()

        try:
            # Store as JSON string to avoid serialization issues
            await self._cache.set(
                key, json.dumps(dump(result)), ttl=self.metrics_cache_ttl
            )
        except Exception as e:
            logger.error(f"Failed to write to cache for {key}: {e}")
        return result, False

    async def get_metrics_cached(
        self,
        metric: str,
        start: Timestamp,
        end: Timestamp,
        host_id: str | None = None,
        app_id: str | None = None,
        app_component: str | None = None,
    ) -> MetricsResponse:
        """
        Retrieve a droplet metric (host_id given) or app metric (app_id given)
        with caching.

        A window with fixed start and end timestamps does not change once it
        lies in the past, so repeated dashboard queries can be served from an
        in-memory cache for `metrics_cache_ttl` seconds.

        Raises:
            ParameterValidationError: If neither or both of host_id and app_id are given
        """
        if (host_id is None) == (app_id is None):
            raise ParameterValidationError("Pass exactly one of host_id or app_id")

        if host_id is not None:
            target = f"droplet:{host_id}"

            async def loader():
                return await self.get_droplet_metrics(metric, host_id, start, end)

        else:
            target = f"app:{app_id}:{app_component or ''}"

            async def loader():
                return await self.get_app_metrics(
                    metric, app_id, start, end, app_component=app_component
                )

        window = f"{_as_timestamp(start)}-{_as_timestamp(end)}"
        key = f"metrics:{target}:{metric}:{window}"
        result, hit = await self._cached(key, loader, lambda r: r.model_dump(by_alias=True))
        return MetricsResponse.model_validate(result) if hit else result

    async def list_alert_policies(
        self, page: int = 1, per_page: int = 20
    ) -> AlertPolicyList:
        """List alert policies, one page at a time."""
        response = await self.request(
            "GET", ALERTS_PATH, query={"page": page, "per_page": per_page}
        )
        return AlertPolicyList.model_validate(await self._handle_response(response))

    async def get_alert_policy(self, alert_uuid: str) -> AlertPolicy:
        path_params, _ = resolve_parameters(("alert_uuid",), {"alert_uuid": alert_uuid})
        response = await self.request("GET", ALERT_POLICY_PATH, path_params=path_params)
        data = await self._handle_response(response)
        return AlertPolicy.model_validate(data["policy"])

    async def get_alert_policy_cached(self, alert_uuid: str) -> AlertPolicy:
        """
        Retrieve an alert policy with caching.

        The cached copy is dropped by AlertCacheMiddleware as soon as the policy
        is updated or deleted through this client.
        """

        async def loader():
            return await self.get_alert_policy(alert_uuid)

        result, hit = await self._cached(
            alert_cache_key(alert_uuid), loader, lambda r: r.model_dump()
        )
        return AlertPolicy.model_validate(result) if hit else result

    async def create_alert_policy(self, policy: AlertPolicy | Mapping[str, Any]) -> AlertPolicy:
        response = await self.request("POST", ALERTS_PATH, json=_policy_payload(policy))
        data = await self._handle_response(
            response, expected=(HTTPStatus.OK, HTTPStatus.CREATED)
        )
        return AlertPolicy.model_validate(data["policy"])

    async def update_alert_policy(
        self, alert_uuid: str, policy: AlertPolicy | Mapping[str, Any]
    ) -> AlertPolicy:
        path_params, _ = resolve_parameters(("alert_uuid",), {"alert_uuid": alert_uuid})
        response = await self.request(
            "PUT", ALERT_POLICY_PATH, path_params=path_params, json=_policy_payload(policy)
        )
        data = await self._handle_response(response)
        return AlertPolicy.model_validate(data["policy"])

    async def delete_alert_policy(self, alert_uuid: str) -> None:
        path_params, _ = resolve_parameters(("alert_uuid",), {"alert_uuid": alert_uuid})
        response = await self.request(
            "DELETE", ALERT_POLICY_PATH, path_params=path_params
        )
        await self._handle_response(response, expected=(HTTPStatus.NO_CONTENT,))

    async def aclose(self):
        """
        Gracefully close client resources and transport connections.

        Example:
            async with MonitoringClient(settings) as client:
                policies = await client.list_alert_policies()

            # Or explicit cleanup
            client = MonitoringClient(settings)
            try:
                policies = await client.list_alert_policies()
            finally:
                await client.aclose()
        """
        await self.transport.close()

    async def __aenter__(self) -> "MonitoringClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


def _as_timestamp(value: Timestamp) -> str:
    if isinstance(value, datetime):
        return str(int(value.timestamp()))
    return str(value)


def _policy_payload(policy: AlertPolicy | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(policy, AlertPolicy):
        return policy.model_dump(exclude_none=True, exclude={"uuid"})
    return dict(policy)
