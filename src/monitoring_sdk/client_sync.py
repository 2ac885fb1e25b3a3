"""
Synchronous wrapper for MonitoringClient.

This module provides a synchronous interface on top of the async MonitoringClient
to support users who need sync operations.
"""

import asyncio
from typing import Any
from typing import Mapping

from .client import MonitoringClient
from .client import Timestamp
from .config import MonitoringAPISettings
from .messages import Response
from .middleware import Middleware
from .models import AlertPolicy
from .models import AlertPolicyList
from .models import MetricsResponse


class MonitoringClientSync:
    """
    Synchronous wrapper for MonitoringClient.

    The async client runs on a private event loop owned by this wrapper, so
    transport connections survive between calls.

    Example:
        with MonitoringClientSync(settings) as client:
            cpu = client.get_droplet_metrics("cpu", "17209102", start, end)
    """

    def __init__(
        self,
        settings: MonitoringAPISettings,
        transport_name: str | None = None,
        middlewares: list[Middleware] | None = None,
        **kwargs,
    ):
        """
        Initialize the synchronous client.

        Args:
            settings: API configuration settings
            transport_name: HTTP transport to use (httpx, aiohttp, requests)
            middlewares: Extra middleware for the pipeline
            **kwargs: Passed through to MonitoringClient
        """
        self._loop = asyncio.new_event_loop()
        self._async_client = MonitoringClient(
            settings=settings,
            transport_name=transport_name,
            middlewares=middlewares,
            **kwargs,
        )

    @property
    def pipeline(self):
        return self._async_client.pipeline

    def _run(self, coro):
        return self._loop.run_until_complete(coro)

    def use(self, *middlewares: Middleware) -> None:
        self._async_client.use(*middlewares)

    def eject(self, *middlewares: Middleware) -> None:
        self._async_client.eject(*middlewares)

    def get_droplet_metrics(
        self, metric: str, host_id: str, start: Timestamp, end: Timestamp
    ) -> MetricsResponse:
        return self._run(
            self._async_client.get_droplet_metrics(metric, host_id, start, end)
        )

    def get_droplet_bandwidth(
        self,
        host_id: str,
        interface: str,
        direction: str,
        start: Timestamp,
        end: Timestamp,
    ) -> MetricsResponse:
        return self._run(
            self._async_client.get_droplet_bandwidth(
                host_id, interface, direction, start, end
            )
        )

    def get_app_metrics(
        self,
        metric: str,
        app_id: str,
        start: Timestamp,
        end: Timestamp,
        app_component: str | None = None,
    ) -> MetricsResponse:
        return self._run(
            self._async_client.get_app_metrics(
                metric, app_id, start, end, app_component=app_component
            )
        )

    def get_metrics_cached(
        self,
        metric: str,
        start: Timestamp,
        end: Timestamp,
        host_id: str | None = None,
        app_id: str | None = None,
        app_component: str | None = None,
    ) -> MetricsResponse:
        return self._run(
            self._async_client.get_metrics_cached(
                metric,
                start,
                end,
                host_id=host_id,
                app_id=app_id,
                app_component=app_component,
            )
        )

    def list_alert_policies(self, page: int = 1, per_page: int = 20) -> AlertPolicyList:
        return self._run(self._async_client.list_alert_policies(page, per_page))

    def get_alert_policy(self, alert_uuid: str) -> AlertPolicy:
        return self._run(self._async_client.get_alert_policy(alert_uuid))

    def get_alert_policy_cached(self, alert_uuid: str) -> AlertPolicy:
        return self._run(self._async_client.get_alert_policy_cached(alert_uuid))

    def create_alert_policy(
        self, policy: AlertPolicy | Mapping[str, Any]
    ) -> AlertPolicy:
        return self._run(self._async_client.create_alert_policy(policy))

    def update_alert_policy(
        self, alert_uuid: str, policy: AlertPolicy | Mapping[str, Any]
    ) -> AlertPolicy:
        return self._run(self._async_client.update_alert_policy(alert_uuid, policy))

    def delete_alert_policy(self, alert_uuid: str) -> None:
        return self._run(self._async_client.delete_alert_policy(alert_uuid))

    def request(self, method: str, schema_path: str, **kwargs) -> Response:
        """Raw call through the pipeline, see MonitoringClient.request."""
        return self._run(self._async_client.request(method, schema_path, **kwargs))

    def close(self):
        """
        Synchronous cleanup of client resources.
        """
        if self._loop.is_closed():
            return
        try:
            self._run(self._async_client.aclose())
        finally:
            self._loop.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
