"""
Example usage of the middleware pipeline in Monitoring SDK.

This example demonstrates how to:
- authenticate with a token fetched through a callback
- inject headers from a custom middleware
- inspect response bodies without consuming them
- turn error responses into exceptions
"""

import asyncio
import logging
import os
import time

from monitoring_sdk import LoggingMiddleware
from monitoring_sdk import MonitoringAPISettings
from monitoring_sdk import MonitoringClient
from monitoring_sdk import RaiseForStatusMiddleware
from monitoring_sdk import UnexpectedStatusError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TraceHeaderMiddleware:
    """Adds a trace id to every outgoing request."""

    def on_request(self, request, context):
        return request.with_headers({"X-Request-Id": context.request_id})


class EmptySeriesWarningMiddleware:
    """Warns when a metrics query returns no series. Reads a clone of the body."""

    def on_response(self, response, context):
        if not context.schema_path.startswith("/v2/monitoring/metrics/") or not response.ok:
            return None
        payload = response.clone().json()
        if not payload.get("data", {}).get("result"):
            logger.warning(f"No series returned for {context.schema_path} {context.params}")
        return None


async def fetch_token() -> str:
    # A real application would ask a secrets manager or an OAuth server here
    return os.environ["DIGITALOCEAN_TOKEN"]


async def main():
    settings = MonitoringAPISettings()

    async with MonitoringClient(
        settings,
        fetch_token=fetch_token,
        middlewares=[
            # First user middleware: its response hook runs after the other two
            RaiseForStatusMiddleware(),
            TraceHeaderMiddleware(),
            EmptySeriesWarningMiddleware(),
        ],
    ) as client:
        logging_middleware = LoggingMiddleware()
        client.use(logging_middleware)

        end = int(time.time())
        start = end - 3600
        try:
            cpu = await client.get_droplet_metrics("cpu", "17209102", start, end)
            logger.info(f"Got {len(cpu.series)} CPU series")

            # Second identical query within the TTL comes from the cache
            await client.get_metrics_cached("cpu", start, end, host_id="17209102")
        except UnexpectedStatusError as exc:
            logger.error(f"API call failed with {exc.status_code}: {exc}")

        client.eject(logging_middleware)

        policies = await client.list_alert_policies()
        for policy in policies.policies:
            logger.info(f"{policy.uuid}: {policy.description} ({policy.compare} {policy.value})")


if __name__ == "__main__":
    asyncio.run(main())
