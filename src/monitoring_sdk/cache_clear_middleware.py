"""
Middleware to invalidate cached alert policies after they change.
Used in MonitoringClient middleware chain.

When an alert policy is successfully updated (PUT) or deleted (DELETE),
this middleware deletes the cached copy for that alert_uuid.
"""

import logging

from aiocache.base import BaseCache

from monitoring_sdk.messages import Response
from monitoring_sdk.middleware import MiddlewareContext

logger = logging.getLogger("monitoring_sdk.middleware.cache")

ALERT_POLICY_PATH = "/v2/monitoring/alerts/{alert_uuid}"


def alert_cache_key(alert_uuid: str) -> str:
    return f"alert:{alert_uuid}"


class AlertCacheMiddleware:
    """
    Middleware that clears the alert policy cache when a policy is modified.

    Only acts on PUT/DELETE of /v2/monitoring/alerts/{alert_uuid} answered with
    a 2xx status. The alert_uuid comes from the call context; the body is
    never read.
    """

    def __init__(self, cache: BaseCache):
        self._cache = cache

    async def on_response(
        self, response: Response, context: MiddlewareContext
    ) -> None:
        if context.schema_path != ALERT_POLICY_PATH:
            return None
        if context.method not in ("PUT", "DELETE") or not response.ok:
            return None

        alert_uuid = context.params.get("alert_uuid")
        if not alert_uuid:
            logger.warning("No alert_uuid found in call context")
            return None

        try:
            await self._cache.delete(alert_cache_key(alert_uuid))
            logger.info(f"Cleared cache for alert policy {alert_uuid}")
        except Exception as e:
            logger.error(f"Failed to delete cache for {alert_uuid}: {e}")
        return None
