"""
Command-line interface for Monitoring SDK.

This module provides a CLI for querying the monitoring API with the SDK.
All commands use async operations under the hood; results are printed as JSON.

Available commands:
- droplet-metrics: Retrieve a droplet metric over a time window
- droplet-bandwidth: Retrieve droplet bandwidth for an interface and direction
- app-metrics: Retrieve an app platform metric
- list-alerts: List alert policies
- get-alert: Show one alert policy
- delete-alert: Delete an alert policy
- parameters: Print the parameter catalog as OpenAPI fragments
- clear-token-cache: Clear the token cache
- debug-token: Diagnose the cached access token
"""

import asyncio
import json
import logging
import sys
from datetime import datetime

import click

from monitoring_sdk.auth import AuthError
from monitoring_sdk.client import APP_METRICS
from monitoring_sdk.client import DROPLET_METRICS
from monitoring_sdk.client import MonitoringClient
from monitoring_sdk.config import MonitoringAPISettings
from monitoring_sdk.exceptions import MonitoringAPIError
from monitoring_sdk.logging_middleware import LoggingMiddleware
from monitoring_sdk.parameters import catalog_as_openapi
from monitoring_sdk.token_store import FileTokenStore

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger("monitoring_sdk.cli")


def _run(ctx: click.Context, call):
    """Run `call(client)` on a fresh client and print its JSON-serializable result."""

    async def _main():
        settings = MonitoringAPISettings()
        middlewares = [LoggingMiddleware()] if ctx.obj["log_requests"] else []
        client = MonitoringClient(settings, middlewares=middlewares)
        try:
            return await call(client)
        finally:
            await client.aclose()

    try:
        result = asyncio.run(_main())
    except (MonitoringAPIError, AuthError) as exc:
        click.echo(f"Error: {exc}", err=True)
        if getattr(exc, "details", None):
            click.echo(json.dumps(exc.details, indent=2, default=str), err=True)
        sys.exit(1)

    if result is not None:
        click.echo(json.dumps(result, indent=2, default=str))


@click.group()
@click.option(
    "--log-requests/--no-log-requests",
    default=False,
    help="Log every request and response",
)
@click.pass_context
def cli(ctx, log_requests):
    """Monitoring SDK CLI"""
    ctx.ensure_object(dict)
    ctx.obj["log_requests"] = log_requests


@cli.command()
@click.option("--host-id", required=True, help="The droplet ID")
@click.option(
    "--metric", required=True, type=click.Choice(sorted(DROPLET_METRICS)), help="Metric name"
)
@click.option("--start", required=True, help="Window start (UNIX timestamp)")
@click.option("--end", required=True, help="Window end (UNIX timestamp)")
@click.pass_context
def droplet_metrics(ctx, host_id, metric, start, end):
    """Retrieve a droplet metric over a time window."""

    async def call(client):
        result = await client.get_droplet_metrics(metric, host_id, start, end)
        return result.model_dump(by_alias=True)

    _run(ctx, call)


@cli.command()
@click.option("--host-id", required=True, help="The droplet ID")
@click.option("--interface", required=True, type=click.Choice(["private", "public"]))
@click.option("--direction", required=True, type=click.Choice(["inbound", "outbound"]))
@click.option("--start", required=True, help="Window start (UNIX timestamp)")
@click.option("--end", required=True, help="Window end (UNIX timestamp)")
@click.pass_context
def droplet_bandwidth(ctx, host_id, interface, direction, start, end):
    """Retrieve droplet bandwidth for a network interface and direction."""

    async def call(client):
        result = await client.get_droplet_bandwidth(
            host_id, interface, direction, start, end
        )
        return result.model_dump(by_alias=True)

    _run(ctx, call)


@cli.command()
@click.option("--app-id", required=True, help="The app UUID")
@click.option(
    "--metric", required=True, type=click.Choice(sorted(APP_METRICS)), help="Metric name"
)
@click.option("--start", required=True, help="Window start (UNIX timestamp)")
@click.option("--end", required=True, help="Window end (UNIX timestamp)")
@click.option("--app-component", default=None, help="The app component name")
@click.pass_context
def app_metrics(ctx, app_id, metric, start, end, app_component):
    """Retrieve an app platform metric."""

    async def call(client):
        result = await client.get_app_metrics(
            metric, app_id, start, end, app_component=app_component
        )
        return result.model_dump(by_alias=True)

    _run(ctx, call)


@cli.command()
@click.option("--page", default=1, show_default=True, type=int)
@click.option("--per-page", default=20, show_default=True, type=int)
@click.pass_context
def list_alerts(ctx, page, per_page):
    """List alert policies."""

    async def call(client):
        result = await client.list_alert_policies(page=page, per_page=per_page)
        return result.model_dump()

    _run(ctx, call)


@cli.command()
@click.option("--alert-uuid", required=True, help="Alert policy UUID")
@click.pass_context
def get_alert(ctx, alert_uuid):
    """Show one alert policy."""

    async def call(client):
        return (await client.get_alert_policy(alert_uuid)).model_dump()

    _run(ctx, call)


@cli.command()
@click.option("--alert-uuid", required=True, help="Alert policy UUID")
@click.pass_context
def delete_alert(ctx, alert_uuid):
    """Delete an alert policy."""

    async def call(client):
        await client.delete_alert_policy(alert_uuid)
        logger.info("Deleted alert policy %s", alert_uuid)

    _run(ctx, call)


@cli.command()
def parameters():
    """Print the parameter catalog as OpenAPI parameter objects."""
    click.echo(json.dumps(catalog_as_openapi(), indent=2))


@cli.command()
def clear_token_cache():
    """Clear the token cache."""

    async def _run_clear():
        settings = MonitoringAPISettings()
        await FileTokenStore(settings.token_cache_path).clear()

    asyncio.run(_run_clear())
    click.echo("Token cache cleared successfully")


@cli.command()
def debug_token():
    """Diagnose the current access token (from cache file)."""
    settings = MonitoringAPISettings()
    path = settings.token_cache_path
    click.echo(f"Checking token at: {path}")

    if not path.exists():
        click.echo("Token file does not exist.")
        sys.exit(1)

    try:
        token_data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        click.echo(f"Failed to read token: {e}")
        sys.exit(1)

    token = token_data.get("access_token")
    exp = token_data.get("expires_at")
    if not token or not exp:
        click.echo("Missing 'access_token' or 'expires_at'")
        sys.exit(1)

    exp_dt = datetime.fromtimestamp(exp)
    remaining = exp_dt - datetime.now()
    if remaining.total_seconds() <= 0:
        click.echo(f"Token expired at {exp_dt}")
    else:
        click.echo(f"Token valid until {exp_dt} ({remaining})")
        click.echo(f"Token prefix: {token[:10]}...")


if __name__ == "__main__":
    cli()
