"""
Configuration management for Monitoring SDK.

This module provides MonitoringAPISettings class that handles all SDK configuration
with support for environment variables, .env files, and sensible defaults.

Environment variables are automatically loaded with MONITORING_API_ prefix.
Example: MONITORING_API_TOKEN=your_token
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class MonitoringAPISettings(BaseSettings):
    """
    Configuration settings for Monitoring SDK with environment variable support.

    This class automatically loads configuration from:
    - Environment variables (with MONITORING_API_ prefix)
    - .env files
    - Default values for optional settings

    Example:
        # From environment
        export MONITORING_API_TOKEN=your_token
        export MONITORING_API_TIMEOUT=60.0

        # In code
        settings = MonitoringAPISettings()
    """

    token: str | None = Field(default=None, description="API access token")
    base_url: str = "https://api.digitalocean.com"
    timeout: float = 30.0
    transport: str = "httpx"  # default, can be 'aiohttp' or 'requests'
    metrics_cache_ttl: int = 60
    token_ttl: float = 300.0
    persist_token: bool = False
    token_cache_path: Path = Field(
        default=Path.home() / ".monitoring_sdk" / "token_cache.json"
    )

    model_config = SettingsConfigDict(
        env_prefix="MONITORING_API_", env_file=".env", extra="ignore"
    )
