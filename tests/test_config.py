from pathlib import Path

from monitoring_sdk.config import MonitoringAPISettings


def test_monitoring_api_settings_env(monkeypatch):
    # Set environment variables to test values
    monkeypatch.setenv("MONITORING_API_TOKEN", "test-token")
    monkeypatch.setenv("MONITORING_API_BASE_URL", "https://test-api.example.com")
    monkeypatch.setenv("MONITORING_API_TIMEOUT", "15")
    monkeypatch.setenv("MONITORING_API_TRANSPORT", "aiohttp")
    monkeypatch.setenv("MONITORING_API_PERSIST_TOKEN", "true")
    monkeypatch.setenv("MONITORING_API_TOKEN_CACHE_PATH", "/tmp/monitoring/token.json")

    settings = MonitoringAPISettings()
    assert settings.token == "test-token"
    assert settings.base_url == "https://test-api.example.com"
    assert settings.timeout == 15
    assert settings.transport == "aiohttp"
    assert settings.persist_token is True
    assert settings.token_cache_path == Path("/tmp/monitoring/token.json")


def test_monitoring_api_settings_defaults(monkeypatch):
    monkeypatch.delenv("MONITORING_API_TOKEN", raising=False)

    settings = MonitoringAPISettings()
    assert settings.token is None
    assert settings.base_url == "https://api.digitalocean.com"
    assert settings.transport == "httpx"
    assert settings.metrics_cache_ttl == 60
