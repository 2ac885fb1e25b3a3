import json
import time

import pytest
from click.testing import CliRunner

from monitoring_sdk import client as client_module
from monitoring_sdk.cli import cli
from tests.fakes import MockTransport
from tests.fakes import json_response


@pytest.fixture
def transport(monkeypatch):
    monkeypatch.setenv("MONITORING_API_TOKEN", "cli-token")
    monkeypatch.setenv("MONITORING_API_BASE_URL", "https://api.test")
    fake = MockTransport(
        lambda call: json_response(
            200, {"status": "success", "data": {"resultType": "matrix", "result": []}}
        )
    )
    monkeypatch.setattr(client_module, "get_transport", lambda name, timeout: fake)
    return fake


def test_help_lists_commands():
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "droplet-metrics" in result.output
    assert "list-alerts" in result.output


def test_droplet_metrics(transport):
    result = CliRunner().invoke(
        cli,
        [
            "droplet-metrics",
            "--host-id",
            "17209102",
            "--metric",
            "cpu",
            "--start",
            "1620683817",
            "--end",
            "1620705417",
        ],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["status"] == "success"
    assert transport.last_call["params"]["host_id"] == "17209102"
    assert transport.last_call["headers"]["authorization"] == "Bearer cli-token"
    assert transport.closed


def test_invalid_enum_is_rejected_by_cli(transport):
    result = CliRunner().invoke(
        cli,
        [
            "droplet-bandwidth",
            "--host-id",
            "1",
            "--interface",
            "loopback",
            "--direction",
            "inbound",
            "--start",
            "1",
            "--end",
            "2",
        ],
    )

    assert result.exit_code != 0
    assert transport.request_count == 0


def test_api_error_exits_with_failure(transport):
    transport.handler = lambda call: json_response(
        404, {"id": "not_found", "message": "The resource was not found."}
    )

    result = CliRunner().invoke(cli, ["get-alert", "--alert-uuid", "missing"])

    assert result.exit_code == 1
    assert "Resource not found." in result.output


def test_parameters_prints_catalog():
    result = CliRunner().invoke(cli, ["parameters"])

    assert result.exit_code == 0
    catalog = json.loads(result.output)
    assert catalog["network_direction"]["schema"]["enum"] == ["inbound", "outbound"]


def test_debug_token_and_clear(monkeypatch, tmp_path):
    path = tmp_path / "token.json"
    monkeypatch.setenv("MONITORING_API_TOKEN_CACHE_PATH", str(path))
    path.write_text(
        json.dumps({"access_token": "abcdefghijklmnop", "expires_at": time.time() + 300})
    )
    runner = CliRunner()

    result = runner.invoke(cli, ["debug-token"])
    assert result.exit_code == 0
    assert "Token valid until" in result.output
    assert "abcdefghij..." in result.output

    result = runner.invoke(cli, ["clear-token-cache"])
    assert result.exit_code == 0
    assert not path.exists()

    result = runner.invoke(cli, ["debug-token"])
    assert result.exit_code == 1
    assert "does not exist" in result.output
