import pytest
from unittest.mock import MagicMock

import httpx
from typer.testing import CliRunner

from linkpulse.core.client import LinkPulseClient
from linkpulse.core.services.eligibility import dismissed_key
from linkpulse.infrastructure.cli.display import ConsoleDisplay
from linkpulse.infrastructure.config.settings import set_config_for_testing
from linkpulse.infrastructure.storage.state_store import DiskStateStore
from linkpulse.main import app
from tests.support import API_KEY, BASE_URL, json_response, sent_json, sequence_handler

# These fixtures are defined in tests/conftest.py:
# runner: CliRunner
# isolated_configuration: keeps real config files and LINKPULSE_* variables out


@pytest.fixture
def mock_console_display(mocker):
    """Mocks the ConsoleDisplay to capture output easily."""
    mock = mocker.MagicMock(spec=ConsoleDisplay)
    mocker.patch('linkpulse.main.ConsoleDisplay', return_value=mock)
    return mock


@pytest.fixture
def cli_requests():
    return []


@pytest.fixture
def serve(mocker, cli_requests):
    """Routes every client the CLI builds to a MockTransport replaying ``responses``."""
    def install(*responses):
        transport = httpx.MockTransport(sequence_handler(list(responses), cli_requests))

        def build_client(config, state_store):
            return LinkPulseClient(config, state_store=state_store, transport=transport)

        mocker.patch('linkpulse.main.LinkPulseClient', side_effect=build_client)

    return install


@pytest.fixture(autouse=True)
def cli_environment(mocker, tmp_path):
    """Test configuration for the CLI, with logging setup left to pytest."""
    mocker.patch('linkpulse.main.setup_logging')
    set_config_for_testing({
        "api_key": API_KEY,
        "base_url": BASE_URL,
        "state_dir": str(tmp_path / "state"),
    })


def test_track_command_flow(runner: CliRunner, serve, cli_requests, mock_console_display: MagicMock):
    serve(json_response(200, {"accepted": 1}))

    result = runner.invoke(app, ["track", "custom.purchase", "-P", "sku=A-1", "-P", "qty=2"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert len(cli_requests) == 1
    request = cli_requests[0]
    assert request.headers["X-API-Key"] == API_KEY
    assert sent_json(request)["events"] == [
        {"event_type": "custom.purchase", "properties": {"sku": "A-1", "qty": "2"}},
    ]
    mock_console_display.display_info.assert_called_once_with("Event 'custom.purchase' delivered.")


def test_track_with_bad_property_is_usage_error(runner: CliRunner, serve, cli_requests):
    serve(json_response(200, {}))

    result = runner.invoke(app, ["track", "custom.purchase", "-P", "novalue"])

    assert result.exit_code == 2
    assert cli_requests == []


def test_user_id_option_is_attached(runner: CliRunner, serve, cli_requests, mock_console_display):
    serve(json_response(200, {}))

    result = runner.invoke(app, ["--user-id", "user-42", "track", "custom.open"])

    assert result.exit_code == 0
    assert sent_json(cli_requests[0])["events"][0]["properties"] == {"user_id": "user-42"}


def test_server_error_exits_nonzero(runner: CliRunner, serve, cli_requests, mock_console_display):
    set_config_for_testing({"retry.base_delay_ms": 1, "retry.max_jitter_ms": 0})
    serve(json_response(503, {"error": "maintenance"}))

    result = runner.invoke(app, ["referral-get", "ABC123"])

    assert result.exit_code == 1
    assert len(cli_requests) == 4
    assert "maintenance" in mock_console_display.display_error.call_args.args[0]


def test_messages_command_lists_eligible(runner: CliRunner, serve, cli_requests, mock_console_display):
    serve(json_response(200, {"messages": [
        {"id": "m1", "name": "Welcome", "priority": 1},
        {"id": "m2", "name": "Promo", "priority": 9},
    ]}))

    result = runner.invoke(app, ["messages", "--trigger", "home"])

    assert result.exit_code == 0
    assert cli_requests[0].url.params["trigger"] == "home"
    title, columns, rows = mock_console_display.display_table.call_args.args
    assert [row[0] for row in rows] == ["m2", "m1"]


def test_dismiss_then_clear_state(runner: CliRunner, serve, mock_console_display, tmp_path):
    serve(json_response(200, {}))

    assert runner.invoke(app, ["dismiss", "m1"]).exit_code == 0
    store = DiskStateStore(tmp_path / "state")
    try:
        assert store.get(dismissed_key("m1")) is not None
    finally:
        store.close()

    assert runner.invoke(app, ["clear-state"]).exit_code == 0
    store = DiskStateStore(tmp_path / "state")
    try:
        assert store.get(dismissed_key("m1")) is None
    finally:
        store.close()


def test_insecure_base_url_is_rejected(runner: CliRunner, serve, cli_requests, mock_console_display):
    serve(json_response(200, {}))

    result = runner.invoke(app, ["--base-url", "http://api.example.com", "leaderboard"])

    assert result.exit_code == 1
    assert cli_requests == []
    assert "HTTPS" in mock_console_display.display_error.call_args.args[0]
