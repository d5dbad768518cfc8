import pytest
from unittest.mock import MagicMock

import httpx

from linkpulse.core.client import LinkPulseClient
from linkpulse.core.command_handler import CommandHandler
from linkpulse.core.services.eligibility import dismissed_key
from linkpulse.domain.interfaces.user_interface import UserInterface
from tests.support import json_response, sent_json, sequence_handler


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def make_handler(sdk_config, retry, memory_store, mock_ui, requests_seen):
    """Builds a CommandHandler whose clients talk to a MockTransport replaying ``responses``."""
    def factory(*responses) -> CommandHandler:
        transport = httpx.MockTransport(sequence_handler(list(responses), requests_seen))

        def client_factory():
            return LinkPulseClient(sdk_config, state_store=memory_store, transport=transport, retry=retry)

        return CommandHandler(client_factory=client_factory, state_store=memory_store, ui=mock_ui)

    return factory


@pytest.mark.asyncio
async def test_handle_track_delivers_event(make_handler, mock_ui, requests_seen):
    handler = make_handler(json_response(200, {"accepted": 1}))

    assert await handler.handle_track("custom.signup", {"plan": "pro"})

    assert sent_json(requests_seen[0])["events"][0]["properties"] == {"plan": "pro"}
    mock_ui.display_info.assert_called_once_with("Event 'custom.signup' delivered.")


@pytest.mark.asyncio
async def test_handle_track_reports_failure(make_handler, mock_ui):
    handler = make_handler(json_response(401, {"error": "Invalid API key"}))

    assert not await handler.handle_track("custom.signup", {})

    message = mock_ui.display_error.call_args.args[0]
    assert message.startswith("Track failed:")
    assert "Invalid API key" in message


@pytest.mark.asyncio
async def test_handle_track_rejects_blank_event_type(make_handler, mock_ui, requests_seen):
    handler = make_handler(json_response(200, {}))

    assert not await handler.handle_track(" ", {})

    assert requests_seen == []
    assert "event_type must not be blank" in mock_ui.display_error.call_args.args[0]


@pytest.mark.asyncio
async def test_handle_messages_shows_ranked_table(make_handler, mock_ui):
    payload = {"messages": [
        {"id": "m1", "name": "Welcome", "priority": 1},
        {"id": "m2", "name": "Promo", "priority": 5, "trigger": "home", "title": "Sale"},
    ]}
    handler = make_handler(json_response(200, payload))

    assert await handler.handle_messages("home")

    title, columns, rows = mock_ui.display_table.call_args.args
    assert columns[0] == "ID"
    assert [row[0] for row in rows] == ["m2", "m1"]


@pytest.mark.asyncio
async def test_handle_dismiss_records_locally(make_handler, memory_store, requests_seen):
    handler = make_handler(json_response(200, {}))

    assert await handler.handle_dismiss("m1")

    assert memory_store.get(dismissed_key("m1")) is not None
    assert requests_seen == []


@pytest.mark.asyncio
async def test_handle_referral_create(make_handler, mock_ui):
    handler = make_handler(json_response(200, {"referral_code": "ABC123", "referral_id": "r-1"}))

    assert await handler.handle_referral_create("user-1", None)

    output = mock_ui.display_output.call_args.args[0]
    assert "Code: ABC123" in output
    assert "URL" not in output


@pytest.mark.asyncio
async def test_handle_claim_reward_unsuccessful_warns(make_handler, mock_ui):
    handler = make_handler(json_response(200, {"success": False, "referral_code": "ABC123"}))

    assert not await handler.handle_claim_reward("ABC123")

    mock_ui.display_warning.assert_called_once()


@pytest.mark.asyncio
async def test_handle_deferred_claim_needs_token_or_appspace(make_handler, mock_ui, requests_seen):
    handler = make_handler(json_response(200, {}))

    assert not await handler.handle_deferred_claim(None, None)

    assert requests_seen == []
    mock_ui.display_error.assert_called_once()


@pytest.mark.asyncio
async def test_handle_deferred_claim_by_signals(make_handler, mock_ui, requests_seen):
    handler = make_handler(json_response(404, {"error": "No match"}))

    assert await handler.handle_deferred_claim(None, "as-1")

    assert requests_seen[0].url.path == "/v1/api/deferred/claim-by-signals"
    assert sent_json(requests_seen[0])["appspace_id"] == "as-1"
    mock_ui.display_info.assert_called_once_with("No deferred link to claim.")


def test_handle_clear_state(make_handler, memory_store, mock_ui):
    memory_store.set(dismissed_key("m1"), "2026-03-01")
    handler = make_handler(json_response(200, {}))

    assert handler.handle_clear_state()

    assert memory_store.get(dismissed_key("m1")) is None
    mock_ui.display_info.assert_called_once()
