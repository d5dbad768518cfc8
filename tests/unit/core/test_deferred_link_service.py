import pytest

from linkpulse.core.services.deferred_link_service import DeferredLinkService
from linkpulse.domain.errors import FailureKind
from linkpulse.domain.models.referrals import DeviceSignals
from tests.support import json_response, sent_json

LINK = {"deep_link_path": "/promo/spring", "appspace_id": "as-1", "referral_code": "ABC123"}


@pytest.mark.asyncio
async def test_claim_by_token_is_public(make_executor, requests_seen):
    service = DeferredLinkService(make_executor(json_response(200, LINK)))

    result = await service.claim_by_token("tok-1")

    assert result.value.deep_link_path == "/promo/spring"
    assert result.value.referral_code == "ABC123"
    assert requests_seen[0].url.params["token"] == "tok-1"
    assert "X-API-Key" not in requests_seen[0].headers


@pytest.mark.asyncio
async def test_claim_by_signals_posts_device_fields(make_executor, requests_seen):
    service = DeferredLinkService(make_executor(json_response(200, LINK)))
    signals = DeviceSignals(timezone="Europe/Berlin", language="de", screen_width=1170, screen_height=2532)

    result = await service.claim_by_signals("as-1", signals)

    assert result.is_ok
    assert sent_json(requests_seen[0]) == {
        "appspace_id": "as-1",
        "timezone": "Europe/Berlin",
        "language": "de",
        "screen_width": 1170,
        "screen_height": 2532,
    }


@pytest.mark.asyncio
async def test_not_found_means_nothing_to_claim(make_executor):
    service = DeferredLinkService(make_executor(json_response(404, {"error": "No match"})))

    result = await service.claim_by_token("tok-1")

    assert result.is_ok
    assert result.value is None


@pytest.mark.asyncio
async def test_other_failures_are_returned(make_executor):
    service = DeferredLinkService(make_executor(json_response(400, {"error": "Bad token"})))

    result = await service.claim_by_token("tok-1")

    assert result.failure.status_code == 400


@pytest.mark.asyncio
async def test_blank_token_is_rejected(make_executor, requests_seen):
    service = DeferredLinkService(make_executor(json_response(200, LINK)))

    result = await service.claim_by_token("")

    assert result.failure.kind is FailureKind.VALIDATION
    assert requests_seen == []
