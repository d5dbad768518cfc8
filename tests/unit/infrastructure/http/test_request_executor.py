import httpx
import pytest

from linkpulse.domain.errors import FailureKind
from linkpulse.infrastructure.http.request_executor import (
    API_KEY_HEADER, USER_AGENT, RequestExecutor, classify_error_response,
    parse_retry_after_ms, parse_success_body,
)
from tests.support import API_KEY, BASE_URL, json_response, sent_json, undecodable_response


@pytest.mark.asyncio
async def test_authenticated_get_sends_key_and_query(make_executor, requests_seen):
    """Authenticated requests carry the API key, Accept and User-Agent headers."""
    executor = make_executor(json_response(200, {"messages": []}))

    result = await executor.execute("GET", "/v1/api/messages", authenticated=True, query_params={"trigger": "home screen"})

    assert result.is_ok
    assert result.value == {"messages": []}
    request = requests_seen[0]
    assert request.method == "GET"
    assert request.url.path == "/v1/api/messages"
    assert request.url.params["trigger"] == "home screen"
    assert request.headers[API_KEY_HEADER] == API_KEY
    assert request.headers["Accept"] == "application/json"
    assert request.headers["User-Agent"] == USER_AGENT


@pytest.mark.asyncio
async def test_public_post_omits_api_key_and_sends_json_body(make_executor, requests_seen):
    executor = make_executor(json_response(200, {"deep_link_path": "/x"}))

    result = await executor.execute("POST", "/v1/api/deferred/claim-by-signals", authenticated=False, body={"appspace_id": "a1"})

    assert result.is_ok
    request = requests_seen[0]
    assert API_KEY_HEADER not in request.headers
    assert str(request.url) == f"{BASE_URL}/v1/api/deferred/claim-by-signals"
    assert sent_json(request) == {"appspace_id": "a1"}


@pytest.mark.asyncio
async def test_post_without_body_sends_empty_object(make_executor, requests_seen):
    executor = make_executor(json_response(200, {"token": "t"}))

    await executor.execute("POST", "/v1/api/messages/m1/render-token", authenticated=True)

    assert sent_json(requests_seen[0]) == {}


@pytest.mark.asyncio
async def test_unsupported_method_is_validation_failure_without_request(make_executor, requests_seen):
    executor = make_executor(json_response(200, {}))

    result = await executor.execute("DELETE", "/v1/api/messages", authenticated=True)

    assert not result.is_ok
    assert result.failure.kind is FailureKind.VALIDATION
    assert requests_seen == []


@pytest.mark.asyncio
async def test_error_body_message_and_code_are_kept(make_executor):
    executor = make_executor(json_response(403, {"error": "Invalid API key", "code": "bad_key"}))

    result = await executor.execute("GET", "/v1/api/messages", authenticated=True)

    assert result.failure.kind is FailureKind.HTTP
    assert result.failure.status_code == 403
    assert result.failure.message == "Invalid API key"
    assert result.failure.code == "bad_key"
    assert result.failure.retry_after_ms is None


@pytest.mark.asyncio
async def test_unparseable_error_body_uses_generic_message(make_executor):
    executor = make_executor(httpx.Response(502, content=b"<html>Bad gateway</html>"))

    result = await executor.execute("GET", "/v1/api/messages", authenticated=True)

    assert result.failure.status_code == 502
    assert result.failure.message == "Request failed with status 502"
    assert result.failure.code is None


@pytest.mark.asyncio
async def test_transport_error_is_network_failure(make_executor):
    executor = make_executor(httpx.ConnectError("connection refused"))

    result = await executor.execute("GET", "/v1/api/messages", authenticated=True)

    assert result.failure.kind is FailureKind.NETWORK
    assert result.failure.status_code is None
    assert isinstance(result.failure.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_undecodable_body_is_network_failure(sdk_config, retry):
    executor = RequestExecutor(sdk_config, retry=retry, transport=httpx.MockTransport(undecodable_response))

    result = await executor.execute("POST", "/v1/api/analytics/batch", authenticated=True, body={"events": []})

    assert result.failure.kind is FailureKind.NETWORK
    assert isinstance(result.failure.cause, httpx.DecodingError)
    await executor.aclose()


@pytest.mark.asyncio
async def test_execute_never_retries(make_executor, requests_seen):
    executor = make_executor(json_response(503, {"error": "unavailable"}), json_response(200, {}))

    result = await executor.execute("GET", "/v1/api/messages", authenticated=True)

    assert result.failure.status_code == 503
    assert len(requests_seen) == 1


@pytest.mark.asyncio
async def test_get_helper_retries_through_coordinator(make_executor, requests_seen, sleep_calls):
    executor = make_executor(json_response(503, {}), json_response(200, {"ok": True}))

    result = await executor.get("/v1/api/messages")

    assert result.is_ok
    assert len(requests_seen) == 2
    assert len(sleep_calls) == 1


@pytest.mark.asyncio
async def test_executor_does_not_close_injected_client(sdk_config):
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: json_response(200, {})))
    executor = RequestExecutor(sdk_config, client=client)

    await executor.aclose()

    assert not client.is_closed
    await client.aclose()


def test_retry_after_only_parsed_for_429():
    assert parse_retry_after_ms(httpx.Response(429, headers={"Retry-After": "2"})) == 2000
    assert parse_retry_after_ms(httpx.Response(503, headers={"Retry-After": "2"})) is None
    assert parse_retry_after_ms(httpx.Response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})) is None
    assert parse_retry_after_ms(httpx.Response(429)) is None


def test_classify_error_response_carries_retry_after():
    failure = classify_error_response(httpx.Response(429, headers={"Retry-After": "3"}, content=b"{}"))

    assert failure.status_code == 429
    assert failure.retry_after_ms == 3000
    assert failure.is_retryable


def test_success_body_that_is_not_an_object_is_wrapped():
    assert parse_success_body('{"a": 1}') == {"a": 1}
    assert parse_success_body("[1, 2]") == {"data": "[1, 2]"}
    assert parse_success_body("accepted") == {"data": "accepted"}
