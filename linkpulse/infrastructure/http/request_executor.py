"""Request executor over httpx.

Issues exactly one HTTP request per call and maps the outcome to a
``Result``: a parsed JSON object on 2xx, or a ``ClassifiedFailure`` for
any httpx request error and non-2xx statuses. Never retries; retrying belongs to
the RetryCoordinator.
"""

import json
import logging
import time
from typing import Any, Dict, Mapping, Optional

import httpx

from linkpulse import VERSION
from linkpulse.domain.errors import ClassifiedFailure, Result
from linkpulse.domain.events.api_events import RequestFailed, RequestInitiated, RequestSucceeded
from linkpulse.domain.models.common import JsonObject
from linkpulse.infrastructure.config.settings import SdkConfig
from linkpulse.infrastructure.monitoring.event_log import dispatch_event
from linkpulse.infrastructure.resilience.retry import RetryCoordinator

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"
USER_AGENT = f"LinkPulsePythonSDK/{VERSION}"
SUPPORTED_METHODS = ("GET", "POST")


def parse_retry_after_ms(response: httpx.Response) -> Optional[int]:
    """Retry-After in milliseconds for 429 responses with a numeric seconds value."""
    if response.status_code != 429:
        return None
    header = response.headers.get("Retry-After")
    if header is None:
        return None
    try:
        return int(header.strip()) * 1000
    except ValueError:
        return None


def parse_success_body(text: str) -> JsonObject:
    """Parses a 2xx body, wrapping anything that is not a JSON object as {'data': text}."""
    try:
        parsed = json.loads(text)
    except ValueError:
        return JsonObject({"data": text})
    if not isinstance(parsed, dict):
        return JsonObject({"data": text})
    return JsonObject(parsed)


def classify_error_response(response: httpx.Response) -> ClassifiedFailure:
    """Builds the HTTP failure for a non-2xx response, tolerating any body shape."""
    status = response.status_code
    message = f"Request failed with status {status}"
    code: Optional[str] = None
    try:
        error_body = json.loads(response.text)
    except ValueError:
        error_body = None
    if isinstance(error_body, dict):
        if error_body.get("error") is not None:
            message = str(error_body["error"])
        raw_code = error_body.get("code")
        if raw_code is not None and str(raw_code) != "":
            code = str(raw_code)
    return ClassifiedFailure.http(
        status_code=status,
        message=message,
        retry_after_ms=parse_retry_after_ms(response),
        code=code,
    )


class RequestExecutor:
    """Single-attempt JSON-over-HTTPS executor bound to one SdkConfig."""

    def __init__(
        self,
        config: SdkConfig,
        retry: Optional[RetryCoordinator] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initializes the executor.

        Args:
            config: SDK configuration (API key, base URL, timeouts).
            retry: Coordinator used by the get/post convenience methods.
            client: Pre-built AsyncClient; the executor will not close it.
            transport: Transport for the owned client (e.g. httpx.MockTransport).
        """
        self.config = config
        self.retry = retry or RetryCoordinator(
            max_retries=config.max_retries,
            base_delay_ms=config.base_delay_ms,
            max_jitter_ms=config.max_jitter_ms,
        )
        self._base_url = config.base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=config.timeout_seconds,
            transport=transport,
        )

    def _build_headers(self, authenticated: bool) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        if authenticated:
            headers[API_KEY_HEADER] = self.config.api_key
        return headers

    async def execute(
        self,
        method: str,
        path: str,
        authenticated: bool,
        body: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, str]] = None,
    ) -> Result[JsonObject]:
        """Performs one request.

        Args:
            method: 'GET' or 'POST'.
            path: Path appended to the base URL, e.g. '/v1/api/messages'.
            authenticated: Whether to attach the API key header.
            body: JSON body for POST ({} when omitted).
            query_params: Query parameters, URL-encoded onto the URL.

        Returns:
            Result holding the parsed JSON object, or a classified failure.
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            return Result.fail(ClassifiedFailure.validation(f"Unsupported HTTP method: {method}"))

        url = f"{self._base_url}{path}"
        kwargs: Dict[str, Any] = {"headers": self._build_headers(authenticated)}
        if query_params:
            kwargs["params"] = dict(query_params)
        if method == "POST":
            kwargs["json"] = dict(body) if body is not None else {}

        logger.debug(f"{method} {url}")
        dispatch_event(RequestInitiated(method=method, path=path, authenticated=authenticated))
        start_time = time.perf_counter()
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.debug(f"Network error for {method} {path}: {e}")
            failure = ClassifiedFailure.network(f"Network error: {e}", cause=e)
            dispatch_event(RequestFailed(method=method, path=path, kind=failure.kind.value, message=failure.message))
            return Result.fail(failure)
        latency_ms = (time.perf_counter() - start_time) * 1000

        logger.debug(f"Response {response.status_code} for {method} {path} in {latency_ms:.1f}ms")

        if not response.is_success:
            failure = classify_error_response(response)
            dispatch_event(RequestFailed(
                method=method,
                path=path,
                kind=failure.kind.value,
                message=failure.message,
                status_code=failure.status_code,
            ))
            return Result.fail(failure)

        dispatch_event(RequestSucceeded(
            method=method,
            path=path,
            status_code=response.status_code,
            latency_ms=latency_ms,
        ))
        return Result.ok(parse_success_body(response.text))

    # --- Retrying convenience methods ---

    async def get(self, path: str, query_params: Optional[Mapping[str, str]] = None) -> Result[JsonObject]:
        """Authenticated GET with retries."""
        return await self.retry.with_retry(
            lambda: self.execute("GET", path, authenticated=True, query_params=query_params),
            operation=f"GET {path}",
        )

    async def post(self, path: str, body: Optional[Mapping[str, Any]] = None) -> Result[JsonObject]:
        """Authenticated POST with retries."""
        return await self.retry.with_retry(
            lambda: self.execute("POST", path, authenticated=True, body=body),
            operation=f"POST {path}",
        )

    async def get_public(self, path: str, query_params: Optional[Mapping[str, str]] = None) -> Result[JsonObject]:
        """Unauthenticated GET with retries, for token-keyed operations."""
        return await self.retry.with_retry(
            lambda: self.execute("GET", path, authenticated=False, query_params=query_params),
            operation=f"GET {path}",
        )

    async def post_public(self, path: str, body: Optional[Mapping[str, Any]] = None) -> Result[JsonObject]:
        """Unauthenticated POST with retries, for token-keyed operations."""
        return await self.retry.with_retry(
            lambda: self.execute("POST", path, authenticated=False, body=body),
            operation=f"POST {path}",
        )

    async def aclose(self) -> None:
        """Closes the underlying HTTP client when this executor owns it."""
        if self._owns_client:
            await self._client.aclose()
