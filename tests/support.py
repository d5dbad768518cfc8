"""Shared constants and httpx MockTransport helpers for the test suite."""

import json
from datetime import date
from typing import Callable, List

import httpx

BASE_URL = "https://api.test.linkpulse.io"
API_KEY = "lp_pub_test_key"
TODAY = date(2026, 3, 15)

Handler = Callable[[httpx.Request], httpx.Response]


def json_response(status_code: int, payload, headers=None) -> httpx.Response:
    """Builds an httpx.Response with a JSON body."""
    return httpx.Response(status_code, content=json.dumps(payload).encode(), headers=headers)


def sequence_handler(responses: List, requests: List[httpx.Request]) -> Handler:
    """MockTransport handler replaying ``responses`` in order and recording requests.

    The last outcome repeats once the list is exhausted. An exception in the
    list is raised instead of returning a response.
    """
    remaining = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        outcome = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return handler


def sent_json(request: httpx.Request):
    return json.loads(request.content)


def undecodable_response(request: httpx.Request) -> httpx.Response:
    """MockTransport handler whose 200 body claims gzip but is not, so reading it fails."""
    return httpx.Response(200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip at all"))
