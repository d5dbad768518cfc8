"""Deferred Link Service: claiming deferred deep links after install.

Both claims are public requests (no API key) keyed by a one-time token or
by device signals. A 404 means "nothing to claim" and is not a failure.
"""

import logging
from typing import Optional

from linkpulse.domain.errors import FailureKind, Result, require_not_blank
from linkpulse.domain.models.common import JsonObject
from linkpulse.domain.models.referrals import DeferredLink, DeviceSignals
from linkpulse.infrastructure.http.request_executor import RequestExecutor

logger = logging.getLogger(__name__)

CLAIM_PATH = "/v1/api/deferred/claim"
CLAIM_BY_SIGNALS_PATH = "/v1/api/deferred/claim-by-signals"


def _to_link(result: Result[JsonObject]) -> Result[Optional[DeferredLink]]:
    if result.is_ok:
        return Result.ok(DeferredLink.from_json(result.value))
    if result.failure.kind is FailureKind.HTTP and result.failure.status_code == 404:
        logger.debug("No deferred link to claim.")
        return Result.ok(None)
    return Result.fail(result.failure)


class DeferredLinkService:
    """Claims deferred deep links by token or by device signals."""

    def __init__(self, executor: RequestExecutor):
        self.executor = executor

    async def claim_by_token(self, token: str) -> Result[Optional[DeferredLink]]:
        failure = require_not_blank(token, "token")
        if failure is not None:
            return Result.fail(failure)
        result = await self.executor.get_public(CLAIM_PATH, {"token": token})
        return _to_link(result)

    async def claim_by_signals(self, appspace_id: str, signals: DeviceSignals) -> Result[Optional[DeferredLink]]:
        failure = require_not_blank(appspace_id, "appspace_id")
        if failure is not None:
            return Result.fail(failure)
        body = {
            "appspace_id": appspace_id,
            "timezone": signals.timezone,
            "language": signals.language,
            "screen_width": signals.screen_width,
            "screen_height": signals.screen_height,
        }
        result = await self.executor.post_public(CLAIM_BY_SIGNALS_PATH, body)
        return _to_link(result)
