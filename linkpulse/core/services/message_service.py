"""Message Service: fetching in-app messages and showing the best eligible one."""

import logging
from typing import Callable, List, Optional
from urllib.parse import quote

from linkpulse.core.services.eligibility import EligibilityEngine
from linkpulse.domain.errors import ClassifiedFailure, Result, require_not_blank
from linkpulse.domain.interfaces.presenter import ActionCallback, ContentPresenter
from linkpulse.domain.models.common import RenderToken
from linkpulse.domain.models.content import ContentItem
from linkpulse.infrastructure.http.request_executor import RequestExecutor

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/v1/api/messages"


class MessageService:
    """Fetches messages and hands the winning candidate to a presenter."""

    def __init__(
        self,
        executor: RequestExecutor,
        eligibility: EligibilityEngine,
        user_id_provider: Callable[[], Optional[str]] = lambda: None,
    ):
        """Initializes the MessageService.

        Args:
            executor: Request executor (its retrying helpers are used).
            eligibility: Engine deciding which fetched messages may be shown.
            user_id_provider: Returns the current user id for segment targeting.
        """
        self.executor = executor
        self.eligibility = eligibility
        self._user_id_provider = user_id_provider

    async def fetch(self, trigger: Optional[str] = None) -> Result[List[ContentItem]]:
        """Fetches messages, optionally filtered by trigger.

        A trigger, when given, must not be blank.
        """
        if trigger is not None:
            failure = require_not_blank(trigger, "trigger")
            if failure is not None:
                return Result.fail(failure)

        params = {}
        if trigger is not None:
            params["trigger"] = trigger
        user_id = self._user_id_provider()
        if user_id is not None:
            params["user_id"] = user_id

        result = await self.executor.get(MESSAGES_PATH, params or None)
        if not result.is_ok:
            return Result.fail(result.failure)

        raw_messages = result.value.get("messages")
        if not isinstance(raw_messages, list):
            return Result.ok([])
        items = [ContentItem.from_json(raw) for raw in raw_messages if isinstance(raw, dict)]
        logger.debug(f"Fetched {len(items)} message(s) (trigger={trigger})")
        return Result.ok(items)

    async def fetch_eligible(self, trigger: Optional[str] = None) -> Result[List[ContentItem]]:
        """Fetches messages and keeps the eligible ones, highest priority first."""
        result = await self.fetch(trigger)
        if not result.is_ok:
            return result
        return Result.ok(self.eligibility.filter_and_rank(result.value))

    async def render_token(self, message_id: str) -> Result[RenderToken]:
        """Requests a short-lived token for rendering one message."""
        failure = require_not_blank(message_id, "message_id")
        if failure is not None:
            return Result.fail(failure)

        result = await self.executor.post(f"{MESSAGES_PATH}/{quote(message_id, safe='')}/render-token", {})
        if not result.is_ok:
            return Result.fail(result.failure)
        token = result.value.get("token")
        if not token:
            return Result.fail(ClassifiedFailure.http(
                status_code=200,
                message="Render token missing from response",
                code="missing_token",
            ))
        return Result.ok(RenderToken(str(token)))

    async def show(
        self,
        presenter: ContentPresenter,
        trigger: Optional[str] = None,
        on_action: Optional[ActionCallback] = None,
        on_dismiss: Optional[Callable[[], None]] = None,
    ) -> Result[Optional[ContentItem]]:
        """Fetches, picks the highest-priority eligible message and presents it.

        The impression is recorded right before the presenter is called. The
        presenter's dismiss callback records the dismissal, then calls
        ``on_dismiss``.

        Returns:
            The presented item, None when nothing is eligible, or a failure.
        """
        eligible = await self.fetch_eligible(trigger)
        if not eligible.is_ok:
            return Result.fail(eligible.failure)
        if not eligible.value:
            logger.debug("No eligible message to show.")
            return Result.ok(None)

        item = eligible.value[0]
        token = await self.render_token(item.id)
        if not token.is_ok:
            return Result.fail(token.failure)

        def handle_dismiss() -> None:
            self.eligibility.record_dismissal(item.id)
            if on_dismiss is not None:
                on_dismiss()

        self.eligibility.record_impression(item.id)
        presenter.present(item, token.value, on_action=on_action, on_dismiss=handle_dismiss)
        return Result.ok(item)

    def dismiss(self, message_id: str) -> Result[None]:
        """Records an explicit dismissal without going through a presenter."""
        failure = require_not_blank(message_id, "message_id")
        if failure is not None:
            return Result.fail(failure)
        self.eligibility.record_dismissal(message_id)
        return Result.ok(None)
