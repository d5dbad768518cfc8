"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), builds a client for
the duration of one command, delegates to the matching SDK service and
reports the outcome through the UserInterface. Every handler returns True on
success so the entry point can pick the process exit code.
"""

import logging
from typing import Any, Callable, Dict, Optional

from linkpulse.core.client import LinkPulseClient
from linkpulse.domain.errors import DeliveryError
from linkpulse.domain.interfaces.state_store import LocalStateStore
from linkpulse.domain.interfaces.user_interface import UserInterface
from linkpulse.infrastructure.device.signals import collect_device_signals

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], LinkPulseClient]


class CommandHandler:
    """Handles incoming commands and delegates to the SDK client."""

    def __init__(
        self,
        client_factory: ClientFactory,
        state_store: LocalStateStore,
        ui: UserInterface,
    ):
        """Initializes the CommandHandler.

        Args:
            client_factory: Builds a fresh client; called once per command so
                the client lives on that command's event loop.
            state_store: Local message state, cleared by ``clear-state``.
            ui: Output adapter.
        """
        self.client_factory = client_factory
        self.state_store = state_store
        self.ui = ui

    def _report_failure(self, action: str, error: DeliveryError) -> bool:
        logger.error(f"{action} failed: {error}")
        self.ui.display_error(f"{action} failed: {error}")
        return False

    async def handle_track(self, event_type: str, properties: Dict[str, Any]) -> bool:
        """Queues one event and flushes the queue right away."""
        logger.info(f"Handling 'track' command for event type: {event_type}")
        async with self.client_factory() as client:
            try:
                (await client.track(event_type, properties)).unwrap()
                (await client.flush()).unwrap()
            except DeliveryError as e:
                return self._report_failure("Track", e)
        self.ui.display_info(f"Event '{event_type}' delivered.")
        return True

    async def handle_messages(self, trigger: Optional[str]) -> bool:
        """Lists the eligible messages, highest priority first."""
        logger.info(f"Handling 'messages' command (trigger={trigger or 'any'})")
        async with self.client_factory() as client:
            try:
                items = (await client.messages.fetch_eligible(trigger)).unwrap()
            except DeliveryError as e:
                return self._report_failure("Fetching messages", e)

        rows = [
            (item.id, item.name, item.priority, item.trigger or "", item.title or "")
            for item in items
        ]
        self.ui.display_table("Eligible messages", ["ID", "Name", "Priority", "Trigger", "Title"], rows)
        return True

    async def handle_dismiss(self, message_id: str) -> bool:
        async with self.client_factory() as client:
            try:
                client.messages.dismiss(message_id).unwrap()
            except DeliveryError as e:
                return self._report_failure("Dismiss", e)
        self.ui.display_info(f"Message '{message_id}' dismissed.")
        return True

    async def handle_referral_create(self, user_id: str, user_name: Optional[str]) -> bool:
        logger.info(f"Handling 'referral-create' command for user: {user_id}")
        async with self.client_factory() as client:
            try:
                created = (await client.referrals.create(user_id, user_name=user_name)).unwrap()
            except DeliveryError as e:
                return self._report_failure("Creating referral", e)

        lines = [f"Code: {created.referral_code}", f"ID: {created.referral_id}"]
        if created.referral_url:
            lines.append(f"URL: {created.referral_url}")
        self.ui.display_output("\n".join(lines), title="Referral created")
        return True

    async def handle_referral_get(self, code: str) -> bool:
        async with self.client_factory() as client:
            try:
                details = (await client.referrals.get(code)).unwrap()
            except DeliveryError as e:
                return self._report_failure("Referral lookup", e)

        lines = [
            f"Referrer: {details.referrer_id}",
            f"Status: {details.status}",
            f"Milestone: {details.milestone or '-'}",
            f"Reward claimed: {'yes' if details.reward_claimed else 'no'}",
        ]
        self.ui.display_output("\n".join(lines), title=f"Referral {code}")
        return True

    async def handle_leaderboard(self, limit: Optional[int]) -> bool:
        async with self.client_factory() as client:
            try:
                entries = (await client.referrals.leaderboard(limit)).unwrap()
            except DeliveryError as e:
                return self._report_failure("Leaderboard", e)

        rows = [
            (entry.referrer_name or entry.referrer_id, entry.total, entry.completed, entry.pending)
            for entry in entries
        ]
        self.ui.display_table("Referral leaderboard", ["Referrer", "Total", "Completed", "Pending"], rows)
        return True

    async def handle_claim_reward(self, code: str) -> bool:
        async with self.client_factory() as client:
            try:
                claim = (await client.referrals.claim_reward(code)).unwrap()
            except DeliveryError as e:
                return self._report_failure("Claiming reward", e)

        if claim.success:
            self.ui.display_info(f"Reward for '{code}' claimed.")
        else:
            self.ui.display_warning(f"Reward for '{code}' was not claimed.")
        return claim.success

    async def handle_deferred_claim(self, token: Optional[str], appspace_id: Optional[str]) -> bool:
        """Claims by token when one is given, otherwise by this machine's device signals."""
        if not token and not appspace_id:
            self.ui.display_error("Pass a claim token or --appspace for a signal-based claim.")
            return False

        async with self.client_factory() as client:
            try:
                if token:
                    link = (await client.deferred.claim_by_token(token)).unwrap()
                else:
                    signals = collect_device_signals()
                    logger.debug(f"Claiming with device signals: {signals}")
                    link = (await client.deferred.claim_by_signals(appspace_id, signals)).unwrap()
            except DeliveryError as e:
                return self._report_failure("Deferred claim", e)

        if link is None:
            self.ui.display_info("No deferred link to claim.")
            return True
        lines = [f"Path: {link.deep_link_path}", f"Appspace: {link.appspace_id}"]
        if link.referral_code:
            lines.append(f"Referral code: {link.referral_code}")
        self.ui.display_output("\n".join(lines), title="Deferred link")
        return True

    def handle_clear_state(self) -> bool:
        """Forgets all locally recorded impressions and dismissals."""
        logger.info("Handling 'clear-state' command")
        self.state_store.clear()
        self.ui.display_info("Local message state cleared.")
        return True
