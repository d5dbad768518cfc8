"""LinkPulseClient: the SDK object an application constructs and owns.

Replaces a process-wide singleton: every subsystem receives the same
``SdkConfig`` and shares one executor and retry coordinator. Construct it
inside a running event loop, use it, then ``await client.shutdown()`` (or
use it as an async context manager) to flush pending analytics and close
the HTTP client.

    config = build_sdk_config(api_key="lp_pub_...")
    async with LinkPulseClient(config) as client:
        await client.track("custom.signup", {"source": "cli"})
        await client.messages.show(presenter)
"""

import logging
from typing import Any, Mapping, Optional

import httpx

from linkpulse.core.services.deferred_link_service import DeferredLinkService
from linkpulse.core.services.eligibility import EligibilityEngine
from linkpulse.core.services.event_queue import EventBatchQueue
from linkpulse.core.services.message_service import MessageService
from linkpulse.core.services.referral_service import ReferralService
from linkpulse.domain.errors import Result
from linkpulse.domain.interfaces.state_store import LocalStateStore
from linkpulse.infrastructure.config.settings import SdkConfig
from linkpulse.infrastructure.http.request_executor import RequestExecutor
from linkpulse.infrastructure.monitoring.logger_setup import set_sdk_debug
from linkpulse.infrastructure.resilience.retry import RetryCoordinator
from linkpulse.infrastructure.storage.state_store import DiskStateStore

logger = logging.getLogger(__name__)


class LinkPulseClient:
    """Facade wiring the executor, retry coordinator, event queue and services."""

    def __init__(
        self,
        config: SdkConfig,
        state_store: Optional[LocalStateStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry: Optional[RetryCoordinator] = None,
        eligibility: Optional[EligibilityEngine] = None,
    ):
        """Builds every subsystem from ``config``.

        Args:
            config: Explicit SDK configuration.
            state_store: Local store for message state (disk store under
                ``config.state_dir`` when omitted).
            transport: Optional httpx transport (e.g. MockTransport in tests).
            retry: Optional pre-built retry coordinator.
            eligibility: Optional pre-built engine (e.g. with a fixed clock).
        """
        self.config = config
        self._user_id: Optional[str] = config.user_id
        if config.debug:
            set_sdk_debug(True)

        self.retry = retry or RetryCoordinator(
            max_retries=config.max_retries,
            base_delay_ms=config.base_delay_ms,
            max_jitter_ms=config.max_jitter_ms,
        )
        self.executor = RequestExecutor(config, retry=self.retry, transport=transport)
        self._owns_store = state_store is None
        self.state_store = state_store or DiskStateStore(config.state_dir)
        self.eligibility = eligibility or EligibilityEngine(self.state_store)

        self.analytics = EventBatchQueue(
            self.executor,
            max_queue_size=config.max_queue_size,
            batch_size=config.batch_size,
            flush_interval_ms=config.flush_interval_ms,
        )
        self.messages = MessageService(self.executor, self.eligibility, user_id_provider=lambda: self._user_id)
        self.referrals = ReferralService(self.executor)
        self.deferred = DeferredLinkService(self.executor)
        self._closed = False

        logger.debug(f"LinkPulse SDK configured (baseUrl={config.base_url})")

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def set_user_id(self, user_id: Optional[str]) -> None:
        """Sets (or clears, with None) the user id used for targeting and attribution."""
        self._user_id = user_id

    async def track(self, event_type: str, properties: Optional[Mapping[str, Any]] = None) -> Result[None]:
        """Queues an analytics event, adding the current user id to its properties."""
        merged = dict(properties or {})
        if self._user_id is not None:
            merged["user_id"] = self._user_id
        return await self.analytics.track(event_type, merged)

    async def flush(self) -> Result[None]:
        """Sends all queued analytics events now."""
        return await self.analytics.flush()

    async def on_background(self) -> None:
        """Call when the host application leaves the foreground."""
        await self.analytics.on_background()

    async def shutdown(self) -> None:
        """Flushes analytics, then releases the HTTP client. Idempotent."""
        if self._closed:
            return
        self._closed = True
        await self.analytics.shutdown()
        await self.executor.aclose()
        if self._owns_store and isinstance(self.state_store, DiskStateStore):
            self.state_store.close()
        logger.debug("LinkPulse SDK shut down")

    async def __aenter__(self) -> "LinkPulseClient":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.shutdown()
