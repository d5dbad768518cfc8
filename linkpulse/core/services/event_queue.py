"""Event Batch Queue: in-memory batching of analytics events.

Events are batched in memory and flushed when:
- the queue reaches ``batch_size`` events (default 10),
- ``flush_interval_ms`` pass since the first event of the current batch
  (default 5000),
- ``flush()`` is called explicitly, or
- ``shutdown()`` runs.

Each flush sends the whole batch as one POST to the batch ingest endpoint
through the retry coordinator. A batch that still fails is put back at the
head of the queue, bounded by the remaining capacity, and re-arms the timer
when the queue was empty. Failures of flushes the queue started itself are
logged and swallowed; an explicit ``flush()`` returns them.

Every read or write of the queue, and arming/disarming the timer, happens
under one ``asyncio.Lock``. Network work and backoff sleeps happen outside
it, so callers can keep enqueueing while a previous batch is retrying.
"""

import asyncio
import logging
from collections import deque
from typing import Any, Deque, Dict, List, Mapping, Optional, Set

from linkpulse.domain.errors import Result, require_not_blank
from linkpulse.domain.events.api_events import BatchFlushed, BatchRequeued, EventDropped
from linkpulse.domain.models.events import PendingEvent
from linkpulse.infrastructure.http.request_executor import RequestExecutor
from linkpulse.infrastructure.monitoring.event_log import dispatch_event

logger = logging.getLogger(__name__)

BATCH_ENDPOINT = "/v1/api/analytics/batch"
DEFAULT_BATCH_SIZE = 10
DEFAULT_FLUSH_INTERVAL_MS = 5000
DEFAULT_MAX_QUEUE_SIZE = 1000


class EventBatchQueue:
    """Bounded FIFO of pending analytics events with size and time flush triggers."""

    def __init__(
        self,
        executor: RequestExecutor,
        max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
        batch_size: int = DEFAULT_BATCH_SIZE,
        flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS,
        endpoint: str = BATCH_ENDPOINT,
    ):
        """Initializes the queue.

        Args:
            executor: Executor whose retrying ``post`` delivers batches.
            max_queue_size: Capacity; the oldest event is evicted beyond it.
            batch_size: Queue length that triggers an immediate flush.
            flush_interval_ms: Delay after the first queued event before a timed flush.
            endpoint: Batch ingest path.
        """
        self._executor = executor
        self.max_queue_size = max_queue_size
        self.batch_size = batch_size
        self.flush_interval_ms = flush_interval_ms
        self.endpoint = endpoint

        self._queue: Deque[PendingEvent] = deque()
        self._lock = asyncio.Lock()
        self._timer_task: Optional[asyncio.Task] = None
        self._deliveries: Set[asyncio.Task] = set()
        # Batches of delivery tasks that have not started running yet
        self._unstarted: Dict[asyncio.Task, List[PendingEvent]] = {}
        self._closing = False
        self._closed = False

        logger.debug(
            f"EventBatchQueue initialized: capacity={max_queue_size}, batch_size={batch_size}, "
            f"flush_interval={flush_interval_ms}ms"
        )

    # --- Public API ---

    async def track(self, event_type: str, properties: Optional[Mapping[str, Any]] = None) -> Result[None]:
        """Validates and enqueues one event.

        Returns:
            A validation failure for a blank ``event_type``, otherwise ok.
        """
        failure = require_not_blank(event_type, "event_type")
        if failure is not None:
            return Result.fail(failure)
        return await self.enqueue(PendingEvent.create(event_type, properties))

    async def enqueue(self, event: PendingEvent) -> Result[None]:
        """Adds an event, evicting the oldest one if the queue is full.

        Never waits on the network: a size-triggered batch is taken off the
        queue here and delivered on a background task.
        """
        self._ensure_open()
        snapshot: List[PendingEvent] = []

        async with self._lock:
            if len(self._queue) >= self.max_queue_size:
                dropped = self._queue.popleft()
                logger.warning(f"Analytics queue full ({self.max_queue_size}). Dropping oldest event: {dropped.event_type}")
                dispatch_event(EventDropped(event_type=dropped.event_type, queue_capacity=self.max_queue_size))
            self._queue.append(event)

            # Once shutdown has begun, everything waits for its final flush
            if not self._closing:
                if len(self._queue) >= self.batch_size:
                    snapshot = self._take_snapshot_locked()
                elif len(self._queue) == 1 and self._timer_task is None:
                    self._arm_timer_locked()

        if snapshot:
            self._spawn_delivery(snapshot, trigger="size")
        return Result.ok(None)

    async def flush(self) -> Result[None]:
        """Sends everything queued now as one batch.

        Returns:
            Ok when the queue was empty (no request is made) or the batch was
            accepted; otherwise the failure from the last attempt, after the
            batch has been re-queued.
        """
        self._ensure_open()
        async with self._lock:
            snapshot = self._take_snapshot_locked()
        if not snapshot:
            return Result.ok(None)
        return await self._deliver(snapshot, trigger="explicit")

    async def on_background(self) -> None:
        """Flush hook for the host's foreground/background lifecycle signal."""
        if self._closed:
            return
        result = await self.flush()
        if not result.is_ok:
            logger.warning(f"Lifecycle flush failed: {result.failure}")

    async def shutdown(self) -> None:
        """Stops the timer, delivers what is left once, and closes the queue.

        In-flight background deliveries are cancelled first; their batches go
        back into the queue and are included in the final flush. Errors of the
        final flush are logged, never raised. The queue cannot be used after.
        """
        if self._closed or self._closing:
            return
        self._closing = True

        async with self._lock:
            self._disarm_timer_locked()

        pending = list(self._deliveries)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        for task in pending:
            never_ran = self._unstarted.pop(task, None)
            if never_ran:
                await self._requeue(never_ran)

        async with self._lock:
            snapshot = self._take_snapshot_locked()
        self._closed = True

        if snapshot:
            try:
                result = await self._deliver(snapshot, trigger="shutdown")
            except Exception as e:
                logger.error(f"Error flushing analytics during shutdown: {e}", exc_info=True)
            else:
                if not result.is_ok:
                    logger.warning(f"Error flushing analytics during shutdown: {result.failure}")
        logger.debug("EventBatchQueue shut down.")

    async def queue_size(self) -> int:
        async with self._lock:
            return len(self._queue)

    def pending_events(self) -> List[PendingEvent]:
        """Copy of the queued events, oldest first."""
        return list(self._queue)

    @property
    def is_closed(self) -> bool:
        return self._closed

    # --- Internals ---

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("EventBatchQueue has been shut down and cannot be reused")

    def _take_snapshot_locked(self) -> List[PendingEvent]:
        """Removes and returns every queued event and disarms the timer. Caller holds the lock."""
        snapshot = list(self._queue)
        self._queue.clear()
        self._disarm_timer_locked()
        return snapshot

    def _arm_timer_locked(self) -> None:
        self._timer_task = asyncio.get_running_loop().create_task(self._run_timer())

    def _disarm_timer_locked(self) -> None:
        task = self._timer_task
        self._timer_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def _run_timer(self) -> None:
        await asyncio.sleep(self.flush_interval_ms / 1000)
        async with self._lock:
            if self._timer_task is asyncio.current_task():
                self._timer_task = None
            snapshot = self._take_snapshot_locked()
        if snapshot:
            self._spawn_delivery(snapshot, trigger="timer")

    def _spawn_delivery(self, snapshot: List[PendingEvent], trigger: str) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver_in_background(snapshot, trigger))
        self._deliveries.add(task)
        self._unstarted[task] = snapshot
        task.add_done_callback(self._deliveries.discard)

    async def _deliver_in_background(self, snapshot: List[PendingEvent], trigger: str) -> None:
        # From here on, _deliver owns the batch and requeues it on any error
        self._unstarted.pop(asyncio.current_task(), None)
        try:
            result = await self._deliver(snapshot, trigger)
        except Exception as e:
            logger.error(f"{trigger.capitalize()}-triggered flush raised ({len(snapshot)} events kept for retry): {e}", exc_info=True)
            return
        if not result.is_ok:
            logger.warning(f"{trigger.capitalize()}-triggered flush failed ({len(snapshot)} events kept for retry): {result.failure}")

    async def _deliver(self, snapshot: List[PendingEvent], trigger: str) -> Result[None]:
        body = {"events": [event.to_payload() for event in snapshot]}
        logger.debug(f"Flushing {len(snapshot)} analytics event(s) ({trigger})")
        try:
            result = await self._executor.post(self.endpoint, body)
        except BaseException:
            # Cancellation included: the batch goes back before the error propagates
            await self._requeue(snapshot)
            raise

        if not result.is_ok:
            await self._requeue(snapshot)
            return Result.fail(result.failure)

        errors = (result.value or {}).get("errors")
        if errors:
            logger.warning(f"Batch partial failure: {errors}")
        dispatch_event(BatchFlushed(event_count=len(snapshot), trigger=trigger))
        return Result.ok(None)

    async def _requeue(self, snapshot: List[PendingEvent]) -> None:
        """Puts a failed batch back at the head, dropping its oldest events if space is short.

        Re-arms the timer when this makes an empty queue non-empty.
        """
        async with self._lock:
            was_empty = not self._queue
            space = max(0, self.max_queue_size - len(self._queue))
            kept = snapshot[-space:] if space else []
            self._queue.extendleft(reversed(kept))
            if was_empty and self._queue and not self._closing and self._timer_task is None:
                self._arm_timer_locked()
        dropped = len(snapshot) - len(kept)
        if dropped:
            logger.warning(f"Re-queued {len(kept)} event(s) from failed batch; dropped {dropped} for lack of capacity")
        dispatch_event(BatchRequeued(requeued_count=len(kept), dropped_count=dropped))
