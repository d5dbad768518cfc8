"""Domain Events related to requests, retries and event batching.

Examples include events for when requests start, succeed, fail or are
retried, and for when analytics batches are flushed, re-queued or dropped.
"""

from dataclasses import dataclass, field
import time
from typing import Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


# --- Request Events ---

@dataclass
class RequestInitiated(DomainEvent):
    """Event triggered when an HTTP request is about to be sent."""
    method: str
    path: str
    authenticated: bool
    timestamp: float = field(default_factory=time.time)


@dataclass
class RequestSucceeded(DomainEvent):
    """Event triggered when an HTTP request completes with a 2xx status."""
    method: str
    path: str
    status_code: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class RequestFailed(DomainEvent):
    """Event triggered when a single request attempt fails."""
    method: str
    path: str
    kind: str  # 'network' or 'http'
    message: str
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when the retry coordinator schedules another attempt."""
    operation: str
    attempt_number: int
    delay_ms: int
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


# --- Batching Events ---

@dataclass
class BatchFlushed(DomainEvent):
    """Event triggered when a batch of analytics events was delivered."""
    event_count: int
    trigger: str  # 'explicit', 'size', 'timer', 'shutdown'
    timestamp: float = field(default_factory=time.time)


@dataclass
class BatchRequeued(DomainEvent):
    """Event triggered when a failed batch is put back at the head of the queue."""
    requeued_count: int
    dropped_count: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class EventDropped(DomainEvent):
    """Event triggered when a full queue evicts its oldest event."""
    event_type: str
    queue_capacity: int
    timestamp: float = field(default_factory=time.time)
