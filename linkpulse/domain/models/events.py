"""Domain models for analytics events waiting to be delivered."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .common import EventType


@dataclass(frozen=True)
class PendingEvent:
    """An immutable analytics event queued for the next batch.

    Properties keep their insertion order and are exposed read-only.
    """
    event_type: EventType
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Copy so later mutation of the caller's dict cannot leak into the queue
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @classmethod
    def create(cls, event_type: str, properties: Optional[Mapping[str, Any]] = None) -> "PendingEvent":
        return cls(event_type=EventType(event_type), properties=properties or {})

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation used by the batch ingest endpoint."""
        return {"event_type": self.event_type, "properties": dict(self.properties)}
