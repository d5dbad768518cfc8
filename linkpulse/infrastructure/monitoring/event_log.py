"""Dispatches domain events to the log and to registered listeners.

Listeners are plain callables. A failing listener is logged and skipped so
observation can never break delivery.
"""

import logging
from typing import Callable, List

from linkpulse.domain.events.api_events import DomainEvent

logger = logging.getLogger(__name__)

EventListener = Callable[[DomainEvent], None]

_listeners: List[EventListener] = []


def add_listener(listener: EventListener) -> None:
    """Registers a callable that receives every dispatched event."""
    if listener not in _listeners:
        _listeners.append(listener)


def remove_listener(listener: EventListener) -> None:
    """Unregisters a listener; unknown listeners are ignored."""
    if listener in _listeners:
        _listeners.remove(listener)


def dispatch_event(event: DomainEvent) -> None:
    """Logs the event at DEBUG and forwards it to every listener."""
    logger.debug(f"EVENT: {event}")
    for listener in list(_listeners):
        try:
            listener(event)
        except Exception as e:
            logger.warning(f"Event listener {listener!r} failed on {type(event).__name__}: {e}", exc_info=True)
