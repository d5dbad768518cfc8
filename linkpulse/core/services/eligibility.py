"""Eligibility Engine: decides which in-app messages may be shown right now.

Two independent checks run against what the device remembers about each
message:

- dismissal: a dismissed message stays hidden for ``dismiss_days`` days,
  or forever when ``dismiss_days`` is None;
- suppression: a message is hidden once it reached ``max_impressions``, or
  while fewer than ``min_interval_hours`` have passed since it was last
  shown.

Dates are compared at calendar-day granularity. Unreadable stored values
count as "no record", so a corrupted store can only make a message
eligible, never raise.
"""

import logging
from datetime import date
from typing import Callable, Iterable, List, Optional

from linkpulse.domain.interfaces.state_store import LocalStateStore
from linkpulse.domain.models.common import ItemId, StoreKey, StoreValue
from linkpulse.domain.models.content import ContentItem, PerItemLocalState

logger = logging.getLogger(__name__)

DISMISSED_PREFIX = "linkpulse_dismissed_"
IMPRESSIONS_PREFIX = "linkpulse_impressions_"
LAST_SHOWN_PREFIX = "linkpulse_last_shown_"


def dismissed_key(item_id: str) -> StoreKey:
    return StoreKey(f"{DISMISSED_PREFIX}{item_id}")


def impressions_key(item_id: str) -> StoreKey:
    return StoreKey(f"{IMPRESSIONS_PREFIX}{item_id}")


def last_shown_key(item_id: str) -> StoreKey:
    return StoreKey(f"{LAST_SHOWN_PREFIX}{item_id}")


class EligibilityEngine:
    """Filters and ranks content items using locally persisted per-item state."""

    def __init__(self, store: LocalStateStore, today: Callable[[], date] = date.today):
        """Initializes the engine.

        Args:
            store: Local state store; the engine is its only writer for message keys.
            today: Clock returning the current local date; injectable for tests.
        """
        self.store = store
        self._today = today

    # --- State access ---

    def _read_date(self, key: StoreKey) -> Optional[date]:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return date.fromisoformat(raw)
        except ValueError:
            logger.warning(f"Failed to parse stored date for {key}: {raw!r}")
            return None

    def _read_count(self, key: StoreKey) -> int:
        raw = self.store.get(key)
        if raw is None:
            return 0
        try:
            return max(0, int(raw))
        except ValueError:
            logger.warning(f"Failed to parse stored count for {key}: {raw!r}")
            return 0

    def load_state(self, item_id: str) -> PerItemLocalState:
        """Reads everything stored for one item, treating bad values as absent."""
        return PerItemLocalState(
            dismissed_on=self._read_date(dismissed_key(item_id)),
            impression_count=self._read_count(impressions_key(item_id)),
            last_shown=self._read_date(last_shown_key(item_id)),
        )

    # --- Checks ---

    def is_dismissed(self, item: ContentItem, state: Optional[PerItemLocalState] = None) -> bool:
        """True while a recorded dismissal is still in effect."""
        state = state or self.load_state(item.id)
        if state.dismissed_on is None:
            return False
        if item.dismiss_days is None:
            return True
        days_since = (self._today() - state.dismissed_on).days
        return days_since < item.dismiss_days

    def is_suppressed(self, item: ContentItem, state: Optional[PerItemLocalState] = None) -> bool:
        """True when the impression cap is reached or the minimum interval has not passed."""
        state = state or self.load_state(item.id)

        if item.max_impressions is not None and item.max_impressions > 0:
            if state.impression_count >= item.max_impressions:
                return True

        if item.min_interval_hours is not None and item.min_interval_hours > 0 and state.last_shown is not None:
            hours_since = (self._today() - state.last_shown).days * 24
            if hours_since < item.min_interval_hours:
                return True

        return False

    def is_eligible(self, item: ContentItem) -> bool:
        state = self.load_state(item.id)
        return not self.is_dismissed(item, state) and not self.is_suppressed(item, state)

    def filter_and_rank(self, candidates: Iterable[ContentItem]) -> List[ContentItem]:
        """Drops ineligible items and orders the rest by priority, highest first.

        Items with equal priority keep their input order.
        """
        eligible = [item for item in candidates if self.is_eligible(item)]
        ranked = sorted(eligible, key=lambda item: item.priority, reverse=True)
        logger.debug(f"Eligibility: {len(ranked)} eligible item(s): {[item.id for item in ranked]}")
        return ranked

    # --- Mutations ---

    def record_impression(self, item_id: ItemId) -> None:
        """Counts one presentation and stamps today as the last-shown date."""
        count = self._read_count(impressions_key(item_id)) + 1
        self.store.set(impressions_key(item_id), StoreValue(str(count)))
        self.store.set(last_shown_key(item_id), StoreValue(self._today().isoformat()))
        logger.debug(f"Message impression recorded: {item_id} (count: {count})")

    def record_dismissal(self, item_id: ItemId) -> None:
        """Stamps today as the dismissal date, replacing any earlier one."""
        self.store.set(dismissed_key(item_id), StoreValue(self._today().isoformat()))
        logger.debug(f"Message dismissed: {item_id}")
