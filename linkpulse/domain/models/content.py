"""Domain models for in-app content and its locally persisted display state."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from .common import ItemId


def _opt_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    return str(value) if value is not None else None


def _opt_int(data: Dict[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ContentItem:
    """An in-app message fetched from the server.

    ``dismiss_days`` of None means a dismissed item never comes back.
    ``max_impressions`` / ``min_interval_hours`` of None disable that rule.
    """
    id: ItemId
    name: str = ""
    priority: int = 0
    dismiss_days: Optional[int] = None
    max_impressions: Optional[int] = None
    min_interval_hours: Optional[int] = None
    title: Optional[str] = None
    body: Optional[str] = None
    trigger: Optional[str] = None
    trigger_value: Optional[str] = None
    background_color: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ContentItem":
        return cls(
            id=ItemId(str(data.get("id", ""))),
            name=str(data.get("name", "")),
            priority=_opt_int(data, "priority") or 0,
            dismiss_days=_opt_int(data, "dismiss_days"),
            max_impressions=_opt_int(data, "max_impressions"),
            min_interval_hours=_opt_int(data, "min_interval_hours"),
            title=_opt_str(data, "title"),
            body=_opt_str(data, "body"),
            trigger=_opt_str(data, "trigger"),
            trigger_value=_opt_str(data, "trigger_value"),
            background_color=_opt_str(data, "background_color"),
        )


@dataclass(frozen=True)
class PerItemLocalState:
    """What the device remembers about one content item."""
    dismissed_on: Optional[date] = None
    impression_count: int = 0
    last_shown: Optional[date] = None
