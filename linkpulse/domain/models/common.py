"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like event types, item
ids and store keys, ensuring consistency and type safety.
"""

from typing import Any, Dict, NewType

# === Analytics Context ===
EventType = NewType("EventType", str)             # e.g. 'custom.signup'
EventProperties = NewType("EventProperties", Dict[str, Any])  # JSON-serializable values

# === Messaging Context ===
ItemId = NewType("ItemId", str)                   # Server-side id of a content item
RenderToken = NewType("RenderToken", str)         # Short-lived token for rendering a message
TriggerName = NewType("TriggerName", str)         # e.g. 'welcome', 'milestone'

# === Local State Context ===
StoreKey = NewType("StoreKey", str)               # Key in the local state store
StoreValue = NewType("StoreValue", str)           # Date-stamped string or integer counter

# === Network Context ===
ApiPath = NewType("ApiPath", str)                 # Path relative to the base URL, e.g. '/v1/api/messages'
JsonObject = NewType("JsonObject", Dict[str, Any])  # Parsed JSON object body

# === Referral Context ===
ReferralCode = NewType("ReferralCode", str)
UserId = NewType("UserId", str)
