"""Interface for the local persistent key-value store.

Defines the contract the eligibility engine uses to remember dismissals,
impression counts and last-shown dates across process restarts. Values are
plain strings; the engine owns their encoding.
"""

import abc
from typing import Optional

from ..models.common import StoreKey, StoreValue


class LocalStateStore(abc.ABC):
    """Abstract Base Class for synchronous local state storage."""

    @abc.abstractmethod
    def get(self, key: StoreKey) -> Optional[StoreValue]:
        """Retrieves a value.

        Args:
            key: The key to look up.

        Returns:
            The stored string, or None when absent.
        """
        pass

    @abc.abstractmethod
    def set(self, key: StoreKey, value: StoreValue) -> None:
        """Stores or overwrites a value.

        Args:
            key: The key to store the value under.
            value: The string to persist.
        """
        pass

    @abc.abstractmethod
    def delete(self, key: StoreKey) -> None:
        """Removes a key if present."""
        pass

    @abc.abstractmethod
    def clear(self) -> None:
        """Removes every key owned by this store."""
        pass
