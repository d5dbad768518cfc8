"""Concrete implementations of the LocalStateStore port.

``DiskStateStore`` persists to a directory through diskcache so message
dismissals and impression counts survive process restarts.
``InMemoryStateStore`` keeps everything in a dict, for tests and hosts that
do not want anything written to disk.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import diskcache as dc

from linkpulse.domain.interfaces.state_store import LocalStateStore
from linkpulse.domain.models.common import StoreKey, StoreValue

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = Path.home() / ".linkpulse" / "state"


class DiskStateStore(LocalStateStore):
    """diskcache-backed store. Entries never expire."""

    def __init__(self, directory: Union[str, Path] = DEFAULT_STATE_DIR):
        """Opens (creating if needed) the store directory."""
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._cache = dc.Cache(str(self.directory), timeout=1)
        logger.info(f"Initialized local state store at: {self._cache.directory}")

    def get(self, key: StoreKey) -> Optional[StoreValue]:
        value = self._cache.get(key)
        if value is None:
            return None
        return StoreValue(str(value))

    def set(self, key: StoreKey, value: StoreValue) -> None:
        self._cache.set(key, str(value))
        logger.debug(f"Stored local state: {key}={value}")

    def delete(self, key: StoreKey) -> None:
        self._cache.delete(key)

    def clear(self) -> None:
        self._cache.clear()
        logger.info(f"Cleared local state store at: {self.directory}")

    def close(self) -> None:
        """Releases the underlying database handle."""
        self._cache.close()


class InMemoryStateStore(LocalStateStore):
    """Dict-backed store; contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: StoreKey) -> Optional[StoreValue]:
        value = self._data.get(key)
        return StoreValue(value) if value is not None else None

    def set(self, key: StoreKey, value: StoreValue) -> None:
        self._data[key] = str(value)

    def delete(self, key: StoreKey) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()
