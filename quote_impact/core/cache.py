"""Short-lived in-memory result cache.

The cache is an explicit object owned by the caller and handed to the
service engine; nothing here is module-level state.
"""

import copy
import time
from typing import Any, Callable, Dict, Optional, Tuple

from quote_impact.core.logger import logger


class SnapshotCache:
    """A minimal TTL key-value cache for JSON-like response payloads."""

    def __init__(self, ttl_seconds: float = 120, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize the cache.

        Args:
            ttl_seconds (float): Lifetime of an entry in seconds.
            clock (Callable): Returns the current time in seconds.
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a cached payload if it has not expired.

        Args:
            key (str): The cache key.

        Returns:
            Optional[Dict[str, Any]]: A copy of the cached payload, else None.
        """
        entry = self._entries.get(key)
        if entry is not None:
            stored_at, value = entry
            if self._clock() - stored_at < self.ttl_seconds:
                logger.info(f"Cache hit for key: {key}")
                return copy.deepcopy(value)
            del self._entries[key]

        logger.info(f"Cache miss for key: {key}")
        return None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        """
        Store a payload under ``key``, stamped with the current time.

        Args:
            key (str): The cache key.
            value (Dict[str, Any]): The payload to store.
        """
        self._entries[key] = (self._clock(), copy.deepcopy(value))

    def clear(self) -> None:
        self._entries.clear()
