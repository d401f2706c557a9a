"""Short-lived in-process cache for leaderboard responses."""

import logging
import threading
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class LeaderboardCache:
    """
    TTL cache keyed by query shape.

    Starts empty and lives as long as the application that owns it.
    Losing entries is always safe: a miss means the caller recomputes.
    Concurrent writers follow last-write-wins.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Returns:
            The cached value, or None on a miss or an expired entry
        """
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, value = item
            if self.clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> None:
        with self._lock:
            self._entries[key] = (self.clock() + ttl_seconds, value)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared {count} cached leaderboard entries")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
