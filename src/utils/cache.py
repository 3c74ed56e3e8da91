"""
Small in-process TTL cache with an injectable clock.
"""

import time
from typing import Any, Callable, Hashable

# Returned by TTLCache.get when the key is absent or expired.
MISSING = object()


class TTLCache:
    """
    Maps keys to (value, inserted_at) pairs.

    An entry is served while ``clock() - inserted_at < ttl_seconds`` and is
    dropped lazily on the first read after that. Tests pass a fake clock to
    control expiry.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[Any, float]] = {}

    def get(self, key: Hashable) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return MISSING
        value, inserted_at = entry
        if self._clock() - inserted_at >= self.ttl_seconds:
            del self._entries[key]
            return MISSING
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop one key, or everything when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
