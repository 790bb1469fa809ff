"""Time-based cache with an injectable clock."""

import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the clock reading when it was stored."""
    value: V
    inserted_at: float


class TTLCache(Generic[V]):
    """Key-replace cache whose entries expire after ``ttl_seconds``.

    Args:
        ttl_seconds: Entry lifetime; entries at least this old are misses
        clock: Monotonic seconds source (injected in tests)

    Example:
        >>> cache = TTLCache(ttl_seconds=300)
        >>> cache.set(("s1", None, None), [])
        >>> cache.get(("s1", None, None))
        []
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[V]] = {}

    def get(self, key: Hashable) -> Optional[V]:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.inserted_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: Hashable, value: V) -> None:
        self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
