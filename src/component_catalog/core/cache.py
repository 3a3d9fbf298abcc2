"""Generic LRU cache with per-entry TTL and statistics.

Recency-ordered, bounded, and clock-injectable so expiry can be tested
without sleeping. Expired entries are logically absent as soon as their
TTL has passed, whether or not a sweep has removed them yet.
"""

import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass
class Stats:
    """Counters for one cache; size is refreshed on read."""

    size: int = 0
    max_size: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups

    def to_dict(self) -> dict[str, Any]:
        return {**asdict(self), "hit_rate": self.hit_rate}


@dataclass
class CacheEntry(Generic[T]):
    """Stored value plus insertion and access bookkeeping."""

    value: T
    inserted_at: float
    ttl: float
    access_count: int = 0
    last_accessed_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now > self.inserted_at + self.ttl


class TTLCache(Generic[T]):
    """
    Bounded key/value cache used for components, categories and result pages.

    Entries carry their own TTL (falling back to ``default_ttl``). When the
    cache is full the least recently read or written entry is evicted.
    Lookups, misses and evictions are counted in ``stats``.

    Examples:
        >>> pages = TTLCache[list](max_size=2, default_ttl=120)
        >>> pages.set("search:abc", ["fade-in-animations"])
        >>> pages.get("search:abc")
        ['fade-in-animations']
        >>> pages.stats.hits
        1
    """

    def __init__(
        self,
        max_size: int = 100,
        default_ttl: float = 300.0,
        clock: Clock = time.monotonic,
    ):
        """
        Args:
            max_size: Capacity in entries
            default_ttl: Lifetime in seconds for entries stored without a ttl
            clock: Monotonic time source in seconds

        Raises:
            ValueError: If max_size or default_ttl is not positive
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")

        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock

        self._entries: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._stats = Stats(max_size=max_size)

    def _purge(self, key: str) -> None:
        del self._entries[key]
        self._stats.size = len(self._entries)

    def get(self, key: str) -> T | None:
        """
        Live value for key, or None.

        A hit moves the entry to the most-recently-used position.
        An expired entry is removed and counted as a miss.
        """
        if not key or not isinstance(key, str):
            self._stats.misses += 1
            return None

        entry = self._entries.get(key)
        if entry is None:
            self._stats.misses += 1
            return None

        now = self._clock()
        if entry.is_expired(now):
            self._purge(key)
            self._stats.misses += 1
            return None

        entry.access_count += 1
        entry.last_accessed_at = now
        self._entries.move_to_end(key)
        self._stats.hits += 1
        return entry.value

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        """
        Store value under key, evicting the LRU entry if the cache is full.

        Args:
            key: Non-empty cache key
            value: Value to store
            ttl: Lifetime in seconds (defaults to default_ttl)

        Raises:
            ValueError: If key is empty or ttl is not positive
        """
        if not key or not isinstance(key, str):
            raise ValueError("Cache key must be a non-empty string")
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive")

        # Replacing a key re-inserts it at the most-recently-used end
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
            self._stats.evictions += 1

        now = self._clock()
        self._entries[key] = CacheEntry(
            value=value,
            inserted_at=now,
            ttl=ttl if ttl is not None else self.default_ttl,
            last_accessed_at=now,
        )
        self._stats.size = len(self._entries)

    def has(self, key: str) -> bool:
        """
        Check presence without touching recency order.

        Note: an expired entry is purged as a side effect.
        """
        if not key or not isinstance(key, str):
            return False

        entry = self._entries.get(key)
        if entry is None:
            return False

        if entry.is_expired(self._clock()):
            self._purge(key)
            return False
        return True

    def entry(self, key: str) -> CacheEntry[T] | None:
        """Return the live entry's bookkeeping without counting a hit."""
        if not self.has(key):
            return None
        return self._entries[key]

    def clear(self) -> None:
        """Drop every entry and reset the counters."""
        self._entries.clear()
        self._stats = Stats(max_size=self.max_size)

    def cleanup(self) -> int:
        """Sweep expired entries; returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        self._stats.size = len(self._entries)
        return len(expired)

    @property
    def stats(self) -> Stats:
        self._stats.size = len(self._entries)
        return self._stats

    def get_stats(self) -> dict[str, Any]:
        return self.stats.to_dict()

    def __len__(self) -> int:
        # Expired entries count until purged
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)


__all__ = ["TTLCache", "CacheEntry", "Stats"]
