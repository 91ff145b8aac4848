"""In-memory caches and single-flight markers for model calls.

Two building blocks shared by the classification and chat clients:

- ExpiringCache: key → value with a fixed lifetime.  Expired entries are
  evicted lazily on the next lookup; there is no background sweep.
- InFlightGuard: advisory marker "a request for this key is outstanding".

Both are plain mutable containers without locking.  Concurrent writers
follow last-writer-wins.  The guard is a check-then-set flag, not a
test-and-set lock: it only holds while callers check and mark without a
suspension point in between, and it gives no protection across threads.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar

from taxdoc.logging_config import get_logger

logger = get_logger("app")

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[T]):
    """A cached value together with the time it was stored."""

    key: str
    value: T
    timestamp: float


class ExpiringCache(Generic[T]):
    """Key-value cache whose entries expire after ``ttl_seconds``.

    Usage:
        cache = ExpiringCache[ClassificationResult](ttl_seconds=300)
        cache.set(url, result)
        hit = cache.get(url)   # None once older than 300 s
    """

    def __init__(self, ttl_seconds: float, *, name: str = "cache", clock: Clock = time.monotonic) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> T | None:
        """Return the cached value, or None if missing or expired.

        An expired entry is removed as a side effect.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.ttl_seconds:
            del self._entries[key]
            logger.debug("%s: entry expired for %s", self.name, key)
            return None
        return entry.value

    def set(self, key: str, value: T) -> None:
        """Store a value, replacing any previous entry for the key."""
        self._entries[key] = CacheEntry(key=key, value=value, timestamp=self._clock())

    def delete(self, key: str) -> None:
        """Remove a single entry (no error if absent)."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()
        logger.debug("%s cleared", self.name)

    def __len__(self) -> int:
        # Counts stored entries, including ones that would expire on lookup
        return len(self._entries)


@dataclass
class InFlightGuard:
    """Advisory single-flight marker per key.

    Callers check ``is_in_flight`` and then ``mark`` as two steps.
    ``release`` is unconditional and safe to call for keys that are not
    marked.
    """

    name: str = "in-flight"
    _keys: set[str] = field(default_factory=set)

    def is_in_flight(self, key: str) -> bool:
        return key in self._keys

    def mark(self, key: str) -> None:
        self._keys.add(key)

    def release(self, key: str) -> None:
        self._keys.discard(key)

    @property
    def active_keys(self) -> frozenset[str]:
        """Snapshot of the keys currently marked."""
        return frozenset(self._keys)
