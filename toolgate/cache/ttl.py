"""In-memory key/value store with optional per-entry expiry."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: Optional[float] = None  # monotonic seconds; None = never


class ExpiringCache:
    """
    Thread-safe cache with lazy expiry.

    Expired entries are evicted by the first `get` that observes them; there is no
    background sweeper. A ttl of zero or less stores the entry without expiry.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._items: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Tuple[Any, bool]:
        with self._lock:
            entry = self._items.get(key)
        if entry is None:
            return None, False
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            with self._lock:
                # Only evict the entry we saw; a concurrent set may have replaced it.
                if self._items.get(key) is entry:
                    del self._items[key]
            return None, False
        return entry.value, True

    def set(self, key: str, value: Any, ttl_seconds: float = 0) -> None:
        if not key:
            return
        expires_at = self._clock() + ttl_seconds if ttl_seconds and ttl_seconds > 0 else None
        with self._lock:
            self._items[key] = CacheEntry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> None:
        if not key:
            return
        with self._lock:
            self._items.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        # Physical presence, expired or not (used to observe lazy eviction).
        with self._lock:
            return key in self._items


# Callers may hold an optional cache; these treat None as an always-empty cache.


def cache_get(cache: Optional[ExpiringCache], key: str) -> Tuple[Any, bool]:
    if cache is None:
        return None, False
    return cache.get(key)


def cache_set(cache: Optional[ExpiringCache], key: str, value: Any, ttl_seconds: float = 0) -> None:
    if cache is None:
        return
    cache.set(key, value, ttl_seconds)


def cache_delete(cache: Optional[ExpiringCache], key: str) -> None:
    if cache is None:
        return
    cache.delete(key)
