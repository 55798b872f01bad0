"""TTL cache used for hotel listing queries."""
from __future__ import annotations

from threading import Lock
from typing import Callable, Generic, Hashable, Optional, Tuple, TypeVar

from cachetools import TTLCache

T = TypeVar("T")
CacheKey = Tuple[Hashable, ...]


class ListingCache(Generic[T]):
    """Caches computed listings keyed by a tuple whose first item names the listing kind."""

    def __init__(self, ttl: int, maxsize: int = 256) -> None:
        self._cache: TTLCache[CacheKey, T] = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = Lock()

    def get(self, key: CacheKey) -> Optional[T]:
        with self._lock:
            return self._cache.get(key)

    def set(self, key: CacheKey, value: T) -> None:
        with self._lock:
            self._cache[key] = value

    def get_or_load(self, key: CacheKey, loader: Callable[[], T]) -> T:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        self.set(key, value)
        return value

    def invalidate(self, kind: Hashable) -> None:
        """Drop every entry whose key starts with ``kind``."""
        with self._lock:
            for key in [key for key in self._cache.keys() if key and key[0] == kind]:
                self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
