"""
Thread-safe TTL cache.

A small keyed cache where entries expire ``ttl_seconds`` after they were
stored. Capacity is bounded; the least recently used entry is evicted first.
The voice catalog stores a single entry in it, but nothing here is specific
to voices.

Example:
    >>> cache = TTLCache(ttl_seconds=600)
    >>> cache.set("voices", [...])
    >>> cache.get("voices")
    [...]
"""
from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from tts_gateway.core.logging import get_logger, verbose

_LOG = get_logger("tts-gateway.cache")

V = TypeVar("V")


class TTLCache(Generic[V]):
    """
    LRU cache with per-entry expiry.

    Args:
        ttl_seconds: Entry lifetime. 0 disables caching entirely.
        max_items: Capacity before LRU eviction.
        clock: Time source in seconds. Injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_items: int = 16,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = float(ttl_seconds)
        self.max_items = int(max_items)
        self._clock = clock
        self._d: "OrderedDict[str, Tuple[float, V]]" = OrderedDict()
        self._lock = threading.Lock()

        self._hits = 0
        self._misses = 0
        self._expirations = 0

    def get(self, key: str) -> Optional[V]:
        """Return the live value for ``key`` or None."""
        with self._lock:
            entry = self._d.get(key)
            if entry is None:
                self._misses += 1
                return None

            stored_at, value = entry
            age = self._clock() - stored_at
            if age >= self.ttl_seconds:
                del self._d[key]
                self._expirations += 1
                self._misses += 1
                verbose(_LOG, "expired", key=key, age=round(age, 1))
                return None

            self._d.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: str, value: V) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            self._d[key] = (self._clock(), value)
            self._d.move_to_end(key)
            while len(self._d) > self.max_items:
                self._d.popitem(last=False)

    def clear(self) -> int:
        """Drop every entry; returns how many were dropped."""
        with self._lock:
            count = len(self._d)
            self._d.clear()
            return count

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._d),
                "max_items": self.max_items,
                "ttl_seconds": self.ttl_seconds,
                "expirations": self._expirations,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._d)
