from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable


class SessionCache:
    """In-process key/value cache with TTL expiry and a max-entry bound.

    Holds the last recovered recipe payload per agent session. Expired entries
    are evicted lazily on access; the oldest entry is evicted when full.
    """

    def __init__(
        self,
        *,
        ttl_s: float,
        max_entries: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_s <= 0:
            raise ValueError("ttl_s must be > 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.ttl_s = float(ttl_s)
        self.max_entries = int(max_entries)
        self._clock = clock
        self._lock = threading.Lock()
        self._items: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, (expires_at, _v) in self._items.items() if expires_at <= now]
        for k in expired:
            del self._items[k]

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            now = self._clock()
            item = self._items.get(key)
            if item is None:
                return default
            expires_at, value = item
            if expires_at <= now:
                del self._items[key]
                return default
            return value

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            self._items.pop(key, None)
            self._items[key] = (now + self.ttl_s, value)
            while len(self._items) > self.max_entries:
                self._items.popitem(last=False)

    def delete(self, key: str) -> bool:
        with self._lock:
            item = self._items.pop(key, None)
            if item is None:
                return False
            return item[0] > self._clock()

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired(self._clock())
            return len(self._items)
