"""Bounded in-process cache with per-entry expiry"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional, Tuple


class TTLCache:
    """
    Least-recently-used cache whose entries expire after ttl_seconds.

    Thread-safe: shared by request handlers and the interest scheduler.

    Every invalidation bumps `generation`. A reader that captures it before
    loading a value passes it to set(), which refuses to store the value if an
    invalidation ran in between.
    """

    def __init__(
        self,
        max_entries: int = 256,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[Hashable, Tuple[float, Any]]" = OrderedDict()
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None

            self._entries.move_to_end(key)
            return value

    def set(self, key: Hashable, value: Any, generation: Optional[int] = None) -> bool:
        """Store value; returns False if an invalidation ran since `generation`"""
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._entries[key] = (self._clock() + self.ttl_seconds, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)  # Evict least recently used
            return True

    def invalidate(self, predicate: Callable[[Hashable], bool]) -> int:
        """Drop every key matching predicate; returns how many were dropped"""
        with self._lock:
            self._generation += 1
            stale = [key for key in self._entries if predicate(key)]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
