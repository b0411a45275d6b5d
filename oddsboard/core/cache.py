"""
In-memory cache for extracted boards and match details.

- key -> (value, timestamp), one fixed TTL per cache instance.
- Expired entries are invisible to get() but stay around for the stale fallback.
- Nothing is evicted except by clear().
"""

import threading
import time
from typing import Any, Callable, Dict, NamedTuple, Optional

from .logger import get_logger, log_event

BOARD_TTL = 5 * 60     # 5 min
DETAIL_TTL = 10 * 60   # 10 min

logger = get_logger("oddsboard.cache")


class CacheEntry(NamedTuple):
    value: Any
    timestamp: float


class TTLCache:
    def __init__(self, ttl: float = BOARD_TTL, clock: Callable[[], float] = time.time, name: str = "cache"):
        self.ttl = ttl
        self.name = name
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _age(self, entry: CacheEntry) -> float:
        return self._clock() - entry.timestamp

    def get_entry(self, key: str, ignore_expiry: bool = False) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        if not ignore_expiry and self._age(entry) > self.ttl:
            return None
        return entry

    def get(self, key: str) -> Optional[Any]:
        entry = self.get_entry(key)
        return entry.value if entry else None

    def get_ignoring_expiry(self, key: str) -> Optional[Any]:
        entry = self.get_entry(key, ignore_expiry=True)
        return entry.value if entry else None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value, self._clock())

    def clear(self) -> None:
        with self._lock:
            n = len(self._entries)
            self._entries.clear()
        log_event(logger, "cache_cleared", cache=self.name, entries=n)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get_entry(key) is not None
