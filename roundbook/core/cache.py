"""Process-wide time-expiring memoization for reference listings."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

DATE_PERIODS_KEY = "date_periods"


def rounds_key(user_id: int) -> str:
    return f"rounds:{user_id}"


@dataclass(slots=True)
class _CacheEntry:
    value: Any
    expires_at: float


class ReferenceCache:
    """Remember loader results per key until their TTL elapses.

    Entries are never refreshed on their own; writers call :meth:`forget`
    when they want the next read to go back to the database.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def remember(self, key: str, ttl_seconds: int, loader: Callable[[], Any]) -> Any:
        now = self.clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at > now:
                return entry.value

        value = loader()
        with self._lock:
            self._entries[key] = _CacheEntry(value=value, expires_at=now + ttl_seconds)
        return value

    def forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and entry.expires_at > self.clock()


@lru_cache
def get_reference_cache() -> ReferenceCache:
    """Get the shared cache instance."""

    return ReferenceCache()
