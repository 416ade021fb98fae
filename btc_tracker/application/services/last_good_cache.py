"""
Application service: last known good value per metric stream.

Written only on non-degraded successes, read when a refresh fails, cleared on
logout. The lock keeps the cache safe if it is ever shared with worker threads.
"""

import threading
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class CachedValue:
    data: Any
    source: str
    fetched_at_ms: int


class LastGoodCache:
    def __init__(self) -> None:
        self._entries: dict[str, CachedValue] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: CachedValue) -> None:
        with self._lock:
            self._entries[key] = value

    def get(self, key: str) -> Optional[CachedValue]:
        with self._lock:
            return self._entries.get(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
