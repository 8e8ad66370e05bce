"""In-memory TTL cache for external search results, keyed by query."""

import threading
import time
from typing import Any, Dict, List, Optional, Tuple


class QueryCache:
    """
    Query -> result list, expiring after `ttl` seconds.

    Expired entries are evicted on lookup and swept on every insert. When the
    cache is still at `max_entries` after the sweep, the oldest entry is dropped.
    """

    def __init__(self, ttl: float = 300.0, max_entries: int = 256, clock=time.monotonic):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, Tuple[float, List[Any]]] = {}
        self._lock = threading.Lock()

    def get(self, query: str) -> Optional[List[Any]]:
        if not query:
            return None
        with self._lock:
            entry = self._entries.get(query)
            if entry is None:
                return None
            stored_at, results = entry
            if self._clock() - stored_at > self.ttl:
                del self._entries[query]
                return None
            return list(results)

    def set(self, query: str, results: Optional[List[Any]]):
        if not query:
            return
        with self._lock:
            now = self._clock()
            self._prune(now)
            self._entries.pop(query, None)
            while self._entries and len(self._entries) >= self.max_entries:
                # dicts keep insertion order, first key is the oldest
                del self._entries[next(iter(self._entries))]
            self._entries[query] = (now, list(results or []))

    def _prune(self, now: float):
        expired = [q for q, (stored_at, _) in self._entries.items() if now - stored_at > self.ttl]
        for query in expired:
            del self._entries[query]

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
