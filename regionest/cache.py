"""
Time-bounded result cache.

Entries older than the TTL are evicted lazily when looked up; nothing
sweeps the cache in the background. Both backends take an injectable
clock so expiry can be tested without waiting.
"""

import json
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from .database import CacheEntry, get_session, init_database

DEFAULT_TTL = 6 * 60 * 60  # seconds

Clock = Callable[[], float]


def make_cache_key(name: str, min_age: int, max_age: int, hensachi: Optional[float]) -> str:
    h = "x" if hensachi is None else repr(float(hensachi))
    return f"estimate:{name}|{min_age}-{max_age}|{h}"


def make_regions_key(name: str) -> str:
    return f"regions:{name}"


class ResultCache:
    """In-process cache of JSON-compatible payloads."""

    def __init__(self, ttl: float = DEFAULT_TTL, clock: Clock = time.time):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the stored payload, or None when absent or stale."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, payload = entry
            if self.clock() - stored_at > self.ttl:
                del self._entries[key]
                return None
            return payload

    def set(self, key: str, payload: Any) -> None:
        with self._lock:
            self._entries[key] = (self.clock(), payload)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SqlResultCache:
    """
    SQLite-backed cache with the same contract as ResultCache.

    Payloads are stored as JSON text, so a hit returns a fresh copy
    rather than the object that was stored.
    """

    def __init__(self, db_path: Path, ttl: float = DEFAULT_TTL, clock: Clock = time.time):
        self.db_path = Path(db_path)
        self.ttl = ttl
        self.clock = clock
        init_database(self.db_path)

    def get(self, key: str) -> Optional[Any]:
        session = get_session(self.db_path)
        try:
            entry = session.get(CacheEntry, key)
            if entry is None:
                return None
            if self.clock() - entry.stored_at > self.ttl:
                session.delete(entry)
                session.commit()
                return None
            return json.loads(entry.payload)
        finally:
            session.close()

    def set(self, key: str, payload: Any) -> None:
        session = get_session(self.db_path)
        try:
            session.merge(
                CacheEntry(
                    key=key,
                    payload=json.dumps(payload, ensure_ascii=False),
                    stored_at=self.clock(),
                )
            )
            session.commit()
        finally:
            session.close()

    def clear(self) -> None:
        session = get_session(self.db_path)
        try:
            session.query(CacheEntry).delete()
            session.commit()
        finally:
            session.close()

    def __len__(self) -> int:
        session = get_session(self.db_path)
        try:
            return session.query(CacheEntry).count()
        finally:
            session.close()
