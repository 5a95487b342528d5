"""Short-lived cache of availability snapshots."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Optional, Set, Tuple

from .models import AvailabilitySnapshot

CacheKey = Tuple[str, date, date]


def build_cache_key(listing_id: str, window_start: date, window_end: date) -> CacheKey:
    return (str(listing_id), window_start, window_end)


@dataclass
class _Entry:
    snapshot: AvailabilitySnapshot
    stored_at: float


class AvailabilityCache:
    """In-memory snapshot cache keyed by listing and window.

    Entries older than ``ttl_seconds`` are treated as missing. Only confirmed
    snapshots should be stored; callers decide that.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, _Entry] = {}
        self._keys_by_listing: Dict[str, Set[CacheKey]] = {}

    def get(self, key: CacheKey) -> Optional[AvailabilitySnapshot]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self._ttl:
            self._discard(key)
            return None
        return entry.snapshot

    def set(self, key: CacheKey, snapshot: AvailabilitySnapshot) -> None:
        now = self._clock()
        self.prune(now)
        self._entries[key] = _Entry(snapshot=snapshot, stored_at=now)
        self._keys_by_listing.setdefault(key[0], set()).add(key)

    def prune(self, now: Optional[float] = None) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock() if now is None else now
        expired = [key for key, entry in self._entries.items() if now - entry.stored_at >= self._ttl]
        for key in expired:
            self._discard(key)
        return len(expired)

    def invalidate(self, listing_id: str) -> int:
        """Drop every cached window of a listing; returns how many were removed."""
        keys = self._keys_by_listing.pop(str(listing_id), set())
        for key in keys:
            self._entries.pop(key, None)
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()
        self._keys_by_listing.clear()

    def _discard(self, key: CacheKey) -> None:
        self._entries.pop(key, None)
        keys = self._keys_by_listing.get(key[0])
        if keys is not None:
            keys.discard(key)
            if not keys:
                del self._keys_by_listing[key[0]]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return self.get(key) is not None
