"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Bounded process-local cache store with TTL expiry and pluggable eviction.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..errors import InvalidTTLError
from ..eviction import EvictionPolicy
from ..types import CacheEntry, EvictionPolicyName
from .base import MISS

logger = logging.getLogger("callcache.stores.inmemory")


@dataclass(frozen=True, slots=True)
class InMemoryStoreStats:
    """Point-in-time counters for one in-process namespace."""

    size: int
    capacity: int
    hits: int
    misses: int
    evictions: int
    expirations: int


class InMemoryCacheStore:
    """
    Process-local cache for one namespace.

    A single lock covers every read and the full lookup/evict/insert sequence
    of a write, so `len(store) <= capacity` holds after any `put` completes
    regardless of how many threads write concurrently. Expired entries are
    removed lazily when read, or swept when a write needs room.

    Args:
        capacity: Maximum number of live entries (>= 1).
        policy: Eviction policy name or instance.
        clock: Time source in seconds. Defaults to `time.monotonic`.
        name: Namespace label used in diagnostics.
    """

    backend_id = "inmemory"

    def __init__(
        self,
        *,
        capacity: int,
        policy: EvictionPolicy | EvictionPolicyName = "LRU",
        clock: Callable[[], float] = time.monotonic,
        name: str = "default",
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.name = name
        self.capacity = capacity
        self.policy = policy if isinstance(policy, EvictionPolicy) else EvictionPolicy(policy)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self._seq = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def connect(self) -> bool:
        return True

    def get(self, key: str) -> Any:
        """Return the live value for `key`, or `MISS`."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return MISS
            now = self._clock()
            if entry.is_expired(now):
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return MISS
            self.policy.on_access(entry, now=now, seq=self._next_seq())
            self._hits += 1
            return entry.value

    def peek(self, key: str) -> CacheEntry | None:
        """Return the raw entry without touching access metadata or expiry."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, value: Any, ttl: int) -> None:
        """
        Store `value` under `key` for `ttl` seconds.

        `ttl == 0` writes an entry that is already expired; the next read
        drops it. When a new key meets a full store, expired entries are
        swept first and the eviction policy only picks a live victim if the
        store is still full afterwards.

        Raises:
            InvalidTTLError: `ttl` is negative. Nothing is written.
        """
        if ttl < 0:
            raise InvalidTTLError(ttl)
        with self._lock:
            now = self._clock()
            if key not in self._entries and len(self._entries) >= self.capacity:
                self._make_room(now)
            entry = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                last_accessed_at=now,
                access_count=1,
                expires_at=now + ttl,
            )
            self.policy.on_insert(entry, now=now, seq=self._next_seq())
            self._entries[key] = entry

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> InMemoryStoreStats:
        with self._lock:
            return InMemoryStoreStats(
                size=len(self._entries),
                capacity=self.capacity,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def _make_room(self, now: float) -> None:
        # Caller holds self._lock. Expired entries go before any live one.
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        self._expirations += len(expired)
        if len(self._entries) >= self.capacity:
            self._evict_one()

    def _evict_one(self) -> None:
        # Caller holds self._lock.
        victim = self.policy.select_victim(self._entries)
        if victim is None:
            return
        self._entries.pop(victim, None)
        self._evictions += 1
        logger.debug(
            "Evicted cache entry '%s' from namespace '%s' (%s)",
            victim,
            self.name,
            self.policy.kind,
        )

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq
