"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Eviction policies for bounded in-process stores.

One `EvictionPolicy` value carries its `kind` and dispatches on it; there is
no subclass per policy.

- LRU evicts the entry with the oldest `last_accessed_at`.
- LFU evicts the entry with the lowest `access_count`, oldest `created_at`
  first on ties.
- FIFO evicts the entry with the oldest `created_at`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import get_args

from .types import CacheEntry, EvictionPolicyName

EVICTION_POLICIES: tuple[str, ...] = get_args(EvictionPolicyName)


@dataclass(frozen=True, slots=True)
class EvictionPolicy:
    """Victim selection and per-operation bookkeeping for one policy kind."""

    kind: EvictionPolicyName = "LRU"

    def __post_init__(self) -> None:
        if self.kind not in EVICTION_POLICIES:
            raise ValueError(f"Unknown eviction policy '{self.kind}'")

    def on_insert(self, entry: CacheEntry, *, now: float, seq: int) -> None:
        """Stamp a freshly written entry."""
        entry.created_at = now
        entry.last_accessed_at = now
        entry.access_count = 1
        entry.insert_seq = seq
        entry.access_seq = seq

    def on_access(self, entry: CacheEntry, *, now: float, seq: int) -> None:
        """
        Record one read hit on `entry`.

        Recency and frequency are both tracked for every kind so entry
        metadata stays accurate; only `select_victim` depends on `kind`, and
        FIFO ignores both.
        """
        entry.last_accessed_at = now
        entry.access_seq = seq
        entry.access_count += 1

    def select_victim(self, entries: Mapping[str, CacheEntry]) -> str | None:
        """Return the key to evict, or `None` when `entries` is empty."""
        if not entries:
            return None
        if self.kind == "LRU":
            victim = min(
                entries.values(),
                key=lambda e: (e.last_accessed_at, e.access_seq),
            )
        elif self.kind == "LFU":
            victim = min(
                entries.values(),
                key=lambda e: (e.access_count, e.created_at, e.insert_seq),
            )
        else:
            victim = min(entries.values(), key=lambda e: (e.created_at, e.insert_seq))
        return victim.key
