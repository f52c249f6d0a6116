"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Registry of in-process stores keyed by cache namespace.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from threading import Lock

from ..types import CacheSpec
from .inmemory import InMemoryCacheStore

logger = logging.getLogger("callcache.stores.namespaces")


class NamespaceRegistry:
    """
    Create and hold one `InMemoryCacheStore` per `CacheSpec.key`.

    Capacity and eviction policy are taken from the first spec that names a
    namespace and never change afterwards.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._stores: dict[str, InMemoryCacheStore] = {}
        self._lock = Lock()

    def resolve(self, spec: CacheSpec) -> InMemoryCacheStore:
        with self._lock:
            store = self._stores.get(spec.key)
            if store is None:
                store = InMemoryCacheStore(
                    capacity=spec.capacity,
                    policy=spec.eviction_policy,
                    clock=self._clock,
                    name=spec.key,
                )
                self._stores[spec.key] = store
                return store

        if store.capacity != spec.capacity or store.policy.kind != spec.eviction_policy:
            logger.warning(
                "Cache namespace '%s' already exists with capacity=%d policy=%s; "
                "ignoring capacity=%d policy=%s",
                spec.key,
                store.capacity,
                store.policy.kind,
                spec.capacity,
                spec.eviction_policy,
            )
        return store

    def get(self, name: str) -> InMemoryCacheStore | None:
        with self._lock:
            return self._stores.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._stores)

    def clear(self) -> None:
        """Drop every namespace and its entries."""
        with self._lock:
            self._stores.clear()
