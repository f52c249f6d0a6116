"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache decision engine.

Per invocation the engine walks::

    KEY_BUILD -> STORE_LOOKUP -> HIT | MISS | FAIL_OPEN
    MISS -> (caller computes) -> STORE_WRITE -> DONE

Any caching-layer error (unknown parameter, unreadable identifier, negative
TTL, unreachable backend) ends in FAIL_OPEN or a skipped write. The wrapped
computation always runs when needed and its result is always returned.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from .coalescing import MissCoalescer
from .errors import (
    BackendUnavailableError,
    CallCacheError,
    IdentifierNotFoundError,
    InvalidTTLError,
    KeyBuildError,
    ParameterNotFoundError,
)
from .keys import build_key
from .metrics import CacheMetrics, NoOpCacheMetrics
from .stores.base import MISS, CacheStore
from .stores.inmemory import InMemoryCacheStore
from .stores.namespaces import NamespaceRegistry
from .types import CacheDecision, CacheOutcome, CacheSpec, FailOpenReason

logger = logging.getLogger("callcache.engine")

T = TypeVar("T")


class CacheEngine:
    """
    Decide hit, miss or fail-open for one call and store computed results.

    Args:
        remote: Store used for `REMOTE` specs. When `None`, remote specs fail
            open with `BACKEND_UNAVAILABLE`.
        namespaces: Registry of in-process stores. A fresh one by default.
        metrics: Counter sink. No-op by default.
        coalesce_wait_s: When set, concurrent misses on one key elect a
            leader and followers wait at most this long before computing.
        clock: Time source for a default-constructed namespace registry.
    """

    def __init__(
        self,
        *,
        remote: CacheStore | None = None,
        namespaces: NamespaceRegistry | None = None,
        metrics: CacheMetrics | None = None,
        coalesce_wait_s: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.remote = remote
        self.namespaces = namespaces or NamespaceRegistry(clock=clock)
        self.metrics = metrics or NoOpCacheMetrics()
        self._coalescer = (
            MissCoalescer(wait_s=coalesce_wait_s) if coalesce_wait_s is not None else None
        )

    def store_for(self, spec: CacheSpec) -> CacheStore | None:
        """Backend selected by `spec.backend`, or `None` when unconfigured."""
        if spec.backend == "REMOTE":
            return self.remote
        return self.namespaces.resolve(spec)

    def namespace(self, name: str) -> InMemoryCacheStore | None:
        return self.namespaces.get(name)

    def lookup(self, spec: CacheSpec, arguments: Mapping[str, Any]) -> CacheDecision:
        """Run KEY_BUILD and STORE_LOOKUP; never raises caching errors."""
        try:
            key = build_key(spec.key, spec.parameter_mappings, arguments)
        except ParameterNotFoundError as exc:
            logger.warning(
                "Cache key for '%s' not built: parameter '%s' not found; "
                "calling through uncached",
                spec.key,
                exc.parameter_name,
            )
            return self._fail_open(spec, None, "PARAMETER_NOT_FOUND", str(exc))
        except IdentifierNotFoundError as exc:
            logger.warning(
                "Cache key for '%s' not built: identifier '%s' not found on "
                "parameter '%s'; calling through uncached",
                spec.key,
                exc.identifier,
                exc.parameter_name,
            )
            return self._fail_open(spec, None, "IDENTIFIER_NOT_FOUND", str(exc))
        except KeyBuildError as exc:
            logger.warning(
                "Cache key for '%s' not built: %s; calling through uncached",
                spec.key,
                exc,
            )
            return self._fail_open(spec, None, "KEY_RENDER_FAILED", str(exc))

        if spec.ttl < 0:
            logger.warning(
                "Rejected cache spec '%s': invalid TTL %d; calling through uncached",
                spec.key,
                spec.ttl,
            )
            return self._fail_open(
                spec, key, "INVALID_TTL", f"TTL must be >= 0, got {spec.ttl}"
            )

        store = self.store_for(spec)
        if store is None:
            logger.warning(
                "No remote cache store configured for '%s'; calling through uncached",
                key,
            )
            return self._fail_open(
                spec, key, "BACKEND_UNAVAILABLE", "remote store not configured"
            )
        if not store.connect():
            logger.debug("Cache backend '%s' unreachable for '%s'", store.backend_id, key)
            return self._fail_open(
                spec, key, "BACKEND_UNAVAILABLE", f"{store.backend_id} unreachable"
            )

        try:
            value = store.get(key)
        except BackendUnavailableError as exc:
            logger.warning("Cache lookup for '%s' failed: %s", key, exc)
            return self._fail_open(spec, key, "BACKEND_UNAVAILABLE", str(exc))

        if value is MISS:
            self._emit("misses", self._tags(spec))
            return CacheDecision(spec=spec, state="MISS", key=key)
        self._emit("hits", self._tags(spec))
        logger.debug("Cache hit for '%s'", key)
        return CacheDecision(spec=spec, state="HIT", key=key, value=value)

    def record(self, decision: CacheDecision, value: Any) -> bool:
        """
        Run STORE_WRITE for a `MISS` decision.

        Returns `True` when the value was stored. Write failures are logged and
        reported as `False`; decisions other than `MISS` are never stored.
        """
        if decision.state != "MISS" or decision.key is None:
            return False
        spec = decision.spec
        store = self.store_for(spec)
        if store is None:
            return False
        try:
            store.put(decision.key, value, spec.ttl)
        except InvalidTTLError as exc:
            logger.warning(
                "Rejected cache write for '%s': invalid TTL %d", decision.key, exc.ttl
            )
            self._count_write_failure(spec, "INVALID_TTL")
            return False
        except BackendUnavailableError as exc:
            logger.warning("Cache write for '%s' failed: %s", decision.key, exc)
            self._count_write_failure(spec, "BACKEND_UNAVAILABLE")
            return False
        except CallCacheError as exc:
            logger.warning("Cache write for '%s' skipped: %s", decision.key, exc)
            self._count_write_failure(spec, type(exc).__name__)
            return False
        self._emit("writes", self._tags(spec))
        return True

    def resolve(
        self,
        spec: CacheSpec,
        arguments: Mapping[str, Any],
        computation: Callable[[], T],
    ) -> CacheOutcome:
        """
        Return a cached value for this call or compute and store a fresh one.

        Exceptions raised by `computation` propagate unchanged and nothing is
        stored.
        """
        decision = self.lookup(spec, arguments)
        if decision.state == "HIT":
            return CacheOutcome(
                value=decision.value, was_cache_hit=True, key=decision.key, state="HIT"
            )
        if decision.state == "FAIL_OPEN":
            return CacheOutcome(
                value=computation(),
                was_cache_hit=False,
                key=decision.key,
                state="FAIL_OPEN",
                fail_open_reason=decision.reason,
            )

        key = decision.key
        if key is None:
            return CacheOutcome(value=computation(), was_cache_hit=False, state="MISS")

        coalescer = self._coalescer
        leader = coalescer.acquire(key) if coalescer is not None else False
        try:
            if coalescer is not None and not leader:
                retry = self.lookup(spec, arguments)
                if retry.state == "HIT":
                    return CacheOutcome(
                        value=retry.value, was_cache_hit=True, key=retry.key, state="HIT"
                    )
            value = computation()
            stored = self.record(decision, value)
        finally:
            if coalescer is not None and leader:
                coalescer.release(key)

        return CacheOutcome(
            value=value, was_cache_hit=False, key=decision.key, state="MISS", stored=stored
        )

    def invalidate(self, spec: CacheSpec, arguments: Mapping[str, Any]) -> bool:
        """Remove the entry for these arguments; `False` if absent or unreachable."""
        try:
            key = build_key(spec.key, spec.parameter_mappings, arguments)
        except CallCacheError as exc:
            logger.warning("Cache invalidation for '%s' skipped: %s", spec.key, exc)
            return False
        store = self.store_for(spec)
        if store is None:
            return False
        try:
            return store.delete(key)
        except BackendUnavailableError as exc:
            logger.warning("Cache invalidation for '%s' failed: %s", key, exc)
            return False

    def _fail_open(
        self,
        spec: CacheSpec,
        key: str | None,
        reason: FailOpenReason,
        detail: str,
    ) -> CacheDecision:
        self._emit("fail_open", {**self._tags(spec), "reason": reason})
        return CacheDecision(
            spec=spec, state="FAIL_OPEN", key=key, reason=reason, detail=detail
        )

    def _count_write_failure(self, spec: CacheSpec, reason: str) -> None:
        self._emit("write_failures", {**self._tags(spec), "reason": reason})

    def _emit(self, name: str, tags: dict[str, str]) -> None:
        # A broken metrics sink never changes what a call returns.
        try:
            self.metrics.incr(name, tags=tags)
        except Exception as exc:
            logger.debug("Cache metric '%s' not recorded: %s", name, exc)

    @staticmethod
    def _tags(spec: CacheSpec) -> dict[str, str]:
        return {"namespace": spec.key, "backend": spec.backend}
