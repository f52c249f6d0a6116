"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Redis-backed remote cache store.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from redis.exceptions import RedisError

from ..errors import BackendUnavailableError, CacheSerializationError, InvalidTTLError
from .base import MISS
from .serializers import CacheSerializer, JsonSerializer

logger = logging.getLogger("callcache.stores.redis")

_UNAVAILABLE = (RedisError, OSError)


class RedisCacheStore:
    """
    Remote cache store over a synchronous ``redis.Redis`` client.

    Connection failures never escape as Redis exceptions: `connect` returns
    `False` and `get`/`put`/`delete` raise `BackendUnavailableError`. After a
    failure the store reports itself unreachable without touching the network
    until `reconnect_interval_s` has elapsed, so an outage costs one timeout
    per interval instead of one per call. Per-call latency is bounded by the
    client's socket timeouts (see `callcache.factory`).

    Args:
        redis: A ``redis.Redis`` client instance.
        prefix: Optional key prefix for namespacing.
        serializer: Value codec. Defaults to `JsonSerializer`.
        reconnect_interval_s: Fail-fast window after a connection failure.
    """

    backend_id = "redis"

    def __init__(
        self,
        redis: Any,
        *,
        prefix: str = "",
        serializer: CacheSerializer | None = None,
        reconnect_interval_s: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._redis = redis
        self._prefix = prefix.strip().rstrip(":")
        self._serializer = serializer or JsonSerializer()
        self._reconnect_interval_s = max(0.0, reconnect_interval_s)
        self._clock = clock
        self._lock = threading.Lock()
        self._connected = False
        self._failed_at: float | None = None

    def _full_key(self, key: str) -> str:
        if not self._prefix:
            return key
        return f"{self._prefix}:{key}"

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._connected

    def connect(self) -> bool:
        """Ping the server once; return whether the store is usable."""
        with self._lock:
            if self._connected:
                return True
            if (
                self._failed_at is not None
                and self._clock() - self._failed_at < self._reconnect_interval_s
            ):
                return False
        try:
            self._redis.ping()
        except _UNAVAILABLE as exc:
            self._mark_unavailable()
            logger.warning("Remote cache connect failed: %s", exc)
            return False
        with self._lock:
            self._connected = True
            self._failed_at = None
        return True

    def _mark_unavailable(self) -> None:
        with self._lock:
            self._connected = False
            self._failed_at = self._clock()

    def get(self, key: str) -> Any:
        """Return the decoded value for `key`, or `MISS`."""
        full_key = self._full_key(key)
        try:
            payload = self._redis.get(full_key)
        except _UNAVAILABLE as exc:
            self._mark_unavailable()
            raise BackendUnavailableError(
                f"Remote cache read failed for '{full_key}': {exc}"
            ) from exc
        if payload is None:
            return MISS
        try:
            value = self._serializer.loads(payload)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Discarding undecodable remote cache payload for '%s': %s",
                full_key,
                exc,
            )
            return MISS
        logger.info("Read cache entry '%s' from remote store", full_key)
        return value

    def put(self, key: str, value: Any, ttl: int) -> None:
        """
        Write `value` with `SETEX`.

        A zero TTL means "expires immediately", so nothing is sent.

        Raises:
            InvalidTTLError: `ttl` is negative.
            CacheSerializationError: `value` cannot be encoded.
            BackendUnavailableError: The server is unreachable.
        """
        if ttl < 0:
            raise InvalidTTLError(ttl)
        full_key = self._full_key(key)
        if ttl == 0:
            logger.debug("Skipping remote cache write for '%s' with ttl=0", full_key)
            return
        try:
            payload = self._serializer.dumps(value)
        except (TypeError, ValueError) as exc:
            raise CacheSerializationError(
                f"Cannot encode value for '{full_key}': {exc}"
            ) from exc
        try:
            self._redis.setex(full_key, int(ttl), payload)
        except _UNAVAILABLE as exc:
            self._mark_unavailable()
            raise BackendUnavailableError(
                f"Remote cache write failed for '{full_key}': {exc}"
            ) from exc
        logger.info("Wrote cache entry '%s' to remote store (ttl=%ss)", full_key, ttl)

    def delete(self, key: str) -> bool:
        full_key = self._full_key(key)
        try:
            removed = self._redis.delete(full_key)
        except _UNAVAILABLE as exc:
            self._mark_unavailable()
            raise BackendUnavailableError(
                f"Remote cache delete failed for '{full_key}': {exc}"
            ) from exc
        return bool(removed)
