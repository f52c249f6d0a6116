"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for building engines and remote stores from settings.
"""

from __future__ import annotations

from typing import Any

from .engine import CacheEngine
from .metrics import CacheMetrics
from .settings import CacheSettings
from .stores.redis import RedisCacheStore
from .stores.serializers import CacheSerializer


def create_remote_store(
    settings: CacheSettings,
    *,
    redis_client: Any | None = None,
    serializer: CacheSerializer | None = None,
) -> RedisCacheStore:
    """
    Build a `RedisCacheStore` from settings.

    Uses the provided `redis_client` when supplied. Otherwise builds a
    ``redis.Redis`` client from the resolved URL with socket timeouts, so no
    command can block a wrapped call for longer than the configured bounds.
    Building the client does not open a connection.
    """
    client = redis_client
    if client is None:
        import redis

        client = redis.Redis.from_url(
            settings.resolved_redis_url(),
            socket_timeout=settings.socket_timeout_s,
            socket_connect_timeout=settings.connect_timeout_s,
        )
    return RedisCacheStore(
        client,
        prefix=settings.redis_prefix,
        serializer=serializer,
        reconnect_interval_s=settings.reconnect_interval_s,
    )


def create_cache_engine(
    settings: CacheSettings | None = None,
    *,
    redis_client: Any | None = None,
    metrics: CacheMetrics | None = None,
    serializer: CacheSerializer | None = None,
) -> CacheEngine:
    """Build a `CacheEngine`, attaching a remote store when enabled."""
    settings = settings or CacheSettings()
    remote = None
    if settings.remote_enabled or redis_client is not None:
        remote = create_remote_store(
            settings, redis_client=redis_client, serializer=serializer
        )
    return CacheEngine(
        remote=remote,
        metrics=metrics,
        coalesce_wait_s=settings.coalesce_wait_s,
    )


def create_cache_engine_from_env(
    *,
    redis_client: Any | None = None,
    metrics: CacheMetrics | None = None,
) -> CacheEngine:
    """
    Create a cache engine from `CALLCACHE_*` environment variables.

    Remote backends:
    - `none` (default): `REMOTE` specs fail open.
    - `redis`: client from `CALLCACHE_REDIS_URL` or host/port/db/password.
    """
    return create_cache_engine(
        CacheSettings.from_env(), redis_client=redis_client, metrics=metrics
    )
