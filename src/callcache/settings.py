"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache engine settings and explicit environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_first(*names: str, default: str | None = None) -> str | None:
    """
    Return the first non-empty environment variable in `names`.

    Args:
        *names: Environment variable names to check in order.
        default: Value returned if no non-empty variable is found.
    """
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def _env_optional_float(name: str) -> float | None:
    raw = _env_first(name)
    if raw is None or raw.lower() in ("none", "off", "false"):
        return None
    return float(raw)


@dataclass(frozen=True, slots=True)
class CacheSettings:
    """
    Explicit settings for engine construction and the Redis remote store.

    Attributes:
        remote_enabled: Build a remote store at all.
        redis_url: Full Redis URL. Wins over host/port/db/password.
        redis_prefix: Prefix prepended to remote keys.
        socket_timeout_s: Per-command read timeout for the Redis client.
        connect_timeout_s: TCP connect timeout for the Redis client.
        reconnect_interval_s: Fail-fast window after a connection failure.
        coalesce_wait_s: Bounded wait for concurrent misses; `None` disables.
    """

    remote_enabled: bool = False
    redis_url: str | None = None
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None
    redis_prefix: str = "callcache"
    socket_timeout_s: float = 0.5
    connect_timeout_s: float = 0.5
    reconnect_interval_s: float = 5.0
    coalesce_wait_s: float | None = None

    @staticmethod
    def from_env() -> "CacheSettings":
        """Load settings from `CALLCACHE_*` environment variables."""
        backend = (_env_first("CALLCACHE_REMOTE_BACKEND", default="none") or "none").lower()
        if backend not in ("none", "off", "redis"):
            raise ValueError(f"Unknown CALLCACHE_REMOTE_BACKEND: {backend}")
        return CacheSettings(
            remote_enabled=backend == "redis",
            redis_url=_env_first("CALLCACHE_REDIS_URL", "REDIS_URL"),
            redis_host=_env_first("CALLCACHE_REDIS_HOST", default="localhost") or "localhost",
            redis_port=int(_env_first("CALLCACHE_REDIS_PORT", default="6379") or "6379"),
            redis_db=int(_env_first("CALLCACHE_REDIS_DB", default="0") or "0"),
            redis_password=_env_first("CALLCACHE_REDIS_PASSWORD"),
            redis_prefix=_env_first("CALLCACHE_REDIS_PREFIX", default="callcache")
            or "callcache",
            socket_timeout_s=float(
                _env_first("CALLCACHE_SOCKET_TIMEOUT_S", default="0.5") or "0.5"
            ),
            connect_timeout_s=float(
                _env_first("CALLCACHE_CONNECT_TIMEOUT_S", default="0.5") or "0.5"
            ),
            reconnect_interval_s=float(
                _env_first("CALLCACHE_RECONNECT_INTERVAL_S", default="5") or "5"
            ),
            coalesce_wait_s=_env_optional_float("CALLCACHE_COALESCE_WAIT_S"),
        )

    def resolved_redis_url(self) -> str:
        if self.redis_url:
            return self.redis_url
        if self.redis_password:
            return (
                f"redis://:{self.redis_password}@{self.redis_host}:"
                f"{self.redis_port}/{self.redis_db}"
            )
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"
