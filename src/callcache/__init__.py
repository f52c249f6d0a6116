"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Method-result caching with declarative keys, bounded in-process stores and a
fail-open Redis backend.

Quick start::

    from callcache import CacheEngine, CacheSpec

    engine = CacheEngine()
    spec = CacheSpec(
        key="ProductCache",
        parameter_mappings=[{"parameterName": "id"}],
        ttl=600,
        capacity=2,
    )

    outcome = engine.resolve(spec, {"id": "42"}, lambda: load_product("42"))
    outcome.value, outcome.was_cache_hit
"""

from .config import load_cache_specs, parse_cache_spec, parse_cache_specs
from .decorators import cached
from .engine import CacheEngine
from .errors import (
    ArgumentRenderError,
    BackendUnavailableError,
    CacheConfigError,
    CacheSerializationError,
    CallCacheError,
    IdentifierNotFoundError,
    InvalidTTLError,
    KeyBuildError,
    ParameterNotFoundError,
)
from .eviction import EvictionPolicy
from .factory import create_cache_engine, create_cache_engine_from_env, create_remote_store
from .keys import KEY_SEPARATOR, build_key
from .metrics import (
    CacheMetrics,
    NoOpCacheMetrics,
    PrometheusCacheMetrics,
    RecordingCacheMetrics,
)
from .settings import CacheSettings
from .stores import (
    MISS,
    CacheSerializer,
    CacheStore,
    InMemoryCacheStore,
    JsonSerializer,
    NamespaceRegistry,
    RedisCacheStore,
)
from .types import (
    CacheBackendName,
    CacheDecision,
    CacheEntry,
    CacheOutcome,
    CacheSpec,
    CacheState,
    EvictionPolicyName,
    FailOpenReason,
    ParameterMapping,
)

__all__ = [
    "CacheEngine",
    "CacheSpec",
    "ParameterMapping",
    "CacheEntry",
    "CacheDecision",
    "CacheOutcome",
    "CacheBackendName",
    "EvictionPolicyName",
    "CacheState",
    "FailOpenReason",
    "build_key",
    "KEY_SEPARATOR",
    "EvictionPolicy",
    "MISS",
    "CacheStore",
    "InMemoryCacheStore",
    "NamespaceRegistry",
    "RedisCacheStore",
    "CacheSerializer",
    "JsonSerializer",
    "cached",
    "parse_cache_spec",
    "parse_cache_specs",
    "load_cache_specs",
    "CacheSettings",
    "create_cache_engine",
    "create_cache_engine_from_env",
    "create_remote_store",
    "CacheMetrics",
    "NoOpCacheMetrics",
    "RecordingCacheMetrics",
    "PrometheusCacheMetrics",
    "CallCacheError",
    "KeyBuildError",
    "ParameterNotFoundError",
    "IdentifierNotFoundError",
    "ArgumentRenderError",
    "InvalidTTLError",
    "BackendUnavailableError",
    "CacheSerializationError",
    "CacheConfigError",
]
