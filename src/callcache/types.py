"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache spec, entry and outcome types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

CacheBackendName: TypeAlias = Literal["IN_MEMORY", "REMOTE"]
EvictionPolicyName: TypeAlias = Literal["LRU", "LFU", "FIFO"]
CacheState: TypeAlias = Literal["HIT", "MISS", "FAIL_OPEN"]
FailOpenReason: TypeAlias = Literal[
    "PARAMETER_NOT_FOUND",
    "IDENTIFIER_NOT_FOUND",
    "KEY_RENDER_FAILED",
    "INVALID_TTL",
    "BACKEND_UNAVAILABLE",
]

DEFAULT_TTL_S = 3600
DEFAULT_CAPACITY = 1500


class ParameterMapping(BaseModel):
    """
    Link from one call argument (optionally one of its fields) to a key fragment.

    Attributes:
        parameter_name: Name of the call argument to read.
        request_identifier: Field to extract when the argument is a structured
            value. Dotted names walk nested fields. Empty means "use the
            argument itself".
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    parameter_name: str = Field(alias="parameterName", min_length=1)
    request_identifier: str | None = Field(default=None, alias="requestIdentifier")

    @field_validator("request_identifier")
    @classmethod
    def _blank_identifier_is_absent(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class CacheSpec(BaseModel):
    """
    Declarative description of one logical cache namespace.

    `ttl` is not range-checked here: the engine fails open on a negative value
    before touching any store, so the wrapped computation still runs uncached.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    key: str = Field(min_length=1)
    parameter_mappings: tuple[ParameterMapping, ...] = Field(
        default=(), alias="parameterMappings"
    )
    ttl: int = Field(
        default=DEFAULT_TTL_S, validation_alias=AliasChoices("ttl", "ttlSeconds")
    )
    backend: CacheBackendName = Field(default="IN_MEMORY", alias="cacheType")
    eviction_policy: EvictionPolicyName = Field(default="LRU", alias="evictionPolicy")
    capacity: int = Field(default=DEFAULT_CAPACITY, ge=1)

    @field_validator("key")
    @classmethod
    def _strip_key(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("cache key prefix must be non-empty")
        return stripped

    @field_validator("backend", "eviction_policy", mode="before")
    @classmethod
    def _upper_names(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


@dataclass(slots=True)
class CacheEntry:
    """
    One stored value with the metadata eviction policies read.

    `insert_seq` and `access_seq` are store-wide counters used only to break
    ties between equal timestamps.
    """

    key: str
    value: Any
    created_at: float
    last_accessed_at: float
    access_count: int
    expires_at: float
    insert_seq: int = 0
    access_seq: int = 0

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True, slots=True)
class CacheDecision:
    """
    Result of the lookup phase for one invocation.

    Attributes:
        spec: Spec the decision was made for.
        state: `HIT`, `MISS` or `FAIL_OPEN`.
        key: Built cache key, `None` when key building failed.
        value: Stored value on `HIT`, otherwise `None`.
        reason: Why the engine failed open, when it did.
        detail: Human-readable error detail for diagnostics.
    """

    spec: CacheSpec
    state: CacheState
    key: str | None = None
    value: Any = None
    reason: FailOpenReason | None = None
    detail: str | None = None

    @property
    def is_hit(self) -> bool:
        return self.state == "HIT"


@dataclass(frozen=True, slots=True)
class CacheOutcome:
    """Value returned to the interception layer after one resolved call."""

    value: Any
    was_cache_hit: bool
    key: str | None = None
    state: CacheState = "MISS"
    stored: bool = False
    fail_open_reason: FailOpenReason | None = None
