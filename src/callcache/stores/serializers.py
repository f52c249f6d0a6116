"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Value codecs for remote cache payloads.
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Protocol

from pydantic import BaseModel


class CacheSerializer(Protocol):
    """Encode values to bytes for a remote store and back."""

    def dumps(self, value: Any) -> bytes: ...

    def loads(self, payload: bytes | str) -> Any: ...


def _encode_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonSerializer:
    """
    Compact JSON codec.

    Pydantic models and dataclasses are stored as JSON objects and come back
    as plain dicts; callers that need typed values should pass a custom
    serializer.
    """

    def dumps(self, value: Any) -> bytes:
        return json.dumps(
            value,
            default=_encode_default,
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode("utf-8")

    def loads(self, payload: bytes | str) -> Any:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        return json.loads(payload)
