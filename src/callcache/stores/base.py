"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: stores/base.py.
"""

from __future__ import annotations

from typing import Any, Final, Protocol


class _Miss:
    """Sentinel type returned by stores when a key has no live value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Final = _Miss()


class CacheStore(Protocol):
    """Protocol implemented by the in-process and remote cache backends."""

    backend_id: str

    def connect(self) -> bool: ...

    def get(self, key: str) -> Any: ...

    def put(self, key: str, value: Any, ttl: int) -> None: ...

    def delete(self, key: str) -> bool: ...
