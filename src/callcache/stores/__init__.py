"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: stores/__init__.py.
"""

from .base import MISS, CacheStore
from .inmemory import InMemoryCacheStore, InMemoryStoreStats
from .namespaces import NamespaceRegistry
from .redis import RedisCacheStore
from .serializers import CacheSerializer, JsonSerializer

__all__ = [
    "MISS",
    "CacheStore",
    "InMemoryCacheStore",
    "InMemoryStoreStats",
    "NamespaceRegistry",
    "RedisCacheStore",
    "CacheSerializer",
    "JsonSerializer",
]
