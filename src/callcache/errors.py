"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for cache key building, store access and configuration.

Every error except `CacheConfigError` is handled inside the decision engine
and turned into a fail-open outcome; callers of a wrapped computation never
see them.
"""

from __future__ import annotations


class CallCacheError(RuntimeError):
    """Base class for caching-layer failures."""


class KeyBuildError(CallCacheError):
    """Raised when a cache key cannot be derived from call arguments."""


class ParameterNotFoundError(KeyBuildError):
    """Raised when a mapped parameter is absent from the call's arguments."""

    def __init__(self, parameter_name: str) -> None:
        super().__init__(f"Parameter '{parameter_name}' not found in call arguments")
        self.parameter_name = parameter_name


class IdentifierNotFoundError(KeyBuildError):
    """Raised when a request identifier cannot be read from an argument."""

    def __init__(self, parameter_name: str, identifier: str) -> None:
        super().__init__(
            f"Identifier '{identifier}' not found on parameter '{parameter_name}'"
        )
        self.parameter_name = parameter_name
        self.identifier = identifier


class ArgumentRenderError(KeyBuildError):
    """Raised when a mapped argument cannot be read or turned into key text."""

    def __init__(self, parameter_name: str, cause: BaseException) -> None:
        super().__init__(
            f"Parameter '{parameter_name}' could not be rendered as a key fragment: "
            f"{type(cause).__name__}: {cause}"
        )
        self.parameter_name = parameter_name


class InvalidTTLError(CallCacheError):
    """Raised when a store write is attempted with a negative TTL."""

    def __init__(self, ttl: int) -> None:
        super().__init__(f"TTL must be >= 0, got {ttl}")
        self.ttl = ttl


class BackendUnavailableError(CallCacheError):
    """Raised when a cache backend cannot be reached or timed out."""


class CacheSerializationError(CallCacheError):
    """Raised when a value cannot be encoded for a remote store."""


class CacheConfigError(CallCacheError):
    """Raised when declarative cache configuration fails validation."""
