"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Metrics sinks for cache engine instrumentation.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Mapping
from typing import Any, Protocol


class CacheMetrics(Protocol):
    """Minimal metrics interface for cache engine instrumentation."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment a counter metric."""


class NoOpCacheMetrics:
    """Default metrics sink when no metrics backend is provided."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = name
        _ = value
        _ = tags


class RecordingCacheMetrics:
    """In-memory counter sink, handy in tests and local debugging."""

    def __init__(self) -> None:
        self.counters: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        key = (name, tuple(sorted((tags or {}).items())))
        self.counters[key] = self.counters.get(key, 0) + value

    def total(self, name: str) -> int:
        return sum(count for (metric, _), count in self.counters.items() if metric == name)


# Registry -> {(metric name, label names): Counter}. Shared by every adapter in
# the process because prometheus_client refuses a second collector with the
# same name in one registry.
_COUNTERS: weakref.WeakKeyDictionary[Any, dict[tuple[str, tuple[str, ...]], Any]] = (
    weakref.WeakKeyDictionary()
)
_COUNTERS_LOCK = threading.Lock()


class PrometheusCacheMetrics:
    """
    Export cache engine events as Prometheus counters.

    Each event name becomes `<namespace>_<name>_total`, labelled by the tags
    the engine sends. Counters are created on first use and reused by every
    adapter that reports into the same registry, so several engines can share
    the default registry. Requires the `prometheus` extra.

    Args:
        namespace: Metric name prefix.
        registry: Target `CollectorRegistry`. The process default when omitted.
    """

    def __init__(self, *, namespace: str = "callcache", registry: Any | None = None) -> None:
        try:
            from prometheus_client import REGISTRY, Counter
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusCacheMetrics requires `prometheus_client` to be installed."
            ) from exc

        self._counter_type = Counter
        self.namespace = namespace
        self.registry = registry if registry is not None else REGISTRY

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        labels = {label: str(tag) for label, tag in sorted((tags or {}).items())}
        counter = self._counter(f"{self.namespace}_{name}", tuple(labels))
        if labels:
            counter.labels(**labels).inc(value)
        else:
            counter.inc(value)

    def _counter(self, metric: str, label_names: tuple[str, ...]) -> Any:
        with _COUNTERS_LOCK:
            by_name = _COUNTERS.setdefault(self.registry, {})
            counter = by_name.get((metric, label_names))
            if counter is None:
                counter = self._counter_type(
                    metric,
                    f"Cache engine events: {metric}",
                    labelnames=label_names,
                    registry=self.registry,
                )
                by_name[(metric, label_names)] = counter
            return counter
