from __future__ import annotations

import logging

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from callcache import (
    CacheDecision,
    CacheEngine,
    CacheSpec,
    RecordingCacheMetrics,
    RedisCacheStore,
)


class _Clock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class _Counter:
    def __init__(self, value: object = "result") -> None:
        self.calls = 0
        self.value = value

    def __call__(self) -> object:
        self.calls += 1
        return self.value


class _FakeRedis:
    def __init__(self) -> None:
        self.rows: dict[str, bytes] = {}
        self.down = False
        self.fail_writes = False

    def ping(self) -> bool:
        if self.down:
            raise RedisConnectionError("Connection refused")
        return True

    def get(self, key: str):
        if self.down:
            raise RedisConnectionError("Connection refused")
        return self.rows.get(key)

    def setex(self, key: str, ttl: int, payload: bytes) -> bool:
        if self.down or self.fail_writes:
            raise RedisConnectionError("Connection reset by peer")
        self.rows[key] = payload
        return True

    def delete(self, key: str) -> int:
        return 1 if self.rows.pop(key, None) is not None else 0


def _product_spec(**overrides) -> CacheSpec:
    data = {
        "key": "ProductCache",
        "parameterMappings": [{"parameterName": "id"}],
        "ttl": 600,
        "cacheType": "IN_MEMORY",
        "evictionPolicy": "LRU",
        "capacity": 2,
    }
    data.update(overrides)
    return CacheSpec.model_validate(data)


def test_first_call_misses_and_repeat_hits_without_recompute():
    engine = CacheEngine(clock=_Clock())
    spec = _product_spec()
    compute = _Counter({"id": "42"})

    first = engine.resolve(spec, {"id": "42"}, compute)
    second = engine.resolve(spec, {"id": "42"}, compute)

    assert first.was_cache_hit is False
    assert first.state == "MISS"
    assert first.stored is True
    assert first.key == "ProductCache:42"
    assert second.was_cache_hit is True
    assert second.value == {"id": "42"}
    assert compute.calls == 1


def test_product_cache_scenario_evicts_least_recently_used():
    engine = CacheEngine(clock=_Clock())
    spec = _product_spec()

    engine.resolve(spec, {"id": "42"}, _Counter("p42"))
    assert engine.resolve(spec, {"id": "42"}, _Counter("other")).value == "p42"
    engine.resolve(spec, {"id": "7"}, _Counter("p7"))
    engine.resolve(spec, {"id": "9"}, _Counter("p9"))

    store = engine.namespace("ProductCache")
    assert store is not None
    assert len(store) == 2
    assert sorted(store.keys()) == ["ProductCache:7", "ProductCache:9"]


def test_repeat_after_ttl_expiry_recomputes():
    clock = _Clock()
    engine = CacheEngine(clock=clock)
    spec = _product_spec(ttl=600)
    compute = _Counter()

    engine.resolve(spec, {"id": "1"}, compute)
    clock.now = 600.5
    outcome = engine.resolve(spec, {"id": "1"}, compute)

    assert outcome.was_cache_hit is False
    assert compute.calls == 2


def test_nested_identifier_builds_fragment_from_field():
    engine = CacheEngine(clock=_Clock())
    spec = CacheSpec(
        key="UserCache",
        parameter_mappings=[
            {"parameterName": "user", "requestIdentifier": "username"}
        ],
    )
    user = {"username": "alice", "email": "a@x.com"}

    outcome = engine.resolve(spec, {"user": user}, _Counter())

    assert outcome.key == "UserCache:alice"


def test_missing_parameter_fails_open_and_leaves_store_untouched(caplog):
    metrics = RecordingCacheMetrics()
    engine = CacheEngine(clock=_Clock(), metrics=metrics)
    spec = _product_spec()
    engine.resolve(spec, {"id": "1"}, _Counter())
    compute = _Counter("fresh")

    with caplog.at_level(logging.WARNING, logger="callcache.engine"):
        outcome = engine.resolve(spec, {"sku": "1"}, compute)
        again = engine.resolve(spec, {"sku": "1"}, compute)

    assert outcome.value == "fresh"
    assert outcome.state == "FAIL_OPEN"
    assert outcome.fail_open_reason == "PARAMETER_NOT_FOUND"
    assert again.was_cache_hit is False
    assert compute.calls == 2
    assert engine.namespace("ProductCache").keys() == ["ProductCache:1"]
    assert "parameter 'id' not found" in caplog.text
    assert metrics.total("fail_open") == 2


def test_missing_identifier_fails_open_and_logs_identifier(caplog):
    engine = CacheEngine(clock=_Clock())
    spec = CacheSpec(
        key="UserCache",
        parameter_mappings=[{"parameterName": "user", "requestIdentifier": "phone"}],
    )
    with caplog.at_level(logging.WARNING, logger="callcache.engine"):
        outcome = engine.resolve(spec, {"user": {"username": "alice"}}, _Counter("v"))

    assert outcome.value == "v"
    assert outcome.fail_open_reason == "IDENTIFIER_NOT_FOUND"
    assert "identifier 'phone'" in caplog.text
    assert engine.namespace("UserCache") is None


def test_negative_ttl_returns_result_without_storing(caplog):
    engine = CacheEngine(clock=_Clock())
    spec = _product_spec(ttl=-1)
    compute = _Counter("v")

    with caplog.at_level(logging.WARNING, logger="callcache.engine"):
        first = engine.resolve(spec, {"id": "1"}, compute)
        second = engine.resolve(spec, {"id": "1"}, compute)

    assert first.value == "v"
    assert first.state == "FAIL_OPEN"
    assert first.fail_open_reason == "INVALID_TTL"
    assert first.stored is False
    assert second.was_cache_hit is False
    assert compute.calls == 2
    assert engine.namespace("ProductCache") is None
    assert "invalid TTL -1" in caplog.text


def test_negative_ttl_skips_lookup_of_entries_stored_by_other_specs():
    engine = CacheEngine(clock=_Clock())
    engine.resolve(_product_spec(), {"id": "1"}, _Counter("stored"))
    compute = _Counter("fresh")

    outcome = engine.resolve(_product_spec(ttl=-1), {"id": "1"}, compute)
    decision = engine.lookup(_product_spec(ttl=-1), {"id": "1"})

    assert outcome.value == "fresh"
    assert outcome.was_cache_hit is False
    assert outcome.fail_open_reason == "INVALID_TTL"
    assert compute.calls == 1
    assert decision.state == "FAIL_OPEN"
    assert decision.reason == "INVALID_TTL"
    assert decision.key == "ProductCache:1"
    assert engine.record(decision, "fresh") is False


class _Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("no text")


class _ExplodingArguments(dict):
    def __contains__(self, name: object) -> bool:
        raise KeyError("argument table unavailable")


def test_argument_that_cannot_render_fails_open(caplog):
    metrics = RecordingCacheMetrics()
    engine = CacheEngine(clock=_Clock(), metrics=metrics)
    compute = _Counter("v")

    with caplog.at_level(logging.WARNING, logger="callcache.engine"):
        outcome = engine.resolve(_product_spec(), {"id": _Unprintable()}, compute)

    assert outcome.value == "v"
    assert outcome.state == "FAIL_OPEN"
    assert outcome.fail_open_reason == "KEY_RENDER_FAILED"
    assert outcome.key is None
    assert compute.calls == 1
    assert metrics.total("fail_open") == 1
    assert "Parameter 'id' could not be rendered" in caplog.text
    assert "no text" in caplog.text


def test_arguments_mapping_that_raises_fails_open():
    engine = CacheEngine(clock=_Clock())
    outcome = engine.resolve(_product_spec(), _ExplodingArguments(id="1"), _Counter("v"))

    assert outcome.value == "v"
    assert outcome.fail_open_reason == "KEY_RENDER_FAILED"
    assert engine.invalidate(_product_spec(), _ExplodingArguments(id="1")) is False


class _BrokenMetrics:
    def __init__(self) -> None:
        self.calls = 0

    def incr(self, name, value=1, *, tags=None) -> None:
        self.calls += 1
        raise ValueError("Duplicated timeseries")


def test_failing_metrics_sink_never_changes_results():
    metrics = _BrokenMetrics()
    engine = CacheEngine(clock=_Clock(), metrics=metrics)
    spec = _product_spec()
    compute = _Counter("v")

    first = engine.resolve(spec, {"id": "1"}, compute)
    second = engine.resolve(spec, {"id": "1"}, compute)
    failed_open = engine.resolve(spec, {}, compute)

    assert first.state == "MISS"
    assert first.stored is True
    assert second.was_cache_hit is True
    assert failed_open.fail_open_reason == "PARAMETER_NOT_FOUND"
    assert compute.calls == 2
    assert metrics.calls == 4


def test_zero_ttl_is_never_served_from_cache():
    engine = CacheEngine(clock=_Clock())
    spec = _product_spec(ttl=0)
    compute = _Counter()

    engine.resolve(spec, {"id": "1"}, compute)
    outcome = engine.resolve(spec, {"id": "1"}, compute)

    assert outcome.was_cache_hit is False
    assert compute.calls == 2


def test_computation_errors_propagate_and_nothing_is_stored():
    engine = CacheEngine(clock=_Clock())
    spec = _product_spec()

    def boom() -> str:
        raise LookupError("db down")

    with pytest.raises(LookupError, match="db down"):
        engine.resolve(spec, {"id": "1"}, boom)
    assert len(engine.namespace("ProductCache")) == 0


def test_remote_backend_hit_and_miss():
    fake = _FakeRedis()
    engine = CacheEngine(remote=RedisCacheStore(fake, prefix="cc"))
    spec = _product_spec(cacheType="REMOTE")
    compute = _Counter({"id": "42"})

    first = engine.resolve(spec, {"id": "42"}, compute)
    second = engine.resolve(spec, {"id": "42"}, compute)

    assert first.stored is True
    assert "cc:ProductCache:42" in fake.rows
    assert second.was_cache_hit is True
    assert second.value == {"id": "42"}
    assert compute.calls == 1
    assert engine.namespace("ProductCache") is None


def test_remote_unreachable_fails_open():
    fake = _FakeRedis()
    fake.down = True
    engine = CacheEngine(remote=RedisCacheStore(fake))
    spec = _product_spec(cacheType="REMOTE")
    compute = _Counter("v")

    outcome = engine.resolve(spec, {"id": "1"}, compute)

    assert outcome.value == "v"
    assert outcome.fail_open_reason == "BACKEND_UNAVAILABLE"
    assert fake.rows == {}


def test_remote_write_failure_still_returns_value(caplog):
    fake = _FakeRedis()
    fake.fail_writes = True
    engine = CacheEngine(remote=RedisCacheStore(fake))
    spec = _product_spec(cacheType="REMOTE")

    with caplog.at_level(logging.WARNING, logger="callcache.engine"):
        outcome = engine.resolve(spec, {"id": "1"}, _Counter("v"))

    assert outcome.value == "v"
    assert outcome.state == "MISS"
    assert outcome.stored is False
    assert "Cache write for 'ProductCache:1' failed" in caplog.text


def test_remote_spec_without_remote_store_fails_open():
    engine = CacheEngine()
    outcome = engine.resolve(_product_spec(cacheType="REMOTE"), {"id": "1"}, _Counter("v"))
    assert outcome.value == "v"
    assert outcome.fail_open_reason == "BACKEND_UNAVAILABLE"


def test_two_phase_lookup_and_record():
    engine = CacheEngine(clock=_Clock())
    spec = _product_spec()

    decision = engine.lookup(spec, {"id": "5"})
    assert decision.state == "MISS"
    assert decision.is_hit is False
    assert engine.record(decision, "five") is True

    hit = engine.lookup(spec, {"id": "5"})
    assert hit.is_hit
    assert hit.value == "five"
    assert engine.record(hit, "ignored") is False


def test_invalidate_removes_entry():
    engine = CacheEngine(clock=_Clock())
    spec = _product_spec()
    compute = _Counter()
    engine.resolve(spec, {"id": "1"}, compute)

    assert engine.invalidate(spec, {"id": "1"}) is True
    assert engine.invalidate(spec, {"id": "1"}) is False
    assert engine.invalidate(spec, {"other": "1"}) is False
    engine.resolve(spec, {"id": "1"}, compute)
    assert compute.calls == 2


def test_namespace_settings_fixed_by_first_spec(caplog):
    engine = CacheEngine(clock=_Clock())
    engine.resolve(_product_spec(capacity=2), {"id": "1"}, _Counter())

    with caplog.at_level(logging.WARNING, logger="callcache.stores.namespaces"):
        engine.resolve(_product_spec(capacity=50), {"id": "2"}, _Counter())

    assert engine.namespace("ProductCache").capacity == 2
    assert "already exists" in caplog.text


def test_metrics_count_hits_misses_and_writes():
    metrics = RecordingCacheMetrics()
    engine = CacheEngine(clock=_Clock(), metrics=metrics)
    spec = _product_spec()

    engine.resolve(spec, {"id": "1"}, _Counter())
    engine.resolve(spec, {"id": "1"}, _Counter())

    assert metrics.total("misses") == 1
    assert metrics.total("hits") == 1
    assert metrics.total("writes") == 1


def test_miss_without_key_computes_and_stores_nothing(monkeypatch):
    engine = CacheEngine(clock=_Clock(), coalesce_wait_s=0.1)
    spec = _product_spec()
    monkeypatch.setattr(
        engine, "lookup", lambda spec, arguments: CacheDecision(spec=spec, state="MISS")
    )
    compute = _Counter("v")

    outcome = engine.resolve(spec, {"id": "1"}, compute)

    assert outcome.value == "v"
    assert outcome.key is None
    assert outcome.stored is False
    assert compute.calls == 1
    assert engine.namespace("ProductCache") is None
