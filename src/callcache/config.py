"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Loading declarative cache specs from mappings and JSON files.

Accepted shapes::

    {"products": {"key": "ProductCache", "parameterMappings": [...], "ttl": 600}}
    [{"key": "ProductCache", ...}, {"key": "UserCache", ...}]

A list is keyed by each spec's `key`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import CacheConfigError
from .types import CacheSpec


def parse_cache_spec(data: Mapping[str, Any] | CacheSpec, *, name: str = "<spec>") -> CacheSpec:
    if isinstance(data, CacheSpec):
        return data
    try:
        return CacheSpec.model_validate(dict(data))
    except ValidationError as exc:
        raise CacheConfigError(f"Invalid cache spec '{name}': {exc}") from exc


def parse_cache_specs(data: Mapping[str, Any] | Sequence[Any]) -> dict[str, CacheSpec]:
    """Validate a collection of spec declarations into `CacheSpec` objects."""
    specs: dict[str, CacheSpec] = {}
    if isinstance(data, Mapping):
        for name, row in data.items():
            if not isinstance(row, (Mapping, CacheSpec)):
                raise CacheConfigError(f"Cache spec '{name}' must be an object")
            specs[str(name)] = parse_cache_spec(row, name=str(name))
        return specs

    if isinstance(data, (str, bytes)) or not isinstance(data, Sequence):
        raise CacheConfigError("Cache specs must be an object or a list of objects")
    for index, row in enumerate(data):
        if not isinstance(row, (Mapping, CacheSpec)):
            raise CacheConfigError(f"Cache spec #{index} must be an object")
        spec = parse_cache_spec(row, name=f"#{index}")
        if spec.key in specs:
            raise CacheConfigError(f"Duplicate cache spec key '{spec.key}'")
        specs[spec.key] = spec
    return specs


def load_cache_specs(path: str | Path) -> dict[str, CacheSpec]:
    """Read and validate cache specs from a JSON file."""
    file_path = Path(path)
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CacheConfigError(f"Cannot read cache specs from '{file_path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise CacheConfigError(f"Invalid JSON in '{file_path}': {exc}") from exc
    return parse_cache_specs(raw)
