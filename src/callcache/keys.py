"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Deterministic cache key construction from parameter mappings.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .errors import (
    ArgumentRenderError,
    IdentifierNotFoundError,
    KeyBuildError,
    ParameterNotFoundError,
)
from .types import ParameterMapping

KEY_SEPARATOR = ":"

_MISSING = object()


def build_key(
    prefix: str,
    mappings: Iterable[ParameterMapping],
    arguments: Mapping[str, Any],
) -> str:
    """
    Build one cache key from a prefix and ordered parameter mappings.

    Fragments are appended in mapping order, so reordering mappings changes
    the key. Fragments are joined with `KEY_SEPARATOR` as-is: a fragment that
    itself contains `:` can produce the same key as a different split of the
    same text (`("a:b", "c")` and `("a", "b:c")` both give `P:a:b:c`). Map
    identifiers that cannot contain the separator when that matters.

    Args:
        prefix: Namespace prefix, usually `CacheSpec.key`.
        mappings: Ordered parameter mappings.
        arguments: Call arguments by parameter name.

    Raises:
        ParameterNotFoundError: A mapped parameter is absent from `arguments`.
        IdentifierNotFoundError: A request identifier cannot be read from the
            resolved argument.
        ArgumentRenderError: Reading the argument or rendering it as text
            raised.
    """
    parts = [prefix]
    for mapping in mappings:
        try:
            parts.append(key_fragment(_resolve_argument(mapping, arguments)))
        except KeyBuildError:
            raise
        except Exception as exc:
            raise ArgumentRenderError(mapping.parameter_name, exc) from exc
    return KEY_SEPARATOR.join(parts)


def _resolve_argument(mapping: ParameterMapping, arguments: Mapping[str, Any]) -> Any:
    if mapping.parameter_name not in arguments:
        raise ParameterNotFoundError(mapping.parameter_name)
    value = arguments[mapping.parameter_name]
    if mapping.request_identifier is not None:
        value = extract_identifier(
            value, mapping.parameter_name, mapping.request_identifier
        )
    return value


def extract_identifier(value: Any, parameter_name: str, identifier: str) -> Any:
    """Read a (possibly dotted) field from a mapping or object argument."""
    current = value
    for segment in identifier.split("."):
        current = _read_field(current, segment)
        if current is _MISSING:
            raise IdentifierNotFoundError(parameter_name, identifier)
    return current


def _read_field(value: Any, name: str) -> Any:
    if value is None or not name:
        return _MISSING
    if isinstance(value, Mapping):
        return value.get(name, _MISSING)
    try:
        return getattr(value, name)
    except Exception:
        # Properties that raise count as inaccessible fields.
        return _MISSING


def key_fragment(value: Any) -> str:
    """Textual representation used for one key fragment."""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
