"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Function decorator that routes calls through a `CacheEngine`.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from .engine import CacheEngine
from .types import CacheSpec

F = TypeVar("F", bound=Callable[..., Any])


def cached(engine: CacheEngine, spec: CacheSpec) -> Callable[[F], F]:
    """
    Cache results of the decorated function under `spec`.

    Arguments are bound to parameter names so mappings can refer to them
    whether the caller passed them positionally or by keyword. Keywords that
    land in a `**kwargs` parameter are addressable by their own names; a named
    parameter wins over a collected keyword of the same name. Calls that do
    not match the signature raise `TypeError` as they would undecorated.

    Example::

        spec = CacheSpec(key="ProductCache", parameter_mappings=[{"parameterName": "id"}])

        @cached(engine, spec)
        def load_product(id: str) -> dict: ...
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)
        var_keyword = next(
            (
                param.name
                for param in signature.parameters.values()
                if param.kind is inspect.Parameter.VAR_KEYWORD
            ),
            None,
        )

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            arguments = dict(bound.arguments)
            if var_keyword is not None:
                for name, value in arguments.pop(var_keyword, {}).items():
                    arguments.setdefault(name, value)
            outcome = engine.resolve(spec, arguments, lambda: func(*args, **kwargs))
            return outcome.value

        wrapper.cache_spec = spec  # type: ignore[attr-defined]
        wrapper.cache_engine = engine  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
