"""barreplay.strategies.registry

Named built-in strategies.

Registry responsibilities:
- @register("name") decorator
- lookup/list helpers
- module auto-discovery (import barreplay.strategies.* to trigger decorators)
- building an instance from a loose parameter mapping
"""

from __future__ import annotations

import importlib
import pkgutil
from collections.abc import Callable, Mapping
from dataclasses import MISSING, fields
from typing import Any

from barreplay.core.exceptions import ConfigError, UnknownStrategyError
from barreplay.strategies.base import Strategy

_REGISTRY: dict[str, type[Strategy]] = {}
_DISCOVERED = False


def register(name: str, *, description: str = "") -> Callable[[type[Any]], type[Any]]:
    def _decorator(cls: type[Any]) -> type[Any]:
        if name in _REGISTRY and _REGISTRY[name] is not cls:
            raise ValueError(f"strategy already registered: {name}")

        cls.name = name
        cls.description = description
        _REGISTRY[name] = cls
        return cls

    return _decorator


def discover() -> None:
    global _DISCOVERED
    if _DISCOVERED:
        return

    pkg_name = "barreplay.strategies"
    pkg = importlib.import_module(pkg_name)

    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{pkg_name}."):
        if m.name.endswith(".base") or m.name.endswith(".registry"):
            continue
        importlib.import_module(m.name)

    _DISCOVERED = True


def get_strategy(name: str) -> type[Strategy]:
    if name not in _REGISTRY:
        discover()
    if name not in _REGISTRY:
        raise UnknownStrategyError(f"unknown strategy: {name}")
    return _REGISTRY[name]


def list_strategies() -> list[str]:
    discover()
    return sorted(_REGISTRY)


def describe_strategy(name: str) -> dict[str, Any]:
    cls = get_strategy(name)
    return {
        "name": name,
        "description": cls.description,
        "params": {f.name: f.default for f in fields(cls) if f.default is not MISSING},
    }


def _coerce(name: str, default: Any, value: Any) -> Any:
    try:
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise TypeError("expected true/false")
            return value
        if isinstance(default, int):
            if isinstance(value, bool) or float(value) != int(float(value)):
                raise TypeError("expected an integer")
            return int(float(value))
        if isinstance(default, float):
            if isinstance(value, bool):
                raise TypeError("expected a number")
            return float(value)
        if isinstance(default, str):
            return str(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise ConfigError(f"bad value for strategy parameter {name}: {value!r} ({e})") from e
    return value


def build_strategy(name: str, params: Mapping[str, Any] | None = None) -> Strategy:
    """Instantiate ``name`` with the subset of ``params`` it declares.

    Keys the strategy does not declare are left alone: they still reach the
    decision function through the run's parameter bag.
    """

    cls = get_strategy(name)
    params = params or {}
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if f.name in params:
            kwargs[f.name] = _coerce(f.name, f.default, params[f.name])
    try:
        return cls(**kwargs)
    except ValueError as e:
        raise ConfigError(f"invalid parameters for strategy {name}: {e}") from e
