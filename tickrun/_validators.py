"""Argument validators shared by the public entry points."""

from __future__ import annotations

import inspect


def _type_name(value: object) -> str:
    return type(value).__name__


def ensure_cycle(value: object, *, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int, got {_type_name(value)}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


def ensure_computation(value: object, *, name: str) -> None:
    if inspect.iscoroutine(value) or inspect.isgenerator(value):
        return
    if inspect.iscoroutinefunction(value) or inspect.isgeneratorfunction(value):
        raise TypeError(
            f"{name} must be a coroutine or generator object, got function "
            f"{getattr(value, '__qualname__', value)!r}; did you forget to call it?"
        )
    raise TypeError(f"{name} must be a coroutine or generator, got {_type_name(value)}")


__all__ = [
    "ensure_computation",
    "ensure_cycle",
]
