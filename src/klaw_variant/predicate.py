"""Predicate and type-guard callables consumed by `filter` and `from_predicate`."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeIs

__all__ = ['Guard', 'Predicate', 'is_not_none', 'negate']

type Predicate[T] = Callable[[T], bool]
"""A boolean test over a value."""

type Guard[T, U] = Callable[[T], TypeIs[U]]
"""A boolean test that also narrows the value's static type on success."""


def negate[T](pred: Predicate[T]) -> Predicate[T]:
    """Return a predicate that holds exactly when `pred` does not."""

    def negated(value: T) -> bool:
        return not pred(value)

    return negated


def is_not_none[T](value: T | None) -> TypeIs[T]:
    return value is not None
