"""Default equality used by `equals`."""

from __future__ import annotations

from collections.abc import Callable

__all__ = ['EqualityFn', 'is_equal']

type EqualityFn[T] = Callable[[T, T], bool]


def is_equal[T](a: T, b: T) -> bool:
    """Structural equality: `==`, which compares containers element by element."""
    return bool(a == b)
