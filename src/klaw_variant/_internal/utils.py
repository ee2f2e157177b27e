"""Helpers shared by the Option and Result implementations."""

from __future__ import annotations

import numbers
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from klaw_variant.errors import Panic, panic

__all__ = [
    'check_context',
    'defect_boundary',
    'describe',
    'expectation',
    'extend_context',
    'is_falsy',
    'tag_of',
]

_NO_SUBJECT = object()


def describe(value: object) -> str:
    """Render a payload for defect messages."""
    if isinstance(value, str | int | float | bool):
        return str(value)
    if isinstance(value, BaseException):
        return str(value)
    return repr(value)


@contextmanager
def defect_boundary(message: str, subject: object = _NO_SUBJECT) -> Iterator[None]:
    """Turn an exception raised by a user callback into a `Panic`.

    A `Panic` raised inside the block (for example an `UnwrapError` from a nested
    `unwrap`) propagates unchanged.
    """
    try:
        yield
    except Panic:
        raise
    except Exception as e:
        if subject is not _NO_SUBJECT:
            message = f'{message} containing “{describe(subject)}”'
        raise panic(message, e) from e


def is_falsy(value: object) -> bool:
    """Return True for None, False, numeric zero, the empty string and NaN.

    Empty containers are deliberately not part of the set.
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ''
    if isinstance(value, numbers.Number) and not isinstance(value, bool):
        return value == 0 or value != value
    return False


def tag_of(value: object) -> str | None:
    """Return the msgspec tag of a variant, or None for anything else."""
    config = getattr(type(value), '__struct_config__', None)
    tag = getattr(config, 'tag', None)
    return tag if isinstance(tag, str) else None


def check_context(context: Any, key: str, *, operation: str) -> None:
    """Raise `Panic` unless `context` is a mapping that does not bind `key` yet."""
    if not isinstance(context, Mapping):
        raise Panic(
            f'Cannot call {operation}() because do-notation has not been initialized: '
            f'expected a mapping context, got {type(context).__name__}'
        )
    if key in context:
        raise Panic(f'Cannot call {operation}(): key {key!r} is already bound in the do-notation context')


def extend_context(context: Any, key: str, value: Any, *, operation: str) -> dict[str, Any]:
    """Return a new do-notation context with `key` bound to `value`.

    The original context is never mutated: earlier steps may still hold it.
    """
    check_context(context, key, operation=operation)
    return {**context, key: value}


def expectation(error: Any, *args: Any) -> BaseException:
    """Build the exception raised by `expect` on an absent or failed variant.

    Args:
        error: A message, an exception instance, an exception class, or a factory
            returning an exception. Factories receive `args`.
        *args: Passed to a factory (the error payload for Result, nothing for Option).
    """
    if callable(error) and not isinstance(error, BaseException | type):
        error = error(*args)
    if isinstance(error, str):
        return Panic(error)
    if isinstance(error, BaseException):
        return error
    if isinstance(error, type) and issubclass(error, BaseException):
        return error()
    return Panic(f'expect() needs a message, an exception or an exception factory, got {error!r}')
