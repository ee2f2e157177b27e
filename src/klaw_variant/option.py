"""Option type: Some[T] | Nothing for values that may be absent.

`Some` and `Nothing` are immutable msgspec structs tagged `'Some'` and `'Nothing'`.
Every combinator returns a new value; absence passes through untouched.

Example:
    ```python
    from klaw_variant import option

    option.from_nullable(None).unwrap_or_else(lambda: 'x')
    # 'x'

    option.some('a').zip(option.some('b'))
    # Some(value=('a', 'b'))

    @option.create_use
    def full_name(user):
        first = yield option.from_nullable(user.get('first'))
        last = yield option.from_nullable(user.get('last'))
        return f'{first} {last}'
    ```

An `Option` payload produced by a constructor or by `map` is never None: a None
output becomes `Nothing`. `Some(None)` can still be built directly.
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable
from typing import TYPE_CHECKING, Any, NoReturn, TypeIs

import msgspec
import wrapt

from klaw_variant._internal.equality import EqualityFn, is_equal
from klaw_variant._internal.utils import (
    check_context,
    defect_boundary,
    expectation,
    extend_context,
    is_falsy,
    tag_of,
)
from klaw_variant.config import get_config
from klaw_variant.errors import NoValueError, Panic, UnwrapError
from klaw_variant.evaluator import Step, create_runner, evaluate
from klaw_variant.predicate import Predicate
from klaw_variant.registry import default_registry

if TYPE_CHECKING:
    from klaw_variant.async_.option import AsyncOption
    from klaw_variant.async_.result import AsyncResult
    from klaw_variant.result import Result

__all__ = [
    'Nothing',
    'NothingType',
    'Option',
    'Some',
    'create_use',
    'do',
    'finish_body',
    'first_some_of',
    'from_falsy',
    'from_nullable',
    'from_predicate',
    'from_result',
    'inspect_yield',
    'is_option',
    'lift',
    'nothing',
    'predicate',
    'some',
    'try_catch',
    'use',
    'values',
]


class Some[T](msgspec.Struct, frozen=True, gc=False, tag='Some'):
    """Some variant of Option containing a value of type T.

    Examples:
        >>> Some(42).map(lambda x: x * 2)
        Some(value=84)
        >>> Some(42).filter(lambda x: x > 100)
        Nothing
    """

    value: T

    def is_some(self) -> TypeIs[Some[T]]:
        """Return True; narrows the option to `Some[T]`."""
        return True

    def is_none(self) -> TypeIs[NothingType]:
        return False

    # --- Transformation ---

    def map[U](self, f: Callable[[T], U | None]) -> Option[U]:
        """Apply `f` to the contained value.

        A None output becomes `Nothing`. Returning an Option from `f` is a defect
        (use `and_then`) unless `strict_map` is disabled, in which case it is flattened.

        Raises:
            Panic: If `f` raises, or returns an Option while `strict_map` is on.
        """
        with defect_boundary('An error occurred while mapping an "Option"', self.value):
            output = f(self.value)
        if isinstance(output, Some | NothingType):
            return _flatten_mapped(output)
        return from_nullable(output)

    def and_then[U](self, f: Callable[[T], Option[U]]) -> Option[U]:
        """Apply an Option-returning function to the contained value and flatten.

        Args:
            f: Function that takes T and returns Option[U].

        Returns:
            The Option returned by f.
        """
        with defect_boundary('An error occurred while chaining an "Option"', self.value):
            output = f(self.value)
        return _ensure_option(output, 'and_then')

    def filter(self, predicate: Predicate[T]) -> Option[T]:
        """Keep the value only if `predicate` holds for it."""
        with defect_boundary('An error occurred while filtering an "Option"', self.value):
            keep = predicate(self.value)
        return self if keep else Nothing

    def or_else(self, f: Callable[[], Option[T]]) -> Option[T]:  # noqa: ARG002
        """Return self unchanged since this is Some."""
        return self

    def or_(self, other: Option[T]) -> Option[T]:  # noqa: ARG002
        return self

    def zip[U](self, other: Option[U]) -> Option[tuple[T, U]]:
        """Combine two options into a tuple if both are Some.

        Examples:
            >>> Some('a').zip(Some('b'))
            Some(value=('a', 'b'))
            >>> Some('a').zip(Nothing)
            Nothing
        """
        if isinstance(other, Some):
            return Some((self.value, other.value))
        return Nothing

    def zip_with[U, R](self, other: Option[U], f: Callable[[T, U], R | None]) -> Option[R]:
        """Combine two options with `f` if both are Some. Follows `map` rules for the output."""
        return self.zip(other).map(lambda pair: f(*pair))

    def tap(self, f: Callable[[T], object]) -> Option[T]:
        """Call `f` with the contained value for its side effect and return self."""
        with defect_boundary('An error occurred while tapping an "Option"', self.value):
            f(self.value)
        return self

    # --- Extraction ---

    def match[R](self, *, some: Callable[[T], R], none: Callable[[], R]) -> R:  # noqa: ARG002
        """Run `some(value)` for Some or `none()` for Nothing and return its output.

        Example:
            ```python
            Some(3).match(some=lambda n: n * 2, none=lambda: 0)
            # 6
            ```
        """
        with defect_boundary('An error occurred while matching an "Option"', self.value):
            return some(self.value)

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:  # noqa: ARG002
        """Return the contained value, ignoring the default."""
        return self.value

    def unwrap_or_else(self, f: Callable[[], T]) -> T:  # noqa: ARG002
        """Return the contained value, ignoring the fallback function."""
        return self.value

    def unwrap_or_none(self) -> T | None:
        return self.value

    def expect(self, error: object) -> T:  # noqa: ARG002
        """Return the contained value, ignoring the error."""
        return self.value

    def contains(self, predicate: Predicate[T]) -> bool:
        """Return True if the contained value satisfies `predicate`."""
        with defect_boundary('An error occurred while checking an "Option"', self.value):
            return bool(predicate(self.value))

    def to_list(self) -> list[T]:
        return [self.value]

    # --- Conversion ---

    def to_result[E](self, on_none: Callable[[], E] | None = None) -> Result[T, E]:  # noqa: ARG002
        """Convert to Result, returning Ok(value)."""
        return default_registry.get('Ok')(self.value)

    def to_async_option(self) -> AsyncOption[T]:
        """Wrap this option in an already-resolved AsyncOption."""
        return default_registry.get('AsyncOption').from_option(self)

    def to_async_result[E](self, on_none: Callable[[], E] | None = None) -> AsyncResult[T, E]:
        return default_registry.get('AsyncResult').from_result(self.to_result(on_none))

    # --- Comparison ---

    def equals(self, other: object, eq: EqualityFn[T] | None = None) -> bool:
        """Compare the contained values with `eq` (structural `==` by default).

        A Some is never equal to Nothing.
        """
        if not isinstance(other, Some):
            return False
        compare = eq if eq is not None else is_equal
        with defect_boundary('An error occurred while comparing an "Option"', self.value):
            return bool(compare(self.value, other.value))

    # --- Do-notation ---

    def bind_to(self, key: str) -> Option[dict[str, T]]:
        """Start a do-notation context binding the contained value to `key`.

        Example:
            ```python
            (
                Some(1)
                .bind_to('a')
                .bind('b', lambda ctx: Some(ctx['a'] + 1))
                .let('c', lambda ctx: ctx['a'] + ctx['b'])
            )
            # Some(value={'a': 1, 'b': 2, 'c': 3})
            ```
        """
        return Some({key: self.value})

    def bind[U](self, key: str, f: Callable[[T], Option[U]]) -> Option[dict[str, Any]]:
        """Run `f` on the context and bind its Some value to `key`.

        Raises:
            Panic: If the context is not a mapping, or already binds `key`.
        """
        context = self.value
        check_context(context, key, operation='bind')
        with defect_boundary('An error occurred while binding an "Option" value'):
            output = _ensure_option(f(context), 'bind')
        if isinstance(output, Some):
            return Some(extend_context(context, key, output.value, operation='bind'))
        return Nothing

    def let[U](self, key: str, f: Callable[[T], U | None]) -> Option[dict[str, Any]]:
        """Bind the raw output of `f` to `key`. A None output becomes Nothing."""
        context = self.value
        check_context(context, key, operation='let')
        with defect_boundary('An error occurred while binding an "Option" value'):
            output = f(context)
        if output is None:
            return Nothing
        if isinstance(output, Some | NothingType):
            raise Panic(f'let() callback for {key!r} returned an Option; use bind() to chain Option-returning steps')
        return Some(extend_context(context, key, output, operation='let'))


class NothingType(msgspec.Struct, frozen=True, gc=False, tag='Nothing'):
    """Nothing variant of Option representing absence of a value.

    This is a singleton - use the `Nothing` constant instead of
    instantiating directly.

    Examples:
        >>> Nothing.is_none()
        True
        >>> Nothing.unwrap_or(0)
        0
    """

    def __repr__(self) -> str:
        return 'Nothing'

    def is_some(self) -> TypeIs[Some[Any]]:
        return False

    def is_none(self) -> TypeIs[NothingType]:
        """Return True; narrows the option to `NothingType`."""
        return True

    # --- Transformation ---

    def map(self, f: Callable[[Any], Any]) -> NothingType:  # noqa: ARG002
        return self

    def and_then(self, f: Callable[[Any], Option[Any]]) -> NothingType:  # noqa: ARG002
        return self

    def filter(self, predicate: Predicate[Any]) -> NothingType:  # noqa: ARG002
        return self

    def or_else[T](self, f: Callable[[], Option[T]]) -> Option[T]:
        """Compute a fallback option since this is Nothing.

        Raises:
            Panic: If `f` raises or does not return an Option.
        """
        with defect_boundary('An error occurred while recovering an "Option"'):
            output = f()
        return _ensure_option(output, 'or_else')

    def or_[T](self, other: Option[T]) -> Option[T]:
        """Return `other` since this is Nothing."""
        return other

    def zip(self, other: Option[Any]) -> NothingType:  # noqa: ARG002
        return self

    def zip_with(self, other: Option[Any], f: Callable[[Any, Any], Any]) -> NothingType:  # noqa: ARG002
        return self

    def tap(self, f: Callable[[Any], object]) -> NothingType:  # noqa: ARG002
        return self

    # --- Extraction ---

    def match[R](self, *, some: Callable[[Any], R], none: Callable[[], R]) -> R:  # noqa: ARG002
        with defect_boundary('An error occurred while matching an "Option"'):
            return none()

    def unwrap(self) -> NoReturn:
        """Raise since Nothing has no value to unwrap.

        Raises:
            UnwrapError: Always.
        """
        raise UnwrapError('Option')

    def unwrap_or[T](self, default: T) -> T:
        return default

    def unwrap_or_else[T](self, f: Callable[[], T]) -> T:
        """Compute and return a fallback value since this is Nothing."""
        with defect_boundary('An error occurred while unwrapping an "Option"'):
            return f()

    def unwrap_or_none(self) -> None:
        return None

    def expect(self, error: object) -> NoReturn:
        """Raise the exception described by `error`.

        Args:
            error: A message (raised as `Panic`), an exception instance or class, or a
                zero-argument factory returning an exception.
        """
        raise expectation(error)

    def contains(self, predicate: Predicate[Any]) -> bool:  # noqa: ARG002
        return False

    def to_list(self) -> list[Any]:
        return []

    # --- Conversion ---

    def to_result[E](self, on_none: Callable[[], E] | None = None) -> Result[Any, E]:
        """Convert to Result, returning Err(on_none()) or Err(NoValueError())."""
        if on_none is None:
            return default_registry.get('Err')(NoValueError())
        with defect_boundary('An error occurred while converting an "Option" to a "Result"'):
            error = on_none()
        return default_registry.get('Err')(error)

    def to_async_option(self) -> AsyncOption[Any]:
        return default_registry.get('AsyncOption').from_option(self)

    def to_async_result[E](self, on_none: Callable[[], E] | None = None) -> AsyncResult[Any, E]:
        return default_registry.get('AsyncResult').from_result(self.to_result(on_none))

    # --- Comparison ---

    def equals(self, other: object, eq: EqualityFn[Any] | None = None) -> bool:  # noqa: ARG002
        """Return True only if `other` is Nothing as well."""
        return isinstance(other, NothingType)

    # --- Do-notation ---

    def bind_to(self, key: str) -> NothingType:  # noqa: ARG002
        return self

    def bind(self, key: str, f: Callable[[Any], Option[Any]]) -> NothingType:  # noqa: ARG002
        return self

    def let(self, key: str, f: Callable[[Any], Any]) -> NothingType:  # noqa: ARG002
        return self


Nothing: NothingType = NothingType()
"""Singleton instance representing the absence of a value."""


type Option[T] = Some[T] | NothingType


def _ensure_option(output: object, operation: str) -> Option[Any]:
    if isinstance(output, Some | NothingType):
        return output
    raise Panic(f'{operation}() callback must return an Option, got {type(output).__name__}')


def _flatten_mapped(output: Option[Any]) -> Option[Any]:
    if get_config().strict_map:
        raise Panic('map() callback returned an Option; use and_then() to chain Option-returning functions')
    return output


# --- Construction ---


def some[T](value: T) -> Some[T]:
    return Some(value)


def nothing() -> NothingType:
    return Nothing


def from_nullable[T](value: T | None) -> Option[T]:
    """Some(value) unless value is None.

    Examples:
        >>> from_nullable(None)
        Nothing
        >>> from_nullable(0)
        Some(value=0)
    """
    return Nothing if value is None else Some(value)


def from_falsy[T](value: T | None) -> Option[T]:
    """Some(value) unless value is None, False, numeric zero, '' or NaN.

    Empty containers count as present values.
    """
    return Nothing if is_falsy(value) else Some(value)


def from_predicate[T](value: T, predicate: Predicate[T]) -> Option[T]:
    """Some(value) if `predicate(value)` holds, otherwise Nothing."""
    with defect_boundary('An error occurred while checking a predicate', value):
        keep = predicate(value)
    return Some(value) if keep else Nothing


def predicate[T](predicate: Predicate[T]) -> Callable[[T], Option[T]]:
    """Turn a predicate into a function returning an Option.

    Example:
        ```python
        positive = option.predicate(lambda n: n > 0)
        positive(3)   # Some(value=3)
        positive(-1)  # Nothing
        ```
    """

    def check(value: T) -> Option[T]:
        return from_predicate(value, predicate)

    return check


def from_result[T](result: Result[T, Any]) -> Option[T]:
    """Some(value) for an Ok (Nothing if the value is None), Nothing for an Err."""
    tag = tag_of(result)
    if tag == 'Ok':
        return from_nullable(result.value)  # type: ignore[union-attr]
    if tag == 'Error':
        return Nothing
    raise Panic(f'from_result() expects a Result, got {type(result).__name__}')


def try_catch[T](f: Callable[[], T | Option[T] | None]) -> Option[T]:
    """Call `f`, returning Nothing if it raises.

    A None output becomes Nothing and an Option output is returned as is.

    Example:
        ```python
        option.try_catch(lambda: int('10'))       # Some(value=10)
        option.try_catch(lambda: int('invalid'))  # Nothing
        ```
    """
    try:
        output = f()
    except Exception:
        return Nothing
    if isinstance(output, Some | NothingType):
        return output
    return from_nullable(output)


def lift[**P, T](func: Callable[P, T | None]) -> Callable[P, Option[T]]:
    """Decorator making a raising or None-returning function return an Option.

    Example:
        ```python
        @option.lift
        def parse(text: str) -> int:
            return int(text)

        parse('42')   # Some(value=42)
        parse('x')    # Nothing
        ```
    """

    @wrapt.decorator
    def wrapper(
        wrapped: Callable[P, T | None],
        instance: Any,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Option[T]:
        return try_catch(lambda: wrapped(*args, **kwargs))

    return wrapper(func)  # type: ignore[no-any-return]


# --- Combination ---


def first_some_of[T](options: Iterable[Option[T]]) -> Option[T]:
    """Return the first Some in `options`, or Nothing if there is none."""
    for candidate in options:
        if isinstance(candidate, Some):
            return candidate
    return Nothing


def values[T](options: Iterable[Option[T]]) -> list[T]:
    """Collect the payloads of the Some values, in order."""
    return [candidate.value for candidate in options if isinstance(candidate, Some)]


def is_option(value: object) -> TypeIs[Option[Any]]:
    return isinstance(value, Some | NothingType)


def do() -> Some[dict[str, Any]]:
    """Start an empty do-notation context.

    Example:
        ```python
        option.do().bind('x', lambda _: Some(1)).let('y', lambda ctx: ctx['x'] + 1)
        # Some(value={'x': 1, 'y': 2})
        ```
    """
    return Some({})


# --- Generator evaluation ---


def inspect_yield(item: Any) -> Step:
    """Evaluator step for an Option body: Some and Ok proceed, Nothing and Err abort."""
    if isinstance(item, Some):
        return Step.proceed(item.value)
    if isinstance(item, NothingType):
        return Step.abort(Nothing)
    tag = tag_of(item)
    if tag == 'Ok':
        return Step.proceed(item.value)
    if tag == 'Error':
        return Step.abort(Nothing)
    return Step.proceed(item)


def finish_body(output: Any) -> Option[Any]:
    """Turn the return value of an Option body into an Option."""
    if isinstance(output, Some | NothingType):
        return output
    if tag_of(output) in {'Ok', 'Error'}:
        return from_result(output)
    return from_nullable(output)


def use[T](body: Callable[[], Generator[Any, Any, T | Option[T] | None]]) -> Option[T]:
    """Evaluate a generator body, stopping at the first absent value.

    Each `yield` of a Some (or Ok) evaluates to its payload. Yielding Nothing (or an
    Err) closes the body and returns Nothing. A raw return value goes through
    `from_nullable`.

    Example:
        ```python
        def body():
            x = yield option.some(1)
            y = yield option.from_nullable(lookup('y'))
            return x + y

        option.use(body)
        ```
    """
    return evaluate(body(), inspect_yield, finish_body)


create_use = create_runner(use)
"""Decorator turning a generator function into a function returning an Option."""


default_registry.register(Some)
default_registry.register(Nothing, name='Nothing')
