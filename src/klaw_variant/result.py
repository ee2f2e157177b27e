"""Result type: Ok[T] | Err[E] for computations that may fail with a typed error.

`Ok` and `Err` are immutable msgspec structs tagged `'Ok'` and `'Error'`. Errors are
ordinary values: no combinator raises them. Only `unwrap`, `unwrap_err` and
`expect` raise, and they raise defects.

Example:
    ```python
    from klaw_variant import result

    result.ok(5).filter(lambda n: n > 10)
    # Err(error=FailedPredicateError(5))

    @result.lift
    def parse(text: str) -> int:
        return int(text)

    parse('10').and_then(lambda n: result.ok(n * 2))
    # Ok(value=20)
    parse('ten').is_err()
    # True
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable
from typing import TYPE_CHECKING, Any, NoReturn, TypeIs, overload

import msgspec
import wrapt

from klaw_variant._internal.equality import EqualityFn, is_equal
from klaw_variant._internal.utils import (
    check_context,
    defect_boundary,
    describe,
    expectation,
    extend_context,
    is_falsy,
    tag_of,
)
from klaw_variant.config import get_config
from klaw_variant.errors import FailedPredicateError, NoValueError, Panic, UnhandledException, UnwrapError
from klaw_variant.evaluator import Step, create_runner, evaluate
from klaw_variant.predicate import Predicate
from klaw_variant.registry import default_registry

if TYPE_CHECKING:
    from klaw_variant.async_.option import AsyncOption
    from klaw_variant.async_.result import AsyncResult
    from klaw_variant.option import Option

__all__ = [
    'Err',
    'Ok',
    'Result',
    'create_use',
    'do',
    'error',
    'finish_body',
    'from_falsy',
    'from_nullable',
    'from_option',
    'from_predicate',
    'inspect_yield',
    'is_result',
    'lift',
    'ok',
    'partition',
    'predicate',
    'try_catch',
    'use',
    'values',
]


class Ok[T](msgspec.Struct, frozen=True, gc=False, tag='Ok'):
    """Represents a successful computation containing a value of type T.

    Attributes:
        value: The successful result value.
    """

    value: T

    def is_ok(self) -> TypeIs[Ok[T]]:
        """Return True; narrows the result to `Ok[T]`."""
        return True

    def is_err(self) -> TypeIs[Err[Any]]:
        return False

    # --- Transformation ---

    def map[U](self, f: Callable[[T], U]) -> Result[U, Any]:
        """Transform the value using a function.

        Returning a Result from `f` is a defect (use `and_then`) unless `strict_map`
        is disabled, in which case it is flattened.

        Raises:
            Panic: If `f` raises, or returns a Result while `strict_map` is on.
        """
        with defect_boundary('An error occurred while mapping a "Result"', self.value):
            output = f(self.value)
        if isinstance(output, Ok | Err):
            return _flatten_mapped(output)
        return Ok(output)

    def map_err(self, f: Callable[[Any], Any]) -> Ok[T]:  # noqa: ARG002
        """Transform the error (no-op for Ok)."""
        return self

    def map_both[U, F](self, *, ok: Callable[[T], U], error: Callable[[Any], F]) -> Result[U, F]:  # noqa: ARG002
        """Transform the value with `ok` or the error with `error`."""
        return self.map(ok)

    def and_then[U, F](self, f: Callable[[T], Result[U, F]]) -> Result[U, F]:
        """Chain a Result-returning function on the value.

        Args:
            f: Function that takes T and returns Result[U, F].

        Returns:
            The Result returned by f.
        """
        with defect_boundary('An error occurred while chaining a "Result"', self.value):
            output = f(self.value)
        return _ensure_result(output, 'and_then')

    def filter[F](
        self,
        predicate: Predicate[T],
        on_fail: Callable[[T], F] | None = None,
    ) -> Result[T, F | FailedPredicateError[T]]:
        """Turn the value into an error if `predicate` does not hold.

        Args:
            predicate: Function that returns True to keep the value.
            on_fail: Builds the error from the rejected value. Defaults to
                `FailedPredicateError(value)`.

        Examples:
            >>> Ok(5).filter(lambda n: n > 10)
            Err(error=FailedPredicateError(5))
        """
        with defect_boundary('An error occurred while filtering a "Result"', self.value):
            if predicate(self.value):
                return self
            failure = on_fail(self.value) if on_fail is not None else FailedPredicateError(self.value)
        return Err(failure)

    def or_else(self, f: Callable[[Any], Result[T, Any]]) -> Ok[T]:  # noqa: ARG002
        """Return self unchanged since this is Ok."""
        return self

    def or_(self, other: Result[T, Any]) -> Ok[T]:  # noqa: ARG002
        return self

    def swap(self) -> Err[T]:
        """Turn the value into an error.

        Raises:
            Panic: If the value is None, which cannot be an error.
        """
        return Err(self.value)

    def zip[U, F](self, other: Result[U, F]) -> Result[tuple[T, U], F]:
        """Combine two results into a tuple if both are Ok, else the first Err."""
        if isinstance(other, Ok):
            return Ok((self.value, other.value))
        return other

    def zip_with[U, F, R](self, other: Result[U, F], f: Callable[[T, U], R]) -> Result[R, F]:
        return self.zip(other).map(lambda pair: f(*pair))

    def tap(self, f: Callable[[T], object]) -> Ok[T]:
        """Call `f` with the value for its side effect and return self."""
        with defect_boundary('An error occurred while tapping a "Result"', self.value):
            f(self.value)
        return self

    def tap_error(self, f: Callable[[Any], object]) -> Ok[T]:  # noqa: ARG002
        return self

    # --- Extraction ---

    def match[R](self, *, ok: Callable[[T], R], error: Callable[[Any], R]) -> R:  # noqa: ARG002
        """Run `ok(value)` for Ok or `error(error)` for Err and return its output."""
        with defect_boundary('An error occurred while matching a "Result"', self.value):
            return ok(self.value)

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        """Raise since Ok has no error.

        Raises:
            UnwrapError: Always.
        """
        raise UnwrapError('ResultError', describe(self.value))

    def unwrap_or(self, default: T) -> T:  # noqa: ARG002
        return self.value

    def unwrap_or_else(self, f: Callable[[Any], T]) -> T:  # noqa: ARG002
        return self.value

    def unwrap_or_none(self) -> T | None:
        return self.value

    def expect(self, error: object) -> T:  # noqa: ARG002
        return self.value

    def merge(self) -> T:
        """Return the value or the error, whichever is present."""
        return self.value

    def contains(self, predicate: Predicate[T]) -> bool:
        with defect_boundary('An error occurred while checking a "Result"', self.value):
            return bool(predicate(self.value))

    def to_list(self) -> list[T]:
        return [self.value]

    # --- Conversion ---

    def to_option(self) -> Option[T]:
        """Convert to Option: Some(value), or Nothing if the value is None."""
        if self.value is None:
            return default_registry.get('Nothing')
        return default_registry.get('Some')(self.value)

    def to_async_result(self) -> AsyncResult[T, Any]:
        return default_registry.get('AsyncResult').from_result(self)

    def to_async_option(self) -> AsyncOption[T]:
        return default_registry.get('AsyncOption').from_option(self.to_option())

    # --- Comparison ---

    def equals(
        self,
        other: object,
        eq: EqualityFn[T] | None = None,
        error_eq: EqualityFn[Any] | None = None,  # noqa: ARG002
    ) -> bool:
        """Compare with another Result using `eq` for values and `error_eq` for errors."""
        if not isinstance(other, Ok):
            return False
        compare = eq if eq is not None else is_equal
        with defect_boundary('An error occurred while comparing a "Result"', self.value):
            return bool(compare(self.value, other.value))

    # --- Do-notation ---

    def bind_to(self, key: str) -> Ok[dict[str, T]]:
        """Start a do-notation context binding the value to `key`."""
        return Ok({key: self.value})

    def bind[U, F](self, key: str, f: Callable[[T], Result[U, F]]) -> Result[dict[str, Any], F]:
        """Run `f` on the context and bind its Ok value to `key`.

        Raises:
            Panic: If the context is not a mapping, or already binds `key`.
        """
        context = self.value
        check_context(context, key, operation='bind')
        with defect_boundary('An error occurred while binding a "Result" value'):
            output = _ensure_result(f(context), 'bind')
        if isinstance(output, Ok):
            return Ok(extend_context(context, key, output.value, operation='bind'))
        return output

    def let[U](self, key: str, f: Callable[[T], U]) -> Ok[dict[str, Any]]:
        """Bind the raw output of `f` to `key`."""
        context = self.value
        check_context(context, key, operation='let')
        with defect_boundary('An error occurred while binding a "Result" value'):
            output = f(context)
        if isinstance(output, Ok | Err):
            raise Panic(f'let() callback for {key!r} returned a Result; use bind() to chain Result-returning steps')
        return Ok(extend_context(context, key, output, operation='let'))


class Err[E](msgspec.Struct, frozen=True, gc=False, tag='Error'):
    """Represents a failed computation containing an error of type E.

    Attributes:
        error: The error value. Never None.
    """

    error: E

    def __post_init__(self) -> None:
        if self.error is None:
            raise Panic('Cannot build an "Err" without an error: the error must not be None')

    def is_ok(self) -> TypeIs[Ok[Any]]:
        return False

    def is_err(self) -> TypeIs[Err[E]]:
        """Return True; narrows the result to `Err[E]`."""
        return True

    # --- Transformation ---

    def map(self, f: Callable[[Any], Any]) -> Err[E]:  # noqa: ARG002
        return self

    def map_err[F](self, f: Callable[[E], F]) -> Err[F]:
        """Transform the error using a function.

        Raises:
            Panic: If `f` raises or returns None.
        """
        with defect_boundary('An error occurred while mapping the error of a "Result"', self.error):
            output = f(self.error)
        return Err(output)

    def map_both[U, F](self, *, ok: Callable[[Any], U], error: Callable[[E], F]) -> Err[F]:  # noqa: ARG002
        return self.map_err(error)

    def and_then(self, f: Callable[[Any], Result[Any, Any]]) -> Err[E]:  # noqa: ARG002
        return self

    def filter(self, predicate: Predicate[Any], on_fail: Callable[[Any], Any] | None = None) -> Err[E]:  # noqa: ARG002
        return self

    def or_else[T, F](self, f: Callable[[E], Result[T, F]]) -> Result[T, F]:
        """Recover from the error with a Result-returning function.

        Raises:
            Panic: If `f` raises or does not return a Result.
        """
        with defect_boundary('An error occurred while recovering a "Result"', self.error):
            output = f(self.error)
        return _ensure_result(output, 'or_else')

    def or_[T, F](self, other: Result[T, F]) -> Result[T, F]:
        """Return `other` since this is Err."""
        return other

    def swap(self) -> Ok[E]:
        """Turn the error into a value."""
        return Ok(self.error)

    def zip(self, other: Result[Any, Any]) -> Err[E]:  # noqa: ARG002
        return self

    def zip_with(self, other: Result[Any, Any], f: Callable[[Any, Any], Any]) -> Err[E]:  # noqa: ARG002
        return self

    def tap(self, f: Callable[[Any], object]) -> Err[E]:  # noqa: ARG002
        return self

    def tap_error(self, f: Callable[[E], object]) -> Err[E]:
        """Call `f` with the error for its side effect and return self."""
        with defect_boundary('An error occurred while tapping the error of a "Result"', self.error):
            f(self.error)
        return self

    # --- Extraction ---

    def match[R](self, *, ok: Callable[[Any], R], error: Callable[[E], R]) -> R:  # noqa: ARG002
        with defect_boundary('An error occurred while matching a "Result"', self.error):
            return error(self.error)

    def unwrap(self) -> NoReturn:
        """Raise since Err has no value.

        The error is chained as the cause when it is an exception.

        Raises:
            UnwrapError: Always.
        """
        cause = self.error if isinstance(self.error, BaseException) else None
        raise UnwrapError('Result', describe(self.error)) from cause

    def unwrap_err(self) -> E:
        return self.error

    def unwrap_or[T](self, default: T) -> T:
        return default

    def unwrap_or_else[T](self, f: Callable[[E], T]) -> T:
        """Compute a fallback value from the error."""
        with defect_boundary('An error occurred while unwrapping a "Result"', self.error):
            return f(self.error)

    def unwrap_or_none(self) -> None:
        return None

    def expect(self, error: object) -> NoReturn:
        """Raise the exception described by `error`.

        Args:
            error: A message (raised as `Panic`), an exception instance or class, or a
                factory receiving the contained error and returning an exception.
        """
        exc = expectation(error, self.error)
        cause = self.error if isinstance(self.error, BaseException) and self.error is not exc else None
        raise exc from cause

    def merge(self) -> E:
        return self.error

    def contains(self, predicate: Predicate[Any]) -> bool:  # noqa: ARG002
        return False

    def to_list(self) -> list[Any]:
        return []

    # --- Conversion ---

    def to_option(self) -> Option[Any]:
        """Drop the error and return Nothing."""
        return default_registry.get('Nothing')

    def to_async_result(self) -> AsyncResult[Any, E]:
        return default_registry.get('AsyncResult').from_result(self)

    def to_async_option(self) -> AsyncOption[Any]:
        return default_registry.get('AsyncOption').from_option(self.to_option())

    # --- Comparison ---

    def equals(
        self,
        other: object,
        eq: EqualityFn[Any] | None = None,  # noqa: ARG002
        error_eq: EqualityFn[E] | None = None,
    ) -> bool:
        if not isinstance(other, Err):
            return False
        compare = error_eq if error_eq is not None else is_equal
        with defect_boundary('An error occurred while comparing a "Result"', self.error):
            return bool(compare(self.error, other.error))

    # --- Do-notation ---

    def bind_to(self, key: str) -> Err[E]:  # noqa: ARG002
        return self

    def bind(self, key: str, f: Callable[[Any], Result[Any, Any]]) -> Err[E]:  # noqa: ARG002
        return self

    def let(self, key: str, f: Callable[[Any], Any]) -> Err[E]:  # noqa: ARG002
        return self


type Result[T, E] = Ok[T] | Err[E]


def _ensure_result(output: object, operation: str) -> Result[Any, Any]:
    if isinstance(output, Ok | Err):
        return output
    raise Panic(f'{operation}() callback must return a Result, got {type(output).__name__}')


def _flatten_mapped(output: Result[Any, Any]) -> Result[Any, Any]:
    if get_config().strict_map:
        raise Panic('map() callback returned a Result; use and_then() to chain Result-returning functions')
    return output


# --- Construction ---


def ok[T](value: T) -> Ok[T]:
    return Ok(value)


def error[E](error: E) -> Err[E]:
    """Build an Err. A None error is a defect and raises `Panic`."""
    return Err(error)


def from_nullable[T, E](value: T | None, on_none: Callable[[], E] | None = None) -> Result[T, E | NoValueError]:
    """Ok(value) unless value is None, otherwise Err(on_none()) or Err(NoValueError()).

    Examples:
        >>> from_nullable(3)
        Ok(value=3)
        >>> from_nullable(None)
        Err(error=NoValueError('No value was provided'))
    """
    if value is not None:
        return Ok(value)
    if on_none is None:
        return Err(NoValueError())
    with defect_boundary('An error occurred while building a "Result" error'):
        failure = on_none()
    return Err(failure)


def from_falsy[T, E](value: T | None, on_falsy: Callable[[T | None], E] | None = None) -> Result[T, E | NoValueError]:
    """Ok(value) unless value is falsy (None, False, numeric zero, '' or NaN).

    `on_falsy` receives the rejected value. Empty containers count as values.
    """
    if not is_falsy(value):
        return Ok(value)  # type: ignore[arg-type]
    if on_falsy is None:
        return Err(NoValueError())
    with defect_boundary('An error occurred while building a "Result" error', value):
        failure = on_falsy(value)
    return Err(failure)


def from_predicate[T, E](
    value: T,
    predicate: Predicate[T],
    on_fail: Callable[[T], E] | None = None,
) -> Result[T, E | FailedPredicateError[T]]:
    """Ok(value) if `predicate(value)` holds, otherwise the `filter` error."""
    return Ok(value).filter(predicate, on_fail)


def predicate[T, E](
    predicate: Predicate[T],
    on_fail: Callable[[T], E] | None = None,
) -> Callable[[T], Result[T, E | FailedPredicateError[T]]]:
    """Turn a predicate into a function returning a Result.

    Example:
        ```python
        adult = result.predicate(lambda age: age >= 18, lambda age: f'{age} is too young')
        adult(20)  # Ok(value=20)
        adult(12)  # Err(error='12 is too young')
        ```
    """

    def check(value: T) -> Result[T, E | FailedPredicateError[T]]:
        return from_predicate(value, predicate, on_fail)

    return check


def from_option[T, E](option: Option[T], on_none: Callable[[], E] | None = None) -> Result[T, E | NoValueError]:
    """Ok(value) for a Some, Err(on_none()) or Err(NoValueError()) for Nothing."""
    tag = tag_of(option)
    if tag == 'Some':
        return Ok(option.value)  # type: ignore[union-attr]
    if tag == 'Nothing':
        return from_nullable(None, on_none)
    raise Panic(f'from_option() expects an Option, got {type(option).__name__}')


def try_catch[T, E](
    f: Callable[[], T | Result[T, E]],
    on_throw: Callable[[Exception], E] | None = None,
) -> Result[T, E | UnhandledException]:
    """Call `f`, capturing a raised exception as an error.

    A Result output is returned as is; any other output is wrapped in Ok.

    Args:
        f: The computation to run.
        on_throw: Maps the exception to an error. Defaults to `UnhandledException(exc)`.

    Example:
        ```python
        result.try_catch(lambda: json.loads(text), lambda e: ParseError(str(e)))
        ```
    """
    try:
        output = f()
    except Exception as e:
        if on_throw is None:
            return Err(UnhandledException.wrap(e))
        with defect_boundary('An error occurred while mapping a caught exception', e):
            failure = on_throw(e)
        return Err(failure)
    if isinstance(output, Ok | Err):
        return output
    return Ok(output)


@overload
def lift[**P, T](func: Callable[P, T]) -> Callable[P, Result[T, UnhandledException]]: ...


@overload
def lift[E](
    func: None = None,
    *,
    on_throw: Callable[[Exception], E] | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Result[Any, E]]]: ...


def lift(
    func: Callable[..., Any] | None = None,
    *,
    on_throw: Callable[[Exception], Any] | None = None,
) -> Any:
    """Decorator making a raising function return a Result.

    Can be used with or without arguments:
        @result.lift
        def risky(): ...

        @result.lift(on_throw=lambda e: ParseError(str(e)))
        def parse(text): ...

    Example:
        ```python
        @result.lift
        def divide(a: int, b: int) -> float:
            return a / b

        divide(10, 2)
        # Ok(value=5.0)
        divide(10, 0)
        # Err(error=UnhandledException(ZeroDivisionError('division by zero')))
        ```
    """

    @wrapt.decorator
    def wrapper(
        wrapped: Callable[..., Any],
        instance: Any,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Result[Any, Any]:
        return try_catch(lambda: wrapped(*args, **kwargs), on_throw)

    if func is not None:
        return wrapper(func)
    return wrapper


# --- Combination ---


def values[T](results: Iterable[Result[T, Any]]) -> list[T]:
    """Collect the values of the Ok results, in order."""
    return [candidate.value for candidate in results if isinstance(candidate, Ok)]


def partition[T, E](results: Iterable[Result[T, E]]) -> tuple[list[T], list[E]]:
    """Split results into the list of values and the list of errors, both in order.

    Example:
        ```python
        result.partition([Ok(1), Err('a'), Ok(2)])
        # ([1, 2], ['a'])
        ```

    Raises:
        Panic: If an item is not a Result.
    """
    oks: list[T] = []
    errs: list[E] = []
    for candidate in results:
        if isinstance(candidate, Ok):
            oks.append(candidate.value)
        elif isinstance(candidate, Err):
            errs.append(candidate.error)
        else:
            raise Panic(f'partition() expects Results, got {type(candidate).__name__}')
    return oks, errs


def is_result(value: object) -> TypeIs[Result[Any, Any]]:
    return isinstance(value, Ok | Err)


def do() -> Ok[dict[str, Any]]:
    """Start an empty do-notation context."""
    return Ok({})


# --- Generator evaluation ---


def inspect_yield(item: Any) -> Step:
    """Evaluator step for a Result body: Ok and Some proceed, Err aborts, Nothing aborts with NoValueError."""
    if isinstance(item, Ok):
        return Step.proceed(item.value)
    if isinstance(item, Err):
        return Step.abort(item)
    tag = tag_of(item)
    if tag == 'Some':
        return Step.proceed(item.value)
    if tag == 'Nothing':
        return Step.abort(Err(NoValueError()))
    return Step.proceed(item)


def finish_body(output: Any) -> Result[Any, Any]:
    """Turn the return value of a Result body into a Result."""
    if isinstance(output, Ok | Err):
        return output
    if tag_of(output) in {'Some', 'Nothing'}:
        return from_option(output)
    return Ok(output)


def use[T, E](body: Callable[[], Generator[Any, Any, T | Result[T, E]]]) -> Result[T, E]:
    """Evaluate a generator body, stopping at the first error.

    Each `yield` of an Ok (or Some) evaluates to its payload. Yielding an Err closes
    the body and returns that Err; yielding Nothing returns `Err(NoValueError())`.
    A raw return value is wrapped in Ok.

    Example:
        ```python
        def body():
            x = yield result.ok(1)
            y = yield parse(text)  # an Err here stops the body
            return x + y

        result.use(body)
        ```
    """
    return evaluate(body(), inspect_yield, finish_body)


create_use = create_runner(use)
"""Decorator turning a generator function into a function returning a Result."""


default_registry.register(Ok)
default_registry.register(Err)
