"""AsyncResult type for async-aware Result operations.

AsyncResult holds a producer of an awaitable Result plus a queue of pending
`map`, `filter`, `map_err` and `map_both` calls, applied in one pass when it is
awaited. Operations that need the resolved tag (`and_then`, `or_else`, `swap`, ...)
chain a new producer instead.

Awaiting an AsyncResult never raises an `Exception`. A failing producer, callback or
queued operation resolves to `Err(UnhandledException(exc))`; `try_catch` and
`enhance` accept an `on_throw` mapper to build a domain error instead.

Example:
    ```python
    async def fetch_user(user_id: int) -> dict: ...

    result = await (
        AsyncResult.try_catch(lambda: fetch_user(1), on_throw=lambda e: FetchError(str(e)))
        .map(lambda user: user['name'])
        .and_then(validate_name)
    )
    ```
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncGenerator, Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any, ClassVar, TypeIs, overload

import wrapt

from klaw_variant import result as result_
from klaw_variant._internal.utils import check_context, defect_boundary, tag_of
from klaw_variant._logging import get_logger
from klaw_variant.async_._base import AsyncVariant, close_unawaited, gather, maybe_await, memoize, resolved, settle
from klaw_variant.errors import FailedPredicateError, NoValueError, UnhandledException
from klaw_variant.evaluator import create_runner, evaluate_async
from klaw_variant.option import NothingType, Option, Some
from klaw_variant.predicate import Predicate
from klaw_variant.registry import default_registry
from klaw_variant.result import Err, Ok, Result

if TYPE_CHECKING:
    from klaw_variant.async_.option import AsyncOption
    from klaw_variant.async_.queue import Family

__all__ = ['AsyncResult']

logger = get_logger(__name__)

type ResultLike[T, E] = Result[T, E] | AsyncResult[T, E] | Awaitable[Result[T, E]] | Awaitable[AsyncResult[T, E]]


class AsyncResult[T, E](AsyncVariant[Result[T, E]]):
    """Async-aware Result wrapper for composing async Result operations.

    Unlike the single-shot wrappers around a coroutine object, an AsyncResult built
    from a producer can be awaited any number of times: every await runs the
    producer again. `from_awaitable` wraps a coroutine and replays its outcome.

    Example:
        ```python
        async def get_data() -> Result[int, str]:
            return Ok(42)

        async def main():
            result = await AsyncResult.try_catch(get_data).map(lambda x: x * 2)
            assert result == Ok(84)
        ```
    """

    __slots__ = ()

    _family: ClassVar[Family] = 'Result'
    _variant_types: ClassVar[tuple[type, ...]] = (Ok, Err)

    @classmethod
    def _fold(cls, error: Exception) -> Result[T, E]:
        return Err(UnhandledException.wrap(error))

    # --- Construction ---

    @classmethod
    def ok(cls, value: T) -> AsyncResult[T, Any]:
        return cls(resolved(Ok(value)))

    @classmethod
    def error(cls, error: E) -> AsyncResult[Any, E]:
        """Create an AsyncResult resolving to Err(error).

        Raises:
            Panic: If `error` is None.
        """
        return cls(resolved(Err(error)))

    @classmethod
    def from_result(cls, result: Result[T, E]) -> AsyncResult[T, E]:
        """Wrap an already-resolved Result."""
        return cls(resolved(result))

    @classmethod
    def from_option[F](
        cls,
        option: Option[T],
        on_none: Callable[[], F] | None = None,
    ) -> AsyncResult[T, F | NoValueError]:
        """Wrap a resolved Option: Ok(value) for a Some, Err(on_none()) or Err(NoValueError()) for Nothing.

        Raises:
            Panic: If `option` is not an Option.
        """
        return cls.from_result(result_.from_option(option, on_none))

    @classmethod
    def from_async_option[F](
        cls,
        source: AsyncOption[T] | Awaitable[Option[T]],
        on_none: Callable[[], F] | None = None,
    ) -> AsyncResult[T, F | NoValueError]:
        """Convert an AsyncOption, or an awaitable of an Option, once it resolves.

        A coroutine source is awaited once and its outcome replayed. If it raises,
        the AsyncResult resolves to Err(UnhandledException(exc)).
        """
        if isinstance(source, AsyncVariant):
            resolve_source = lambda: source  # noqa: E731
        else:
            resolve_source = memoize(source, lambda output: settle(output, (Some, NothingType), 'Option'))

        async def produce() -> Result[T, Any]:
            return result_.from_option(await resolve_source(), on_none)

        return cls(produce)

    @classmethod
    def from_nullable[F](
        cls,
        value: T | None,
        on_none: Callable[[], F] | None = None,
    ) -> AsyncResult[T, F | NoValueError]:
        return cls.from_result(result_.from_nullable(value, on_none))

    @classmethod
    def from_falsy[F](
        cls,
        value: T | None,
        on_falsy: Callable[[T | None], F] | None = None,
    ) -> AsyncResult[T, F | NoValueError]:
        return cls.from_result(result_.from_falsy(value, on_falsy))

    @classmethod
    def from_predicate[F](
        cls,
        value: T,
        predicate: Predicate[T],
        on_fail: Callable[[T], F] | None = None,
    ) -> AsyncResult[T, F | FailedPredicateError[T]]:
        """Ok(value) if `predicate(value)` holds. The predicate runs when awaited."""

        async def produce() -> Result[T, Any]:
            return result_.from_predicate(value, predicate, on_fail)

        return cls(produce)

    @classmethod
    def predicate[F](
        cls,
        predicate: Predicate[T],
        on_fail: Callable[[T], F] | None = None,
    ) -> Callable[[T], AsyncResult[T, F | FailedPredicateError[T]]]:
        def check(value: T) -> AsyncResult[T, F | FailedPredicateError[T]]:
            return cls.from_predicate(value, predicate, on_fail)

        return check

    @classmethod
    def try_catch[F](
        cls,
        f: Callable[[], Awaitable[Any]],
        on_throw: Callable[[Exception], F] | None = None,
    ) -> AsyncResult[T, F | UnhandledException]:
        """Run an async function when awaited, capturing a raised exception as an error.

        A Result or AsyncResult output is used as is; any other output is wrapped in Ok.

        Args:
            f: Zero-argument async function (or any callable returning an awaitable).
            on_throw: Maps the exception to an error. Defaults to `UnhandledException(exc)`.
        """

        async def produce() -> Result[T, Any]:
            return await _settle_output(_invoke(f), on_throw)

        return cls(produce)

    @classmethod
    def from_awaitable[F](
        cls,
        awaitable: Awaitable[Any],
        on_throw: Callable[[Exception], F] | None = None,
    ) -> AsyncResult[T, F | UnhandledException]:
        """Wrap a coroutine, task or future.

        The awaitable is awaited once, on first resolution; later awaits replay its
        outcome, including a captured exception.
        """
        return cls(memoize(awaitable, lambda output: _settle_output(output, on_throw)))

    @overload
    @classmethod
    def enhance[**P](cls, func: Callable[P, Awaitable[Any]]) -> Callable[P, AsyncResult[Any, UnhandledException]]: ...

    @overload
    @classmethod
    def enhance[F](
        cls,
        func: None = None,
        *,
        on_throw: Callable[[Exception], F] | None = None,
    ) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., AsyncResult[Any, F]]]: ...

    @classmethod
    def enhance(
        cls,
        func: Callable[..., Awaitable[Any]] | None = None,
        *,
        on_throw: Callable[[Exception], Any] | None = None,
    ) -> Any:
        """Decorator making an async function return an AsyncResult.

        Can be used with or without arguments:
            @AsyncResult.enhance
            async def fetch(id: int) -> Data: ...

            @AsyncResult.enhance(on_throw=lambda e: FetchError(str(e)))
            async def fetch(id: int) -> Data: ...
        """

        @wrapt.decorator
        def wrapper(
            wrapped: Callable[..., Awaitable[Any]],
            instance: Any,
            args: tuple[Any, ...],
            kwargs: dict[str, Any],
        ) -> AsyncResult[Any, Any]:
            return cls.try_catch(lambda: wrapped(*args, **kwargs), on_throw)

        if func is not None:
            return wrapper(func)
        return wrapper

    @classmethod
    def do(cls) -> AsyncResult[dict[str, Any], Any]:
        return cls.ok({})

    @classmethod
    def use(cls, body: Callable[[], AsyncGenerator[Any, Any]]) -> AsyncResult[Any, Any]:
        """Evaluate an async generator body, stopping at the first error.

        Yielded awaitables are awaited one at a time before they are inspected. The
        body resolves to its last yielded variant, or Ok(None) if it yields nothing.
        An exception raised by the body resolves to `Err(UnhandledException(exc))`.

        Example:
            ```python
            @AsyncResult.create_use
            async def transfer(source: str, target: str, amount: int):
                account = yield load_account(source)  # coroutine returning a Result
                yield withdraw(account, amount)
                yield deposit(target, amount)
            ```
        """

        async def produce() -> Result[Any, Any]:
            return await evaluate_async(body(), result_.inspect_yield, result_.finish_body)

        return cls(produce)

    @classmethod
    def create_use(cls, func: Callable[..., AsyncGenerator[Any, Any]]) -> Callable[..., AsyncResult[Any, Any]]:
        """Decorator turning an async generator function into one returning an AsyncResult."""
        return create_runner(cls.use)(func)

    @staticmethod
    async def values(items: Iterable[ResultLike[T, Any]]) -> list[T]:
        """Resolve every item concurrently and collect the Ok values, in order."""
        resolved_items = await gather(_settle_output(item) for item in items)
        return result_.values(resolved_items)

    @staticmethod
    def is_async_result(value: object) -> TypeIs[AsyncResult[Any, Any]]:
        return isinstance(value, AsyncResult)

    # --- Queued ---

    def map[U](self, f: Callable[[T], U]) -> AsyncResult[U, E]:
        """Queue `f` to run on the Ok value. Same rules as `Result.map`."""
        return self._enqueue('map', f)  # type: ignore[return-value]

    def map_err[F](self, f: Callable[[E], F]) -> AsyncResult[T, F]:
        return self._enqueue('map_err', f)  # type: ignore[return-value]

    def map_both[U, F](self, *, ok: Callable[[T], U], error: Callable[[E], F]) -> AsyncResult[U, F]:
        return self._enqueue('map_both', ok, error)  # type: ignore[return-value]

    def filter[F](
        self,
        predicate: Predicate[T],
        on_fail: Callable[[T], F] | None = None,
    ) -> AsyncResult[T, E | F | FailedPredicateError[T]]:
        """Queue a predicate check. Failing values become Err(on_fail(value))."""
        return self._enqueue('filter', predicate, on_fail)  # type: ignore[return-value]

    def bind_to(self, key: str) -> AsyncResult[dict[str, T], E]:
        return self.map(lambda value: {key: value})

    # --- Chained ---

    def and_then[U, F](self, f: Callable[[T], ResultLike[U, F]]) -> AsyncResult[U, E | F]:
        """Chain a function returning a Result, an AsyncResult or an awaitable of either.

        Example:
            ```python
            async def fetch_details(user_id: int) -> Result[dict, str]: ...

            await AsyncResult.ok(1).and_then(fetch_details)
            ```
        """

        def step(result: Result[T, E]) -> Any:
            if isinstance(result, Ok):
                return f(result.value)
            return result

        return self._chain(step)  # type: ignore[return-value]

    def or_else[F](self, f: Callable[[E], ResultLike[T, F]]) -> AsyncResult[T, F]:
        """Recover from an error with a function producing a new Result."""

        def step(result: Result[T, E]) -> Any:
            if isinstance(result, Err):
                return f(result.error)
            return result

        return self._chain(step)  # type: ignore[return-value]

    def or_[F](self, other: ResultLike[T, F]) -> AsyncResult[T, F]:
        """Fall back to `other` on an error.

        `other` is converted once, so every await of the result shares it. A coroutine
        operand that ends up unused is closed.
        """
        other_async = _as_async(other)

        def step(result: Result[T, E]) -> Any:
            if isinstance(result, Err):
                return other_async
            close_unawaited(other)
            return result

        return self._chain(step)  # type: ignore[return-value]

    def swap(self) -> AsyncResult[E, T]:
        return self._chain(lambda result: result.swap())  # type: ignore[return-value]

    def tap(self, f: Callable[[T], Any]) -> AsyncResult[T, E]:
        """Call `f` (sync or async) with the Ok value and keep the result unchanged."""

        async def step(result: Result[T, E]) -> Result[T, E]:
            if isinstance(result, Ok):
                await maybe_await(f(result.value))
            return result

        return self._chain(step)

    def tap_error(self, f: Callable[[E], Any]) -> AsyncResult[T, E]:
        """Call `f` (sync or async) with the error and keep the result unchanged."""

        async def step(result: Result[T, E]) -> Result[T, E]:
            if isinstance(result, Err):
                await maybe_await(f(result.error))
            return result

        return self._chain(step)

    def zip[U, F](self, other: ResultLike[U, F]) -> AsyncResult[tuple[T, U], E | F]:
        """Pair the values once both are Ok.

        `other` is resolved after self and only when self is Ok. Its conversion is
        shared across awaits, and a coroutine operand is closed when self is an Err.
        """
        other_async = _as_async(other)

        def step(result: Result[T, E]) -> Any:
            if isinstance(result, Ok):
                return other_async.map(lambda other_value: (result.value, other_value))
            close_unawaited(other)
            return result

        return self._chain(step)  # type: ignore[return-value]

    def zip_with[U, F, R](self, other: ResultLike[U, F], f: Callable[[T, U], R]) -> AsyncResult[R, E | F]:
        return self.zip(other).map(lambda pair: f(*pair))

    def bind[U, F](self, key: str, f: Callable[[Any], ResultLike[U, F]]) -> AsyncResult[dict[str, Any], E | F]:
        """Run `f` on the do-notation context and bind its Ok value to `key`."""

        async def step(context: Any) -> Result[dict[str, Any], Any]:
            check_context(context, key, operation='bind')
            bound = await _settle_output(f(context))
            return Ok(context).bind(key, lambda _: bound)

        return self.and_then(step)

    def let[U](self, key: str, f: Callable[[Any], U | Awaitable[U]]) -> AsyncResult[dict[str, Any], E]:
        """Bind the raw output of `f` (awaited if needed) to `key`."""

        async def step(context: Any) -> Result[dict[str, Any], Any]:
            check_context(context, key, operation='let')
            output = await maybe_await(f(context))
            return Ok(context).let(key, lambda _: output)

        return self.and_then(step)

    # --- Consumption ---

    async def match[R](self, *, ok: Callable[[T], R], error: Callable[[E], R]) -> R:
        """Resolve and run the matching handler, awaiting its output if needed."""
        return await maybe_await((await self).match(ok=ok, error=error))

    async def unwrap_err(self) -> E:
        """Resolve and return the error.

        Raises:
            UnwrapError: If the result is Ok.
        """
        return (await self).unwrap_err()

    async def merge(self) -> T | E:
        return (await self).merge()

    async def is_ok(self) -> bool:
        return (await self).is_ok()

    async def is_err(self) -> bool:
        return (await self).is_err()

    # --- Conversion ---

    def to_async_result(self) -> AsyncResult[T, E]:
        return self

    def to_async_option(self) -> AsyncOption[T]:
        """Convert to an AsyncOption, dropping the error."""
        source = self

        async def produce() -> Option[T]:
            return (await source).to_option()

        return default_registry.get('AsyncOption')(produce)


async def _invoke(f: Callable[[], Any]) -> Any:
    return await maybe_await(f())


async def _settle_output(output: Any, on_throw: Callable[[Exception], Any] | None = None) -> Result[Any, Any]:
    """Resolve a callback or awaitable output into a Result.

    Exceptions become Err(on_throw(exc)) or Err(UnhandledException(exc)). Options
    are converted with `from_option`; any other raw value is wrapped in Ok.
    """
    try:
        while inspect.isawaitable(output) and not isinstance(output, AsyncResult):
            output = await output
        if isinstance(output, AsyncResult):
            return await output
    except Exception as e:
        logger.debug('async_exception_folded', family='Result', error=repr(e), exc_info=e)
        if on_throw is None:
            return Err(UnhandledException.wrap(e))
        with defect_boundary('An error occurred while mapping a caught exception', e):
            failure = on_throw(e)
        return Err(failure)
    if isinstance(output, Ok | Err):
        return output
    if tag_of(output) in {'Some', 'Nothing'}:
        return result_.from_option(output)
    return Ok(output)


def _as_async[T, E](other: ResultLike[T, E]) -> AsyncResult[T, E]:
    if isinstance(other, AsyncResult):
        return other
    if isinstance(other, Ok | Err):
        return AsyncResult.from_result(other)
    return AsyncResult.from_awaitable(other)


default_registry.register(AsyncResult)
