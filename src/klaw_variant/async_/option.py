"""AsyncOption: the Option API over a computation that has not run yet.

`map` and `filter` are queued and applied in one pass when the AsyncOption is
awaited. `and_then`, `or_else` and the operations built on them need the resolved
tag, so they chain a new producer instead. Awaiting never raises an `Exception`:
a failing producer, callback or queued operation resolves to `Nothing`.

Example:
    ```python
    async def find_user(user_id: int) -> dict | None: ...

    email = await (
        AsyncOption.try_catch(lambda: find_user(1))
        .map(lambda user: user.get('email'))
        .filter(lambda address: '@' in address)
    )
    # Some(value='ada@example.com') or Nothing
    ```
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncGenerator, Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any, ClassVar, TypeIs

import wrapt

from klaw_variant import option as option_
from klaw_variant._internal.utils import check_context, tag_of
from klaw_variant._logging import get_logger
from klaw_variant.async_._base import AsyncVariant, close_unawaited, gather, maybe_await, memoize, resolved, settle
from klaw_variant.evaluator import create_runner, evaluate_async
from klaw_variant.option import Nothing, NothingType, Option, Some
from klaw_variant.predicate import Predicate
from klaw_variant.registry import default_registry
from klaw_variant.result import Err, Ok

if TYPE_CHECKING:
    from klaw_variant.async_.queue import Family
    from klaw_variant.async_.result import AsyncResult
    from klaw_variant.result import Result

__all__ = ['AsyncOption']

logger = get_logger(__name__)

type OptionLike[T] = Option[T] | AsyncOption[T] | Awaitable[Option[T]] | Awaitable[AsyncOption[T]]


class AsyncOption[T](AsyncVariant[Option[T]]):
    """Async-aware Option wrapper.

    Attributes:
        _producer: Zero-argument callable returning an awaitable of the Option.
        _queue: Operations applied to the resolved Option, in order.
    """

    __slots__ = ()

    _family: ClassVar[Family] = 'Option'
    _variant_types: ClassVar[tuple[type, ...]] = (Some, NothingType)

    @classmethod
    def _fold(cls, error: Exception) -> Option[T]:  # noqa: ARG003
        return Nothing

    # --- Construction ---

    @classmethod
    def some(cls, value: T) -> AsyncOption[T]:
        return cls(resolved(Some(value)))

    @classmethod
    def nothing(cls) -> AsyncOption[Any]:
        return cls(resolved(Nothing))

    @classmethod
    def from_option(cls, option: Option[T]) -> AsyncOption[T]:
        """Wrap an already-resolved Option."""
        return cls(resolved(option))

    @classmethod
    def from_result(cls, result: Result[T, Any]) -> AsyncOption[T]:
        """Wrap a resolved Result: Some(value) for an Ok, Nothing for an Err.

        Raises:
            Panic: If `result` is not a Result.
        """
        return cls.from_option(option_.from_result(result))

    @classmethod
    def from_async_result(cls, source: AsyncResult[T, Any] | Awaitable[Result[T, Any]]) -> AsyncOption[T]:
        """Convert an AsyncResult, or an awaitable of a Result, once it resolves.

        A coroutine source is awaited once and its outcome replayed. If it raises,
        the AsyncOption resolves to Nothing.
        """
        if isinstance(source, AsyncVariant):
            resolve_source = lambda: source  # noqa: E731
        else:
            resolve_source = memoize(source, lambda output: settle(output, (Ok, Err), 'Result'))

        async def produce() -> Option[T]:
            return option_.from_result(await resolve_source())

        return cls(produce)

    @classmethod
    def from_nullable(cls, value: T | None) -> AsyncOption[T]:
        return cls.from_option(option_.from_nullable(value))

    @classmethod
    def from_falsy(cls, value: T | None) -> AsyncOption[T]:
        return cls.from_option(option_.from_falsy(value))

    @classmethod
    def from_predicate(cls, value: T, predicate: Predicate[T]) -> AsyncOption[T]:
        """Some(value) if `predicate(value)` holds. The predicate runs when awaited."""

        async def produce() -> Option[T]:
            return option_.from_predicate(value, predicate)

        return cls(produce)

    @classmethod
    def predicate(cls, predicate: Predicate[T]) -> Callable[[T], AsyncOption[T]]:
        def check(value: T) -> AsyncOption[T]:
            return cls.from_predicate(value, predicate)

        return check

    @classmethod
    def try_catch(cls, f: Callable[[], Awaitable[Any]]) -> AsyncOption[T]:
        """Run an async function when awaited, resolving to Nothing if it raises.

        A None output becomes Nothing; an Option or AsyncOption output is used as is.

        Example:
            ```python
            async def load(path: str) -> bytes: ...

            await AsyncOption.try_catch(lambda: load('missing.txt'))
            # Nothing
            ```
        """

        async def produce() -> Option[T]:
            return await _settle_output(f())

        return cls(produce)

    @classmethod
    def from_awaitable(cls, awaitable: Awaitable[Any]) -> AsyncOption[T]:
        """Wrap a coroutine, task or future.

        The awaitable is awaited once, on first resolution; later awaits replay its
        outcome. An exception resolves to Nothing.
        """
        return cls(memoize(awaitable, _settle_output))

    @classmethod
    def enhance[**P](cls, func: Callable[P, Awaitable[Any]]) -> Callable[P, AsyncOption[Any]]:
        """Decorator making an async function return an AsyncOption.

        Example:
            ```python
            @AsyncOption.enhance
            async def fetch_config(name: str) -> dict | None: ...

            fetch_config('app').map(lambda config: config['port'])
            ```
        """

        @wrapt.decorator
        def wrapper(
            wrapped: Callable[P, Awaitable[Any]],
            instance: Any,
            args: tuple[Any, ...],
            kwargs: dict[str, Any],
        ) -> AsyncOption[Any]:
            return cls.try_catch(lambda: wrapped(*args, **kwargs))

        return wrapper(func)  # type: ignore[no-any-return]

    @classmethod
    def do(cls) -> AsyncOption[dict[str, Any]]:
        return cls.some({})

    @classmethod
    def use(cls, body: Callable[[], AsyncGenerator[Any, Any]]) -> AsyncOption[Any]:
        """Evaluate an async generator body, stopping at the first absent value.

        Yielded awaitables (coroutines, AsyncOption, AsyncResult) are awaited one at a
        time before they are inspected. The body resolves to its last yielded variant,
        or Nothing if it yields nothing.

        Example:
            ```python
            async def body():
                user = yield AsyncOption.from_awaitable(find_user(1))
                yield option.from_nullable(user.get('email'))

            await AsyncOption.use(body)
            ```
        """

        async def produce() -> Option[Any]:
            return await evaluate_async(body(), option_.inspect_yield, option_.finish_body)

        return cls(produce)

    @classmethod
    def create_use(cls, func: Callable[..., AsyncGenerator[Any, Any]]) -> Callable[..., AsyncOption[Any]]:
        """Decorator turning an async generator function into one returning an AsyncOption."""
        return create_runner(cls.use)(func)

    @staticmethod
    async def values(items: Iterable[OptionLike[T]]) -> list[T]:
        """Resolve every item concurrently and collect the Some payloads, in order."""
        resolved_items = await gather(_settle_output(item) for item in items)
        return option_.values(resolved_items)

    @classmethod
    def first_some_of(cls, items: Iterable[OptionLike[T]]) -> AsyncOption[T]:
        """Resolve every item concurrently and keep the first Some in input order."""
        pending = [_as_async(item) for item in items]

        async def produce() -> Option[T]:
            return option_.first_some_of(await gather(_settle_output(item) for item in pending))

        return cls(produce)

    @staticmethod
    def is_async_option(value: object) -> TypeIs[AsyncOption[Any]]:
        return isinstance(value, AsyncOption)

    # --- Queued ---

    def map[U](self, f: Callable[[T], U | None]) -> AsyncOption[U]:
        """Queue `f` to run on the Some value. Same rules as `Option.map`."""
        return self._enqueue('map', f)  # type: ignore[return-value]

    def filter(self, predicate: Predicate[T]) -> AsyncOption[T]:
        return self._enqueue('filter', predicate)

    def bind_to(self, key: str) -> AsyncOption[dict[str, T]]:
        return self.map(lambda value: {key: value})

    # --- Chained ---

    def and_then[U](self, f: Callable[[T], OptionLike[U]]) -> AsyncOption[U]:
        """Chain a function returning an Option, an AsyncOption or an awaitable of either."""

        def step(option: Option[T]) -> Any:
            if isinstance(option, Some):
                return f(option.value)
            return option

        return self._chain(step)  # type: ignore[return-value]

    def or_else(self, f: Callable[[], OptionLike[T]]) -> AsyncOption[T]:
        """Recover from Nothing with a fallback produced lazily."""

        def step(option: Option[T]) -> Any:
            if isinstance(option, NothingType):
                return f()
            return option

        return self._chain(step)

    def or_(self, other: OptionLike[T]) -> AsyncOption[T]:
        """Fall back to `other` on Nothing.

        `other` is converted once, so every await of the result shares it. A coroutine
        operand that ends up unused is closed.
        """
        other_async = _as_async(other)

        def step(option: Option[T]) -> Any:
            if isinstance(option, NothingType):
                return other_async
            close_unawaited(other)
            return option

        return self._chain(step)

    def tap(self, f: Callable[[T], Any]) -> AsyncOption[T]:
        """Call `f` (sync or async) with the Some value and keep the option unchanged."""

        async def step(option: Option[T]) -> Option[T]:
            if isinstance(option, Some):
                await maybe_await(f(option.value))
            return option

        return self._chain(step)

    def zip[U](self, other: OptionLike[U]) -> AsyncOption[tuple[T, U]]:
        """Pair the values once both are Some.

        `other` is resolved after self and only when self is Some. Its conversion is
        shared across awaits, and a coroutine operand is closed when self is Nothing.
        """
        other_async = _as_async(other)

        def step(option: Option[T]) -> Any:
            if isinstance(option, Some):
                return other_async.map(lambda other_value: (option.value, other_value))
            close_unawaited(other)
            return option

        return self._chain(step)

    def zip_with[U, R](self, other: OptionLike[U], f: Callable[[T, U], R | None]) -> AsyncOption[R]:
        return self.zip(other).map(lambda pair: f(*pair))

    def bind[U](self, key: str, f: Callable[[Any], OptionLike[U]]) -> AsyncOption[dict[str, Any]]:
        """Run `f` on the do-notation context and bind its Some value to `key`."""

        async def step(context: Any) -> Option[dict[str, Any]]:
            check_context(context, key, operation='bind')
            bound = await _settle_output(f(context))
            return Some(context).bind(key, lambda _: bound)

        return self.and_then(step)

    def let[U](self, key: str, f: Callable[[Any], U | Awaitable[U]]) -> AsyncOption[dict[str, Any]]:
        """Bind the raw output of `f` (awaited if needed) to `key`."""

        async def step(context: Any) -> Option[dict[str, Any]]:
            check_context(context, key, operation='let')
            output = await maybe_await(f(context))
            return Some(context).let(key, lambda _: output)

        return self.and_then(step)

    # --- Consumption ---

    async def match[R](self, *, some: Callable[[T], R], none: Callable[[], R]) -> R:
        """Resolve and run the matching handler, awaiting its output if needed."""
        return await maybe_await((await self).match(some=some, none=none))

    async def is_some(self) -> bool:
        return (await self).is_some()

    async def is_none(self) -> bool:
        return (await self).is_none()

    # --- Conversion ---

    def to_async_option(self) -> AsyncOption[T]:
        return self

    def to_async_result[E](self, on_none: Callable[[], E] | None = None) -> AsyncResult[T, E]:
        """Convert to an AsyncResult; Nothing becomes Err(on_none()) or Err(NoValueError())."""
        source = self

        async def produce() -> Any:
            return (await source).to_result(on_none)

        return default_registry.get('AsyncResult')(produce)


async def _settle_output(output: Any) -> Option[Any]:
    """Resolve a callback or awaitable output into an Option.

    Exceptions resolve to Nothing; None and raw values go through `from_nullable`.
    """
    try:
        while inspect.isawaitable(output) and not isinstance(output, AsyncOption):
            output = await output
        if isinstance(output, AsyncOption):
            return await output
    except Exception as e:
        logger.debug('async_exception_folded', family='Option', error=repr(e), exc_info=e)
        return Nothing
    if isinstance(output, Some | NothingType):
        return output
    if tag_of(output) in {'Ok', 'Error'}:
        return option_.from_result(output)
    return option_.from_nullable(output)


def _as_async[T](other: OptionLike[T]) -> AsyncOption[T]:
    if isinstance(other, AsyncOption):
        return other
    if isinstance(other, Some | NothingType):
        return AsyncOption.from_option(other)
    return AsyncOption.from_awaitable(other)


default_registry.register(AsyncOption)
