"""Machinery shared by AsyncOption and AsyncResult.

An async variant is a zero-argument producer returning an awaitable of the resolved
variant, plus an `OperationQueue` of pending transformations. Awaiting it runs the
producer, checks the output, drains the queue and folds any exception into the
family's failure value, so awaiting never raises an `Exception`.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Generator, Iterable
from typing import Any, ClassVar, Self

import aiologic
import anyio

from klaw_variant._logging import get_logger
from klaw_variant.async_.queue import Family, OperationQueue
from klaw_variant.errors import Panic

__all__ = ['AsyncVariant', 'close_unawaited', 'gather', 'maybe_await', 'memoize', 'resolved', 'settle']

logger = get_logger(__name__)

type Producer[V] = Callable[[], Awaitable[V]]


def resolved[V](variant: V) -> Producer[V]:
    """Producer of an already-known variant."""

    async def produce() -> V:
        return variant

    return produce


async def settle(output: Any, variant_types: tuple[type, ...], family: str) -> Any:
    """Await `output` until it is a variant of the expected family.

    Coroutines, futures and async variants are awaited in turn.

    Raises:
        Panic: If the final output is not a variant of the family.
    """
    while not isinstance(output, variant_types):
        if not inspect.isawaitable(output):
            logger.warning('non_variant_output', family=family, output_type=type(output).__name__)
            raise Panic(f'Expected an {family} or an awaitable of one, got {type(output).__name__}')
        output = await output
    return output


def close_unawaited(awaitable: Any) -> None:
    """Close a coroutine that was never started so it is not reported as never awaited."""
    if inspect.iscoroutine(awaitable) and inspect.getcoroutinestate(awaitable) == inspect.CORO_CREATED:
        awaitable.close()


def memoize[V](awaitable: Awaitable[Any], settle_output: Callable[[Any], Awaitable[V]]) -> Producer[V]:
    """Producer awaiting `awaitable` once and replaying its settled outcome afterwards.

    An exception raised while settling is replayed as well. Concurrent awaits wait
    on a lock instead of awaiting the coroutine twice.
    """
    lock = aiologic.Lock()
    memo: list[V] = []
    failure: list[Exception] = []

    async def produce() -> V:
        async with lock:
            if not memo and not failure:
                try:
                    memo.append(await settle_output(awaitable))
                except Exception as e:
                    failure.append(e)
        if failure:
            raise failure[0]
        return memo[0]

    return produce


async def gather(items: Iterable[Awaitable[Any]]) -> list[Any]:
    """Await every item concurrently and return their outputs in input order."""
    pending = list(items)
    outputs: list[Any] = [None] * len(pending)

    async with anyio.create_task_group() as tg:

        async def run_one(i: int, aw: Awaitable[Any]) -> None:
            outputs[i] = await aw

        for i, aw in enumerate(pending):
            tg.start_soon(run_one, i, aw)

    return outputs


class AsyncVariant[V]:
    """Base of the async variants: a producer plus a queue of pending operations.

    Subclasses set the family name and variant types, and implement `_fold`, which
    turns an exception into the family's failure value.
    """

    __slots__ = ('_producer', '_queue')

    _family: ClassVar[Family]
    _variant_types: ClassVar[tuple[type, ...]]

    def __init__(self, producer: Producer[Any], queue: OperationQueue | None = None) -> None:
        """Create an async variant.

        Args:
            producer: Zero-argument callable returning an awaitable of the resolved
                variant (or of another async variant). Called once per await.
            queue: Pending operations. Empty by default.
        """
        self._producer = producer
        self._queue = queue if queue is not None else OperationQueue(self._family)

    def __await__(self) -> Generator[Any, Any, V]:
        return self._resolve().__await__()

    async def _resolve(self) -> V:
        try:
            variant = await settle(self._producer(), self._variant_types, self._family)
            return self._queue.drain(variant)
        except Exception as e:
            logger.debug('async_exception_folded', family=self._family, error=repr(e), exc_info=e)
            return self._fold(e)

    @classmethod
    def _fold(cls, error: Exception) -> V:
        raise NotImplementedError

    @classmethod
    async def _settle(cls, output: Any) -> V:
        return await settle(output, cls._variant_types, cls._family)

    def _enqueue(self, operation: str, *args: Any) -> Self:
        return type(self)(self._producer, self._queue.enqueue(operation, *args))

    def _chain(self, step: Callable[[V], Any]) -> Self:
        """Build a new async variant resolving this one, then settling `step(variant)`."""

        async def produce() -> Any:
            return step(await self)

        return type(self)(produce)

    @property
    def pending(self) -> list[str]:
        """Names of the operations queued on this async variant."""
        return self._queue.operations()

    # --- Consumption ---

    async def unwrap(self) -> Any:
        """Resolve and unwrap.

        Raises:
            UnwrapError: If the resolved variant is absent or failed.
        """
        return (await self).unwrap()  # type: ignore[attr-defined]

    async def unwrap_or(self, default: Any) -> Any:
        return (await self).unwrap_or(default)  # type: ignore[attr-defined]

    async def unwrap_or_else(self, f: Callable[..., Any]) -> Any:
        return await maybe_await((await self).unwrap_or_else(f))  # type: ignore[attr-defined]

    async def unwrap_or_none(self) -> Any:
        return (await self).unwrap_or_none()  # type: ignore[attr-defined]

    async def expect(self, error: object) -> Any:
        """Resolve and unwrap, raising the exception described by `error` on failure."""
        return (await self).expect(error)  # type: ignore[attr-defined]

    async def contains(self, predicate: Callable[[Any], bool]) -> bool:
        return (await self).contains(predicate)  # type: ignore[attr-defined]

    async def to_list(self) -> list[Any]:
        return (await self).to_list()  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        pending = ', '.join(self.pending)
        return f'{type(self).__name__}(<pending>, queue=[{pending}])'


async def maybe_await(output: Any) -> Any:
    if inspect.isawaitable(output):
        return await output
    return output
