"""Generator-driven short-circuit evaluation shared by Option, Result and their async wrappers.

A body is a generator that yields variants. Each yield is an "unwrap or abort"
point: the evaluator inspects the yielded variant and either sends the contained
value back into the body or stops the body and returns the failure.

Example:
    ```python
    from klaw_variant import result

    def body():
        x = yield result.ok(5)
        y = yield parse(text)  # stops here if parse() returns Err
        return result.ok(x + y)

    result.use(body)
    ```

Stopping closes the generator, so `finally` blocks run but no statement after
the failing yield does.
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any

import msgspec
import wrapt

__all__ = ['Step', 'create_runner', 'evaluate', 'evaluate_async']


class Step(msgspec.Struct, frozen=True, gc=False):
    """Outcome of inspecting one yielded item.

    Attributes:
        failed: True if evaluation must stop.
        value: The value to send back into the body, or the failure to return.
    """

    failed: bool
    value: Any

    @classmethod
    def proceed(cls, value: Any) -> Step:
        return cls(False, value)

    @classmethod
    def abort(cls, failure: Any) -> Step:
        return cls(True, failure)


type Inspector = Callable[[Any], Step]


def evaluate[V](
    body: Generator[Any, Any, Any],
    inspect_step: Inspector,
    finish: Callable[[Any], V],
) -> V:
    """Run `body` until it returns or yields a failure.

    Args:
        body: A started-or-fresh generator yielding variants.
        inspect_step: Decides, per yielded item, whether to continue.
        finish: Converts the body's return value into the final variant.

    Returns:
        The first failure yielded, or `finish(return_value)`.
    """
    try:
        item = next(body)
        while True:
            step = inspect_step(item)
            if step.failed:
                body.close()
                return step.value
            item = body.send(step.value)
    except StopIteration as stop:
        return finish(stop.value)


async def evaluate_async[V](
    body: AsyncGenerator[Any, Any],
    inspect_step: Inspector,
    finish: Callable[[Any], V],
) -> V:
    """Async counterpart of `evaluate`.

    Yielded awaitables (coroutines, `AsyncOption`, `AsyncResult`) are awaited before
    inspection, one at a time and in order. Async generators cannot return a value,
    so `finish` receives the last yielded item that passed inspection (None if the
    body never yielded).
    """
    last: Any = None
    try:
        item = await body.asend(None)
        while True:
            if inspect.isawaitable(item):
                item = await item
            step = inspect_step(item)
            if step.failed:
                await body.aclose()
                return step.value
            last = item
            item = await body.asend(step.value)
    except StopAsyncIteration:
        return finish(last)


def create_runner(run: Callable[[Callable[[], Any]], Any]) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Build a `create_use` decorator from a family's `use` function.

    The decorated generator function keeps its signature; calling it runs the body
    with the given arguments through `run`.
    """

    def create_use(func: Callable[..., Any]) -> Callable[..., Any]:
        @wrapt.decorator
        def wrapper(
            wrapped: Callable[..., Any],
            instance: Any,
            args: tuple[Any, ...],
            kwargs: dict[str, Any],
        ) -> Any:
            return run(lambda: wrapped(*args, **kwargs))

        return wrapper(func)

    return create_use
