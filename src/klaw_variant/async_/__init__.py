"""Async variants: AsyncOption and AsyncResult.

Both expose the Option/Result vocabulary over a computation that runs when awaited:
`map`-like calls are queued and applied in one pass, tag-dependent calls chain a new
producer, and awaiting never raises an `Exception`.

Examples:
    >>> from klaw_variant.async_ import AsyncOption, AsyncResult
    >>>
    >>> async def main():
    ...     doubled = await AsyncOption.some(2).map(lambda n: n * 2).map(lambda n: n + 1)
    ...     # Some(value=5)
    ...     parsed = await AsyncResult.try_catch(lambda: read_port()).map(int)
    ...     # Ok(value=8080) or Err(error=UnhandledException(...))
"""

from klaw_variant.async_.option import AsyncOption
from klaw_variant.async_.queue import OperationQueue
from klaw_variant.async_.result import AsyncResult

__all__ = [
    'AsyncOption',
    'AsyncResult',
    'OperationQueue',
]
