"""Pending transformations of an async variant, applied when it is awaited.

`map`-like operations on `AsyncOption`/`AsyncResult` do not need the resolved tag to
be known, so they are recorded here instead of being chained onto the producer. Each
`enqueue` returns a new queue: two chains derived from the same async value never
share pending operations.

Example:
    ```python
    queue = OperationQueue('Option').enqueue('map', lambda n: n * 2).enqueue('map', lambda n: n + 1)
    queue.drain(Some(2))
    # Some(value=5)
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

import msgspec

from klaw_variant.errors import Panic

__all__ = ['Family', 'OperationQueue']

type Family = Literal['Option', 'Result']


def _map(variant: Any, f: Callable[[Any], Any]) -> Any:
    return variant.map(f)


def _filter(variant: Any, *args: Any) -> Any:
    return variant.filter(*args)


def _map_err(variant: Any, f: Callable[[Any], Any]) -> Any:
    return variant.map_err(f)


def _map_both(variant: Any, ok: Callable[[Any], Any], error: Callable[[Any], Any]) -> Any:
    return variant.map_both(ok=ok, error=error)


_DISPATCH: dict[str, dict[str, Callable[..., Any]]] = {
    'Option': {'map': _map, 'filter': _filter},
    'Result': {'map': _map, 'filter': _filter, 'map_err': _map_err, 'map_both': _map_both},
}


class OperationQueue(msgspec.Struct, frozen=True):
    """An immutable FIFO of `(operation, args)` pairs for one variant family.

    Attributes:
        family: 'Option' or 'Result'; decides which operations can be queued.
        items: The pending operations, oldest first.
    """

    family: Family
    items: tuple[tuple[str, tuple[Any, ...]], ...] = ()

    def enqueue(self, operation: str, *args: Any) -> OperationQueue:
        """Return a new queue with `operation(*args)` appended.

        Raises:
            Panic: If `operation` cannot be deferred for this family.
        """
        if operation not in _DISPATCH[self.family]:
            allowed = ', '.join(sorted(_DISPATCH[self.family]))
            raise Panic(f'Cannot defer "{operation}" on an async {self.family}; expected one of: {allowed}')
        return OperationQueue(self.family, (*self.items, (operation, args)))

    def drain(self, variant: Any) -> Any:
        """Apply every pending operation to `variant` in insertion order."""
        table = _DISPATCH[self.family]
        for operation, args in self.items:
            variant = table[operation](variant, *args)
        return variant

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)
