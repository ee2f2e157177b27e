"""Name-to-implementation registry resolving Option <-> Result references.

`klaw_variant.option` needs to build `Ok`/`Err` values (`to_result`) and
`klaw_variant.result` needs `Some`/`Nothing` (`to_option`); both need the async
wrappers. Instead of importing each other, every module registers its own
implementations under a canonical name at import time and looks the others up
when a conversion actually runs.

Example:
    ```python
    from klaw_variant.registry import Registry

    registry = Registry()
    unregister = registry.register(Ok)
    registry.get('Ok')(1)
    # Ok(value=1)
    unregister()
    registry.get('Ok')
    # RegistryError: "Ok" is not registered
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from klaw_variant._logging import get_logger
from klaw_variant.errors import RegistryError

__all__ = ['Registry', 'default_registry']

logger = get_logger(__name__)

_ABSENT = object()


class Registry:
    """A table holding exactly one active implementation per canonical name.

    Writes are expected only at import time and around tests; reads happen while
    chains are evaluated. Registering a name that is already bound replaces the
    binding.
    """

    __slots__ = ('_bindings',)

    def __init__(self) -> None:
        self._bindings: dict[str, Any] = {}

    def register(self, implementation: Any, *, name: str | None = None) -> Callable[[], None]:
        """Bind `implementation` under `name` (its `__name__` by default).

        Args:
            implementation: The class, function or value to expose.
            name: Canonical name. Required when `implementation` has no `__name__`.

        Returns:
            A callback restoring the binding active before this call. Calling it more
            than once has no further effect.

        Raises:
            TypeError: If no name is given and `implementation` has no `__name__`.
        """
        key = name if name is not None else getattr(implementation, '__name__', None)
        if not isinstance(key, str) or not key:
            raise TypeError(f'Cannot derive a registry name for {implementation!r}; pass name=')

        previous = self._bindings.get(key, _ABSENT)
        self._bindings[key] = implementation
        logger.debug('registry_register', name=key, replaced=previous is not _ABSENT)

        restored = False

        def unregister() -> None:
            nonlocal restored
            if restored:
                return
            restored = True
            if previous is _ABSENT:
                self._bindings.pop(key, None)
            else:
                self._bindings[key] = previous
            logger.debug('registry_unregister', name=key, restored=previous is not _ABSENT)

        return unregister

    def get(self, name: str) -> Any:
        """Return the active implementation for `name`.

        Raises:
            RegistryError: If nothing is registered under `name`.
        """
        try:
            return self._bindings[name]
        except KeyError:
            logger.debug('registry_miss', name=name)
            raise RegistryError(name) from None

    def is_registered(self, name: str) -> bool:
        return name in self._bindings

    def discard(self, name: str) -> None:
        """Remove the binding for `name`, if any."""
        self._bindings.pop(name, None)

    def names(self) -> list[str]:
        return sorted(self._bindings)

    @contextmanager
    def isolated(self) -> Iterator[Registry]:
        """Snapshot every binding and restore the snapshot on exit.

        Example:
            ```python
            with default_registry.isolated() as registry:
                registry.discard('Ok')
                ...  # conversions to Result raise RegistryError here
            # bindings are back
            ```
        """
        snapshot = dict(self._bindings)
        try:
            yield self
        finally:
            self._bindings.clear()
            self._bindings.update(snapshot)

    def __repr__(self) -> str:
        return f'<Registry with {len(self._bindings)} bindings: {", ".join(self.names())}>'


default_registry = Registry()
"""Process-wide registry used by the variant modules."""
