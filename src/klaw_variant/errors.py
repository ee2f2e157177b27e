"""Error taxonomy for Option and Result.

Two channels are kept apart:

* Domain errors (`NoValueError`, `FailedPredicateError`, `UnhandledException`) are
  plain values. The library places them inside `Err` as default payloads and never
  raises them.
* Defects (`Panic`, `UnwrapError`, `RegistryError`) are programmer errors: the wrong
  assumption about a variant's tag, a callback that blew up inside a combinator, or a
  missing registration. They are raised and are not meant to be caught routinely.

Example:
    ```python
    from klaw_variant import Ok, Err
    from klaw_variant.errors import FailedPredicateError

    Ok(5).filter(lambda n: n > 10)
    # Err(error=FailedPredicateError(5))
    ```
"""

from __future__ import annotations

from typing import Any, ClassVar, Self

__all__ = [
    'FailedPredicateError',
    'NoValueError',
    'Panic',
    'RegistryError',
    'UnhandledException',
    'UnwrapError',
    'VariantError',
    'panic',
]


class VariantError(Exception):
    """Base class for every error produced by klaw-variant.

    Attributes:
        tag: Stable identifier of the error kind, shared by all instances of a class.
        message: A human-readable description of the error.
        code: An optional error code for programmatic error handling.
    """

    tag: ClassVar[str] = 'VariantError'

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message: str = message
        self.code: str | None = code

    @classmethod
    def is_instance(cls, value: object) -> bool:
        """Return True if `value` is an instance of this error class."""
        return isinstance(value, cls)

    def _identity(self) -> tuple[Any, ...]:
        return (self.message, self.code)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._identity() == other._identity()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        try:
            return hash((type(self), self._identity()))
        except TypeError:
            return id(self)

    def __str__(self) -> str:
        if self.code:
            return f'[{self.code}] {self.message}'
        return self.message

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.message!r})'


# --- Domain errors ---


class NoValueError(VariantError):
    """A value was required but the source was absent or falsy."""

    tag: ClassVar[str] = 'NoValueError'

    def __init__(self, message: str = 'No value was provided', code: str | None = None) -> None:
        super().__init__(message, code)


class FailedPredicateError[T](VariantError):
    """A predicate rejected a value.

    Attributes:
        value: The value that failed the predicate.
    """

    tag: ClassVar[str] = 'FailedPredicateError'

    def __init__(self, value: T, message: str = 'Predicate not fulfilled for Result value') -> None:
        super().__init__(message)
        self.value: T = value

    def _identity(self) -> tuple[Any, ...]:
        return (self.message, self.value)

    def __repr__(self) -> str:
        return f'FailedPredicateError({self.value!r})'


class UnhandledException(VariantError):
    """An exception caught at a `try_catch`/`lift`/async boundary with no error mapper.

    The original exception is kept both as `cause` and as `__cause__`, so tracebacks
    rendered from the error value still show where it came from.
    """

    tag: ClassVar[str] = 'UnhandledException'

    def __init__(self, cause: BaseException, message: str | None = None) -> None:
        super().__init__(message or f'{type(cause).__name__}: {cause}')
        self.cause: BaseException = cause
        self.__cause__ = cause

    @classmethod
    def wrap(cls, error: BaseException) -> Self:
        """Wrap `error` unless it already is an `UnhandledException`."""
        if isinstance(error, cls):
            return error
        return cls(error)

    def _identity(self) -> tuple[Any, ...]:
        return (type(self.cause), self.cause.args)

    def __repr__(self) -> str:
        return f'UnhandledException({self.cause!r})'


# --- Defects ---


class Panic(VariantError, RuntimeError):
    """A defect: misuse of the API or a callback that raised inside a combinator."""

    tag: ClassVar[str] = 'Panic'


class UnwrapError(Panic):
    """`unwrap`-family call on the wrong variant."""

    tag: ClassVar[str] = 'UnwrapError'

    _MESSAGES: ClassVar[dict[str, str]] = {
        'Option': 'called "Option.unwrap()" on a "Nothing" value',
        'Result': 'called "Result.unwrap()" on an "Err" value',
        'ResultError': 'called "Result.unwrap_err()" on an "Ok" value',
    }

    def __init__(self, kind: str, detail: str | None = None) -> None:
        if kind not in self._MESSAGES:
            raise TypeError(f'Invalid value passed to UnwrapError: {kind!r}')
        message = self._MESSAGES[kind]
        if detail is not None:
            message = f'{message}: {detail}'
        super().__init__(message)
        self.kind: str = kind


class RegistryError(Panic):
    """A registry lookup happened before the implementation was registered."""

    tag: ClassVar[str] = 'RegistryError'

    def __init__(self, name: str) -> None:
        super().__init__(f'"{name}" is not registered', code='registry')
        self.name: str = name


def panic(message: str, cause: BaseException | None = None) -> Panic:
    """Build a `Panic` chained to `cause`, ready to be raised."""
    error = Panic(message)
    error.__cause__ = cause
    return error
