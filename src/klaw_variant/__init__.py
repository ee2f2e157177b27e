"""klaw-variant: Option and Result types for the Klaw ecosystem.

Sum types for values that may be absent (`Option`) or computations that may fail
(`Result`), with async counterparts sharing the same vocabulary, generator-based
short-circuit evaluation (`use` / `create_use`) and do-notation.

Flat imports (preferred):
    from klaw_variant import Some, Nothing, Option, Ok, Err, Result
    from klaw_variant import AsyncOption, AsyncResult

Module imports for constructors and helpers:
    from klaw_variant import option, result
    option.from_nullable(value)
    result.try_catch(lambda: int(text))

Importing this package registers every implementation in `default_registry`.
"""

from klaw_variant import option, result

# Async
from klaw_variant.async_ import AsyncOption, AsyncResult, OperationQueue

# Configuration
from klaw_variant.config import VariantConfig, get_config, init

# Errors
from klaw_variant.errors import (
    FailedPredicateError,
    NoValueError,
    Panic,
    RegistryError,
    UnhandledException,
    UnwrapError,
    VariantError,
)
from klaw_variant.option import (
    Nothing,
    NothingType,
    Option,
    Some,
)
from klaw_variant.registry import Registry, default_registry
from klaw_variant.result import (
    Err,
    Ok,
    Result,
)

__all__ = [
    # Async
    'AsyncOption',
    'AsyncResult',
    # Result types
    'Err',
    # Errors
    'FailedPredicateError',
    'NoValueError',
    # Option types
    'Nothing',
    'NothingType',
    'Ok',
    'OperationQueue',
    'Option',
    'Panic',
    # Registry
    'Registry',
    'RegistryError',
    'Result',
    'Some',
    'UnhandledException',
    'UnwrapError',
    # Configuration
    'VariantConfig',
    'VariantError',
    'default_registry',
    'get_config',
    'init',
    # Modules
    'option',
    'result',
]
