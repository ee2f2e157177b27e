"""Library-scoped structured logging.

Every module logs through `get_logger`, a structlog BoundLogger over a stdlib logger
under the `klaw_variant` namespace. Events are debug-level (registry changes,
exceptions folded into an async variant's failure value), so nothing is printed
unless the host enables the namespace.

`configure_logging` is the opt-in switch. It attaches one stderr handler to the
`klaw_variant` logger and leaves the root logger and structlog's global
configuration alone. Log hooks see every event that passes the level check,
whether or not a handler is attached.
"""

from __future__ import annotations

import logging
import sys
import warnings
from collections.abc import Callable
from typing import Any

import structlog

__all__ = [
    'LOGGER_NAME',
    'add_log_hook',
    'clear_log_hooks',
    'configure_logging',
    'get_logger',
    'remove_log_hook',
    'reset_logging',
]

LOGGER_NAME = 'klaw_variant'

type LogHook = Callable[[dict[str, Any]], None]

_hooks: list[LogHook] = []
_installed_handler: logging.Handler | None = None


def add_log_hook(hook: LogHook) -> None:
    """Call `hook` with a copy of every emitted event dict."""
    _hooks.append(hook)


def remove_log_hook(hook: LogHook) -> None:
    """Unregister `hook`. Unknown hooks are ignored."""
    if hook in _hooks:
        _hooks.remove(hook)


def clear_log_hooks() -> None:
    _hooks.clear()


def _dispatch_to_hooks(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ARG001
    """Processor feeding each event to the registered hooks.

    A hook that raises is unregistered and reported with a RuntimeWarning; the event
    itself still goes through.
    """
    for hook in list(_hooks):
        try:
            hook(dict(event_dict))
        except Exception as e:  # noqa: BLE001
            remove_log_hook(hook)
            warnings.warn(f'log hook {hook!r} raised {e!r} and was removed', RuntimeWarning, stacklevel=2)
    return event_dict


# Applied to structlog events and to plain stdlib records alike.
_ENRICH: tuple[Any, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt='iso'),
    _dispatch_to_hooks,
)


def get_logger(name: str | None = None) -> Any:
    """BoundLogger for `name`, which defaults to the package namespace.

    The level check runs first, so hooks and rendering cost nothing while the
    namespace is silent.
    """
    return structlog.wrap_logger(
        logging.getLogger(name or LOGGER_NAME),
        processors=[
            structlog.stdlib.filter_by_level,
            *_ENRICH,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def configure_logging(level: str = 'INFO', *, json_output: bool = True) -> logging.Handler:
    """Send `klaw_variant` events at `level` and above to stderr.

    Calling it again replaces the handler installed by the previous call. Records
    stop propagating to ancestor loggers while the handler is installed, so they are
    not printed twice.

    Args:
        level: Level name such as "DEBUG" or "WARNING". Unknown names fall back to INFO.
        json_output: Render JSON lines if True, structlog's console format otherwise.

    Returns:
        The installed handler.
    """
    global _installed_handler  # noqa: PLW0603

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=list(_ENRICH),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )

    reset_logging()
    library_logger = logging.getLogger(LOGGER_NAME)
    library_logger.addHandler(handler)
    library_logger.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))
    library_logger.propagate = False
    _installed_handler = handler
    return handler


def reset_logging() -> None:
    """Remove the handler installed by `configure_logging` and restore propagation."""
    global _installed_handler  # noqa: PLW0603

    if _installed_handler is None:
        return
    library_logger = logging.getLogger(LOGGER_NAME)
    library_logger.removeHandler(_installed_handler)
    library_logger.propagate = True
    _installed_handler = None
