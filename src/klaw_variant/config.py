"""Library configuration: VariantConfig, environment detection and initialization."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Any

from klaw_variant._logging import configure_logging

__all__ = [
    'VariantConfig',
    'get_config',
    'init',
    'reset_config',
]

_TRUTHY = frozenset({'1', 'true', 'yes', 'on'})
_FALSY = frozenset({'0', 'false', 'no', 'off'})


@dataclass(frozen=True)
class VariantConfig:
    """Configuration for klaw-variant.

    Attributes:
        log_level: Logging level (e.g., "DEBUG", "INFO"). None = silent.
        json_logs: Render logs as JSON (True) or as colored console output (False).
        strict_map: If True, a `map` callback returning a variant of the same family
            (an Option from `Option.map`, a Result from `Result.map`) raises `Panic`.
            If False, the returned variant is flattened as `and_then` would.
    """

    log_level: str | None = None
    json_logs: bool = True
    strict_map: bool = True


_config: VariantConfig | None = None


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name, '').strip().lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    logging.warning("Unknown %s value '%s', defaulting to %s", name, raw, default)
    return default


def _from_env() -> VariantConfig:
    """Build a config from KLAW_VARIANT_* environment variables."""
    level = os.environ.get('KLAW_VARIANT_LOG_LEVEL', '').strip() or None
    return VariantConfig(
        log_level=level.upper() if level else None,
        json_logs=_env_flag('KLAW_VARIANT_JSON_LOGS', True),
        strict_map=_env_flag('KLAW_VARIANT_STRICT_MAP', True),
    )


def init(config: VariantConfig | None = None, **overrides: Any) -> VariantConfig:
    """Initialize klaw-variant with the given configuration.

    Args:
        config: Base configuration. Read from the environment if None.
        **overrides: Field overrides applied on top of `config`.

    Returns:
        The VariantConfig that was set.

    Example:
        ```python
        from klaw_variant.config import init

        init(log_level='DEBUG', strict_map=False)
        ```
    """
    global _config  # noqa: PLW0603

    base = config if config is not None else _from_env()
    _config = replace(base, **overrides) if overrides else base

    if _config.log_level is not None:
        configure_logging(_config.log_level, json_output=_config.json_logs)

    return _config


def get_config() -> VariantConfig:
    """Get the active configuration, building it from the environment on first use."""
    global _config  # noqa: PLW0603

    if _config is None:
        _config = _from_env()
    return _config


def reset_config() -> None:
    """Forget the active configuration so the next `get_config` re-reads the environment."""
    global _config  # noqa: PLW0603

    _config = None
