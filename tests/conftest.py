"""Pytest configuration and shared fixtures for klaw-variant tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pytest
from klaw_variant._logging import add_log_hook, clear_log_hooks
from klaw_variant.config import reset_config

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def fresh_config() -> Generator[None]:
    """Re-read the configuration from the environment in every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def log_events() -> Generator[list[dict[str, Any]]]:
    """Collect library log events at DEBUG level through a log hook."""
    events: list[dict[str, Any]] = []
    library_logger = logging.getLogger('klaw_variant')
    previous_level = library_logger.level
    library_logger.setLevel(logging.DEBUG)
    clear_log_hooks()
    add_log_hook(events.append)
    yield events
    clear_log_hooks()
    library_logger.setLevel(previous_level)


@pytest.fixture
def sample_some():
    """Sample Some value for testing."""
    from klaw_variant import Some

    return Some('hello')


@pytest.fixture
def sample_nothing():
    """Sample Nothing value for testing."""
    from klaw_variant import Nothing

    return Nothing


@pytest.fixture
def sample_ok():
    """Sample Ok value for testing."""
    from klaw_variant import Ok

    return Ok(42)


@pytest.fixture
def sample_err():
    """Sample Err value for testing."""
    from klaw_variant import Err

    return Err(ValueError('test error'))
