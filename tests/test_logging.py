"""Tests for structured logging and log hooks."""

import logging

import pytest
from klaw_variant._logging import (
    LOGGER_NAME,
    add_log_hook,
    clear_log_hooks,
    configure_logging,
    get_logger,
    remove_log_hook,
    reset_logging,
)
from klaw_variant.config import init


@pytest.fixture
def library_logger():
    """Restore the package logger and the root logger after configure_logging calls."""
    library = logging.getLogger(LOGGER_NAME)
    root = logging.getLogger()
    handlers, level, propagate = list(library.handlers), library.level, library.propagate
    root_handlers = list(root.handlers)
    yield library
    reset_logging()
    library.handlers[:] = handlers
    library.setLevel(level)
    library.propagate = propagate
    root.handlers[:] = root_handlers


class TestLogHooks:
    """Tests for hook registration."""

    def test_hook_receives_events(self, log_events):
        get_logger('klaw_variant.tests').debug('hook_check', answer=42)
        assert log_events[-1]['event'] == 'hook_check'
        assert log_events[-1]['answer'] == 42
        assert log_events[-1]['level'] == 'debug'

    def test_silent_by_default(self):
        events = []
        clear_log_hooks()
        add_log_hook(events.append)
        try:
            logging.getLogger(LOGGER_NAME).setLevel(logging.NOTSET)
            get_logger('klaw_variant.tests').debug('filtered_out')
        finally:
            clear_log_hooks()
        assert events == []

    def test_remove_hook(self, log_events):
        other = []
        add_log_hook(other.append)
        remove_log_hook(other.append)
        remove_log_hook(other.append)
        get_logger('klaw_variant.tests').debug('after_remove')
        assert other == []
        assert log_events[-1]['event'] == 'after_remove'

    def test_failing_hook_is_dropped_with_warning(self, log_events):
        calls = []

        def broken(event):
            calls.append(event['event'])
            raise RuntimeError('hook failed')

        add_log_hook(broken)
        with pytest.warns(RuntimeWarning, match='hook failed'):
            get_logger('klaw_variant.tests').debug('still_logged')
        get_logger('klaw_variant.tests').debug('next_event')

        assert calls == ['still_logged']
        assert [event['event'] for event in log_events[-2:]] == ['still_logged', 'next_event']

    def test_hooks_get_copies(self, log_events):
        def mutate(event):
            event['event'] = 'changed'

        add_log_hook(mutate)
        get_logger('klaw_variant.tests').debug('original')
        assert log_events[-1]['event'] == 'original'


class TestConfigureLogging:
    """Tests for configure_logging and init(log_level=...)."""

    def test_handler_on_package_logger_only(self, library_logger):
        root_handlers = list(logging.getLogger().handlers)
        handler = configure_logging('WARNING', json_output=False)

        assert library_logger.level == logging.WARNING
        assert handler in library_logger.handlers
        assert library_logger.propagate is False
        assert logging.getLogger().handlers == root_handlers

    def test_reconfigure_replaces_own_handler(self, library_logger):
        foreign = logging.NullHandler()
        library_logger.addHandler(foreign)
        first = configure_logging('INFO')
        second = configure_logging('DEBUG')

        assert first not in library_logger.handlers
        assert second in library_logger.handlers
        assert foreign in library_logger.handlers
        assert library_logger.level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, library_logger):
        configure_logging('chatty')
        assert library_logger.level == logging.INFO

    def test_reset_logging(self, library_logger):
        handler = configure_logging('INFO')
        reset_logging()
        reset_logging()
        assert handler not in library_logger.handlers
        assert library_logger.propagate is True

    def test_init_with_log_level(self, library_logger):
        config = init(log_level='DEBUG')
        assert config.log_level == 'DEBUG'
        assert library_logger.level == logging.DEBUG

    def test_json_output(self, library_logger, capsys):
        configure_logging('INFO', json_output=True)
        logging.getLogger('klaw_variant.tests').info('plain stdlib message')
        get_logger('klaw_variant.tests').info('structured_message', port=8080)

        err = capsys.readouterr().err
        assert 'plain stdlib message' in err
        assert '"event": "structured_message"' in err
        assert '"port": 8080' in err

