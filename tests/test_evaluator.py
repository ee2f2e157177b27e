"""Tests for generator-driven short-circuit evaluation."""

import pytest
from klaw_variant import Err, NoValueError, Nothing, Ok, Some, option, result
from klaw_variant.evaluator import Step, evaluate


class TestStep:
    """Tests for the Step record."""

    def test_proceed(self):
        step = Step.proceed(1)
        assert step.failed is False
        assert step.value == 1

    def test_abort(self):
        step = Step.abort('failure')
        assert step.failed is True
        assert step.value == 'failure'


class TestEvaluate:
    """Tests for the raw evaluator."""

    def test_sends_values_back(self):
        def body():
            a = yield 1
            b = yield 2
            return a + b

        output = evaluate(body(), Step.proceed, lambda value: ('done', value))
        assert output == ('done', 3)

    def test_aborts_on_failure(self):
        def body():
            yield 1
            yield -1
            return 'unreachable'

        inspect_step = lambda item: Step.abort('negative') if item < 0 else Step.proceed(item)  # noqa: E731
        assert evaluate(body(), inspect_step, lambda value: value) == 'negative'

    def test_body_without_yields(self):
        def body():
            return 7
            yield  # pragma: no cover

        assert evaluate(body(), Step.proceed, lambda value: value) == 7


class TestResultUse:
    """Tests for result.use short-circuiting."""

    def test_stops_at_first_error(self):
        """Scenario: statements after a failing yield never run, but finally does."""
        seen = []
        cleaned_up = []

        def body():
            try:
                a = yield Ok(1)
                seen.append(a)
                b = yield Err('E')
                seen.append(b)
                c = yield Ok(3)
                seen.append(c)
                return a + b + c
            finally:
                cleaned_up.append(True)

        assert result.use(body) == Err('E')
        assert seen == [1]
        assert cleaned_up == [True]

    def test_raw_return_is_wrapped(self):
        def body():
            a = yield Ok(1)
            b = yield Ok(2)
            return a + b

        assert result.use(body) == Ok(3)

    def test_result_return_is_kept(self):
        def body():
            yield Ok(1)
            return Err('late')

        assert result.use(body) == Err('late')

    def test_nothing_becomes_no_value_error(self):
        def body():
            value = yield Nothing
            return value

        assert result.use(body) == Err(NoValueError())

    def test_some_is_unwrapped(self):
        def body():
            value = yield Some(4)
            return value * 2

        assert result.use(body) == Ok(8)

    def test_body_exception_propagates(self):
        def body():
            yield Ok(1)
            raise KeyError('boom')

        with pytest.raises(KeyError):
            result.use(body)

    def test_create_use(self):
        @result.create_use
        def add(a, b):
            x = yield Ok(a)
            y = yield result.from_predicate(b, lambda n: n > 0)
            return x + y

        assert add(1, 2) == Ok(3)
        assert add(1, -2).is_err()
        assert add.__name__ == 'add'


class TestOptionUse:
    """Tests for option.use short-circuiting."""

    def test_stops_at_nothing(self):
        seen = []

        def body():
            a = yield Some(1)
            seen.append(a)
            yield Nothing
            seen.append('after')
            return a

        assert option.use(body) is Nothing
        assert seen == [1]

    def test_raw_return_goes_through_from_nullable(self):
        def body():
            a = yield Some(1)
            return a + 1

        def empty():
            yield Some(1)
            return None

        assert option.use(body) == Some(2)
        assert option.use(empty) is Nothing

    def test_err_aborts(self):
        def body():
            yield Err('e')
            return 1

        assert option.use(body) is Nothing

    def test_ok_is_unwrapped(self):
        def body():
            value = yield Ok('x')
            return value

        assert option.use(body) == Some('x')

    def test_create_use(self):
        @option.create_use
        def lookup(mapping, key):
            value = yield option.from_nullable(mapping.get(key))
            return value.upper()

        assert lookup({'a': 'x'}, 'a') == Some('X')
        assert lookup({}, 'a') is Nothing


class TestFamilySteps:
    """Tests for the per-family step and finish functions used by the sync and async runners."""

    def test_option_steps(self):
        assert option.inspect_yield(Some(1)) == Step.proceed(1)
        assert option.inspect_yield(Err('e')) == Step.abort(Nothing)
        assert option.inspect_yield('raw') == Step.proceed('raw')
        assert option.finish_body(None) is Nothing
        assert option.finish_body(Ok(2)) == Some(2)

    def test_result_steps(self):
        assert result.inspect_yield(Ok(1)) == Step.proceed(1)
        assert result.inspect_yield(Err('e')) == Step.abort(Err('e'))
        aborted = result.inspect_yield(Nothing)
        assert aborted.failed is True
        assert isinstance(aborted.value.error, NoValueError)
        assert result.finish_body(3) == Ok(3)
        assert result.finish_body(Some(4)) == Ok(4)

    def test_drive_evaluate(self):
        def body():
            a = yield Some(2)
            b = yield Ok(3)
            return a * b

        assert evaluate(body(), option.inspect_yield, option.finish_body) == Some(6)
        assert evaluate(body(), result.inspect_yield, result.finish_body) == Ok(6)
