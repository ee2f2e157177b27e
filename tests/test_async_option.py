"""Tests for AsyncOption."""

import inspect

import anyio
import pytest
from klaw_variant import AsyncOption, AsyncResult, Err, NoValueError, Nothing, Ok, Panic, Some, UnwrapError


async def some_later(value):
    await anyio.sleep(0)
    return Some(value)


async def nothing_later():
    await anyio.sleep(0)
    return Nothing


class TestAsyncOptionCreation:
    """Tests for AsyncOption constructors."""

    @pytest.mark.asyncio
    async def test_some_and_nothing(self):
        assert await AsyncOption.some(1) == Some(1)
        assert await AsyncOption.nothing() is Nothing

    @pytest.mark.asyncio
    async def test_from_option(self):
        assert await AsyncOption.from_option(Some('x')) == Some('x')

    @pytest.mark.asyncio
    async def test_from_nullable_and_falsy(self):
        assert await AsyncOption.from_nullable(None) is Nothing
        assert await AsyncOption.from_nullable(0) == Some(0)
        assert await AsyncOption.from_falsy(0) is Nothing

    @pytest.mark.asyncio
    async def test_from_predicate(self):
        positive = AsyncOption.predicate(lambda n: n > 0)
        assert await positive(1) == Some(1)
        assert await positive(-1) is Nothing

    @pytest.mark.asyncio
    async def test_try_catch(self):
        async def find(value):
            return value

        async def broken():
            raise ConnectionError('down')

        assert await AsyncOption.try_catch(lambda: find(3)) == Some(3)
        assert await AsyncOption.try_catch(lambda: find(None)) is Nothing
        assert await AsyncOption.try_catch(broken) is Nothing

    @pytest.mark.asyncio
    async def test_try_catch_keeps_option_output(self):
        assert await AsyncOption.try_catch(nothing_later) is Nothing
        assert await AsyncOption.try_catch(lambda: some_later(2)) == Some(2)

    @pytest.mark.asyncio
    async def test_enhance(self):
        @AsyncOption.enhance
        async def lookup(mapping, key):
            return mapping.get(key)

        assert await lookup({'a': 1}, 'a') == Some(1)
        assert await lookup({}, 'a') is Nothing
        assert lookup.__name__ == 'lookup'

    def test_is_async_option(self):
        assert AsyncOption.is_async_option(AsyncOption.some(1))
        assert not AsyncOption.is_async_option(Some(1))


class TestAsyncOptionQueue:
    """Tests for operations deferred until the option is awaited."""

    @pytest.mark.asyncio
    async def test_maps_are_queued(self):
        """Scenario: two maps queue up and apply in order on await."""
        pending = AsyncOption.some(2).map(lambda n: n * 2).map(lambda n: n + 1)
        assert pending.pending == ['map', 'map']
        assert await pending == Some(5)

    @pytest.mark.asyncio
    async def test_filter_is_queued(self):
        pending = AsyncOption.some(3).filter(lambda n: n > 5)
        assert pending.pending == ['filter']
        assert await pending is Nothing

    def test_queues_are_not_shared(self):
        base = AsyncOption.some(1)
        left = base.map(lambda n: n + 1)
        right = base.filter(lambda n: n > 0).map(str)
        assert base.pending == []
        assert left.pending == ['map']
        assert right.pending == ['filter', 'map']

    @pytest.mark.asyncio
    async def test_nothing_skips_queue(self):
        calls = []
        assert await AsyncOption.nothing().map(calls.append) is Nothing
        assert calls == []

    @pytest.mark.asyncio
    async def test_map_to_none(self):
        assert await AsyncOption.some(1).map(lambda _: None) is Nothing

    @pytest.mark.asyncio
    async def test_raising_map_resolves_to_nothing(self):
        assert await AsyncOption.some(1).map(lambda n: n / 0) is Nothing

    def test_repr_shows_queue(self):
        assert repr(AsyncOption.some(1).map(str)) == 'AsyncOption(<pending>, queue=[map])'


class TestAsyncOptionChaining:
    """Tests for and_then, or_else and friends."""

    @pytest.mark.asyncio
    async def test_and_then_accepts_every_option_shape(self):
        assert await AsyncOption.some(1).and_then(lambda n: Some(n + 1)) == Some(2)
        assert await AsyncOption.some(1).and_then(lambda n: some_later(n + 1)) == Some(2)
        assert await AsyncOption.some(1).and_then(lambda n: AsyncOption.some(n + 1)) == Some(2)
        assert await AsyncOption.some(1).and_then(lambda n: Nothing) is Nothing

    @pytest.mark.asyncio
    async def test_and_then_non_option_resolves_to_nothing(self, log_events):
        assert await AsyncOption.some(1).and_then(lambda n: n + 1) is Nothing
        warnings = [event for event in log_events if event['event'] == 'non_variant_output']
        assert warnings
        assert warnings[0]['output_type'] == 'int'

    @pytest.mark.asyncio
    async def test_map_after_and_then(self):
        assert await AsyncOption.some(1).and_then(lambda n: some_later(n * 10)).map(lambda n: n + 1) == Some(11)

    @pytest.mark.asyncio
    async def test_or_else_and_or(self):
        assert await AsyncOption.nothing().or_else(lambda: some_later(9)) == Some(9)
        assert await AsyncOption.nothing().or_(Some(0)) == Some(0)
        assert await AsyncOption.some(1).or_(Some(0)) == Some(1)

    @pytest.mark.asyncio
    async def test_tap_with_async_callback(self):
        seen = []

        async def record(value):
            seen.append(value)

        assert await AsyncOption.some(1).tap(record).tap(seen.append) == Some(1)
        assert seen == [1, 1]

    @pytest.mark.asyncio
    async def test_zip(self):
        assert await AsyncOption.some(1).zip(some_later(2)) == Some((1, 2))
        assert await AsyncOption.some(1).zip(Nothing) is Nothing
        assert await AsyncOption.some(2).zip_with(AsyncOption.some(3), lambda a, b: a * b) == Some(6)

    @pytest.mark.asyncio
    async def test_do_notation(self):
        async def load_port(_):
            return 8080

        output = await (
            AsyncOption.do()
            .bind('host', lambda _: some_later('localhost'))
            .let('port', load_port)
            .map(lambda ctx: f'{ctx["host"]}:{ctx["port"]}')
        )
        assert output == Some('localhost:8080')

    @pytest.mark.asyncio
    async def test_bind_stops_on_nothing(self):
        output = await AsyncOption.some(1).bind_to('a').bind('b', lambda _: nothing_later())
        assert output is Nothing


class TestAsyncOptionConsumption:
    """Tests for consuming methods."""

    @pytest.mark.asyncio
    async def test_match(self):
        async def describe(value):
            return f'got {value}'

        assert await AsyncOption.some(1).match(some=describe, none=lambda: 'none') == 'got 1'
        assert await AsyncOption.nothing().match(some=describe, none=lambda: 'none') == 'none'

    @pytest.mark.asyncio
    async def test_unwrap_family(self):
        assert await AsyncOption.some(1).unwrap() == 1
        assert await AsyncOption.nothing().unwrap_or(0) == 0
        assert await AsyncOption.nothing().unwrap_or_else(lambda: 5) == 5
        assert await AsyncOption.nothing().unwrap_or_none() is None
        with pytest.raises(UnwrapError):
            await AsyncOption.nothing().unwrap()

    @pytest.mark.asyncio
    async def test_expect(self):
        with pytest.raises(LookupError):
            await AsyncOption.nothing().expect(LookupError)

    @pytest.mark.asyncio
    async def test_queries(self):
        assert await AsyncOption.some(1).is_some()
        assert await AsyncOption.nothing().is_none()
        assert await AsyncOption.some(3).contains(lambda n: n > 2)
        assert await AsyncOption.some(3).to_list() == [3]

    @pytest.mark.asyncio
    async def test_awaiting_twice_runs_producer_twice(self):
        calls = []

        async def produce():
            calls.append(1)
            return 1

        pending = AsyncOption.try_catch(produce)
        assert await pending == Some(1)
        assert await pending == Some(1)
        assert len(calls) == 2


class TestAsyncOptionConversion:
    """Tests for conversions to AsyncResult."""

    @pytest.mark.asyncio
    async def test_to_async_result(self):
        converted = AsyncOption.some(1).to_async_result()
        assert isinstance(converted, AsyncResult)
        assert await converted == Ok(1)
        assert await AsyncOption.nothing().to_async_result() == Err(NoValueError())
        assert await AsyncOption.nothing().to_async_result(lambda: 'missing') == Err('missing')

    def test_to_async_option_is_identity(self):
        pending = AsyncOption.some(1)
        assert pending.to_async_option() is pending

    @pytest.mark.asyncio
    async def test_sync_option_to_async(self):
        assert await Some(1).to_async_option() == Some(1)
        assert await Nothing.to_async_result() == Err(NoValueError())


class TestAsyncOptionFromAwaitable:
    """Tests for from_awaitable memoization."""

    @pytest.mark.asyncio
    async def test_awaited_once(self):
        calls = []

        async def load():
            calls.append(1)
            return 'data'

        pending = AsyncOption.from_awaitable(load())
        assert await pending == Some('data')
        assert await pending.map(str.upper) == Some('DATA')
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_exception_resolves_to_nothing(self):
        async def load():
            raise OSError('disk')

        pending = AsyncOption.from_awaitable(load())
        assert await pending is Nothing
        assert await pending is Nothing


class TestAsyncOptionCollections:
    """Tests for values and first_some_of."""

    @pytest.mark.asyncio
    async def test_values(self):
        items = [AsyncOption.some(1), Nothing, some_later(3), AsyncOption.try_catch(nothing_later)]
        assert await AsyncOption.values(items) == [1, 3]

    @pytest.mark.asyncio
    async def test_first_some_of_keeps_input_order(self):
        async def slow(value):
            await anyio.sleep(0.02)
            return Some(value)

        found = await AsyncOption.first_some_of([Nothing, slow('slow'), some_later('fast')])
        assert found == Some('slow')

    @pytest.mark.asyncio
    async def test_first_some_of_all_absent(self):
        assert await AsyncOption.first_some_of([Nothing, nothing_later()]) is Nothing

    @pytest.mark.asyncio
    async def test_values_run_concurrently(self):
        async def wait(value):
            await anyio.sleep(0.05)
            return Some(value)

        with anyio.fail_after(1):
            start = anyio.current_time()
            assert await AsyncOption.values([wait(i) for i in range(10)]) == list(range(10))
            assert anyio.current_time() - start < 0.4


class TestAsyncOptionUse:
    """Tests for async generator evaluation."""

    @pytest.mark.asyncio
    async def test_resolves_to_last_yield(self):
        async def body():
            a = yield AsyncOption.some(1)
            yield some_later(a + 1)

        assert await AsyncOption.use(body) == Some(2)

    @pytest.mark.asyncio
    async def test_stops_at_nothing(self):
        seen = []

        async def body():
            a = yield some_later(1)
            seen.append(a)
            yield AsyncOption.nothing()
            seen.append('after')

        assert await AsyncOption.use(body) is Nothing
        assert seen == [1]

    @pytest.mark.asyncio
    async def test_body_exception_resolves_to_nothing(self):
        async def body():
            yield Some(1)
            raise KeyError('boom')

        assert await AsyncOption.use(body) is Nothing

    @pytest.mark.asyncio
    async def test_create_use(self):
        @AsyncOption.create_use
        async def double(value):
            n = yield AsyncOption.from_nullable(value)
            yield Some(n * 2)

        assert await double(4) == Some(8)
        assert await double(None) is Nothing


class TestAsyncOptionSharedOperands:
    """Tests for awaiting zip/or_ results more than once with coroutine operands."""

    @pytest.mark.asyncio
    async def test_zip_awaited_twice(self):
        zipped = AsyncOption.some(1).zip(some_later(2))
        assert await zipped == Some((1, 2))
        assert await zipped == Some((1, 2))

    @pytest.mark.asyncio
    async def test_zip_with_awaited_twice(self):
        product = AsyncOption.some(3).zip_with(some_later(4), lambda a, b: a * b)
        assert await product == Some(12)
        assert await product == Some(12)

    @pytest.mark.asyncio
    async def test_or_awaited_twice(self):
        fallback = AsyncOption.nothing().or_(some_later(9))
        assert await fallback == Some(9)
        assert await fallback == Some(9)

    @pytest.mark.asyncio
    async def test_zip_closes_unused_coroutine(self):
        operand = some_later(2)
        zipped = AsyncOption.nothing().zip(operand)
        assert await zipped is Nothing
        assert await zipped is Nothing
        assert inspect.getcoroutinestate(operand) == inspect.CORO_CLOSED

    @pytest.mark.asyncio
    async def test_or_closes_unused_coroutine(self):
        operand = some_later(9)
        assert await AsyncOption.some(1).or_(operand) == Some(1)
        assert inspect.getcoroutinestate(operand) == inspect.CORO_CLOSED

    @pytest.mark.asyncio
    async def test_shared_zip_across_chains(self):
        zipped = AsyncOption.some('a').zip(some_later('b'))
        left = zipped.map(lambda pair: pair[0])
        right = zipped.map(lambda pair: pair[1])
        assert (await left, await right) == (Some('a'), Some('b'))


class TestAsyncOptionFromResult:
    """Tests for building an AsyncOption from a Result or an AsyncResult."""

    @pytest.mark.asyncio
    async def test_from_result(self):
        assert await AsyncOption.from_result(Ok(1)) == Some(1)
        assert await AsyncOption.from_result(Ok(None)) is Nothing
        assert await AsyncOption.from_result(Err('e')) is Nothing

    def test_from_result_rejects_option(self):
        with pytest.raises(Panic):
            AsyncOption.from_result(Some(1))

    @pytest.mark.asyncio
    async def test_from_async_result(self):
        assert await AsyncOption.from_async_result(AsyncResult.ok(2)) == Some(2)
        assert await AsyncOption.from_async_result(AsyncResult.error('e')) is Nothing

    @pytest.mark.asyncio
    async def test_from_async_result_coroutine_awaited_twice(self):
        async def load():
            return Ok('x')

        converted = AsyncOption.from_async_result(load())
        assert await converted == Some('x')
        assert await converted == Some('x')

    @pytest.mark.asyncio
    async def test_from_async_result_failing_coroutine(self):
        async def boom():
            raise RuntimeError('down')

        converted = AsyncOption.from_async_result(boom())
        assert await converted is Nothing
        assert await converted is Nothing
