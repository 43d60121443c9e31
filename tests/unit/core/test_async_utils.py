import asyncio
import contextvars

import pytest

from strata.async_utils import is_async_callable, run_sync

request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")


async def double(value):
    await asyncio.sleep(0)
    return value * 2


async def explode():
    raise KeyError("missing")


class FakeAsyncCallable:
    async def __call__(self):
        return "called"

    async def method(self):
        return "method"

    def sync_method(self):
        return "sync"


async def read_request_id():
    return request_id.get()


def test_is_async_callable():
    fake = FakeAsyncCallable()

    assert is_async_callable(double)
    assert is_async_callable(fake)
    assert is_async_callable(fake.method)
    assert not is_async_callable(fake.sync_method)
    assert not is_async_callable(len)
    assert not is_async_callable(42)


def test_run_sync_without_a_loop():
    assert run_sync(double(4)) == 8


def test_run_sync_propagates_exceptions():
    with pytest.raises(KeyError):
        run_sync(explode())


def test_run_sync_accepts_awaitables_that_are_not_coroutines():
    class Ready:
        def __await__(self):
            return double(5).__await__()

    assert run_sync(Ready()) == 10


def test_run_sync_inside_a_running_loop_keeps_context_variables():
    async def main():
        request_id.set("req-1")
        return run_sync(read_request_id())

    assert asyncio.run(main()) == "req-1"
