import asyncio

from loaderkit import classify, is_loader, is_promise, is_stream, through


class Thenable:
    def then(self, on_ok, on_err=None):
        return self


class PipeOnly:
    def pipe(self, dest):
        return dest


def test_functions_lists_streams_and_promises_are_loaders():
    async def coro_fn():
        return 1

    coro = coro_fn()
    try:
        assert is_loader(lambda value: value)
        assert is_loader([])
        assert is_loader(())
        assert is_loader(PipeOnly())
        assert is_loader(Thenable())
        assert is_loader(coro)
        assert is_promise(coro)
    finally:
        coro.close()


def test_plain_data_is_not_a_loader():
    for value in (None, "read", b"bytes", 3, 2.5, {"a": 1}, object()):
        assert not is_loader(value)


def test_stream_and_promise_checks_never_raise_on_none():
    assert not is_stream(None)
    assert not is_promise(None)


def test_classify_returns_a_closed_set_of_kinds():
    assert classify("read") == "name"
    assert classify(" ") is None
    assert classify([1]) == "list"
    assert classify(through(lambda record, push: push(record))) == "stream"
    assert classify(Thenable()) == "promise"
    assert classify(len) == "func"
    assert classify(42) is None


def test_futures_are_promise_like():
    loop = asyncio.new_event_loop()
    try:
        future = loop.create_future()
        assert classify(future) == "promise"
    finally:
        loop.close()
