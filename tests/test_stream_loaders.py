import asyncio
from pathlib import Path

import pytest
import yaml

from loaderkit import LoaderCache, LoaderNotCallableError, Stream, through


def _write_fixture(tmp_path: Path) -> str:
    path = tmp_path / "a.bar"
    path.write_text("c: d", encoding="utf-8")
    return str(path)


def _make_loaders() -> LoaderCache:
    loaders = LoaderCache({"default_kind": "stream"})

    def read(fp, push):
        push(Path(fp).read_text(encoding="utf-8"))

    def parse(text, push):
        push(yaml.safe_load(text))

    def data(obj, push):
        obj["e"] = "f"
        push(obj)

    loaders.register("read", through(read))
    loaders.register("yaml", through(parse))
    loaders.register("data", through(data))
    return loaders


def test_pipes_the_value_through_every_stream(tmp_path):
    loaders = _make_loaders()
    loaders.register("bar", ["read", "yaml", "data"])
    events = []

    stream = loaders.compose("bar")(_write_fixture(tmp_path))
    stream.on("data", lambda obj: events.append(("data", obj)))
    stream.on("end", lambda: events.append(("end", None)))
    stream.run()

    assert events == [("data", {"c": "d", "e": "f"}), ("end", None)]


def test_nothing_flows_before_the_consumer_starts_the_stream(tmp_path):
    loaders = _make_loaders()
    loaders.register("bar", ["read", "yaml"])
    seen = []

    stream = loaders.compose("bar")(_write_fixture(tmp_path))
    stream.on("data", seen.append)

    assert seen == []
    assert stream.collect() == [{"c": "d"}]


def test_stream_loaders_passed_at_compose_time(tmp_path):
    loaders = _make_loaders()
    loaders.register("bar", ["read", "yaml"])

    assert list(loaders.compose("bar", ["data"])(_write_fixture(tmp_path))) == [
        {"c": "d", "e": "f"}
    ]


def test_plain_functions_are_lifted_into_transforms(tmp_path):
    loaders = _make_loaders()
    loaders.register("bar", ["read", yaml.safe_load])

    assert loaders.compose("bar")(_write_fixture(tmp_path)).collect() == [{"c": "d"}]


def test_deferred_write_lets_listeners_attach_inside_an_event_loop(tmp_path):
    loaders = _make_loaders()
    loaders.register("bar", ["read", "yaml", "data"])
    path = _write_fixture(tmp_path)

    async def consume():
        finished = asyncio.Event()
        results = []
        stream = loaders.compose("bar")(path)
        stream.on("data", results.append).on("end", finished.set)
        await asyncio.wait_for(finished.wait(), timeout=5)
        return results

    assert asyncio.run(consume()) == [{"c": "d", "e": "f"}]


def test_errors_are_emitted_as_error_events():
    loaders = LoaderCache({"default_kind": "stream"})

    def explode(record, push):
        raise ValueError("bad record")

    loaders.register("chain", through(explode), lambda record: record)
    errors = []
    data = []

    stream = loaders.compose("chain")("x")
    stream.on("error", errors.append).on("data", data.append).run()

    assert data == []
    assert len(errors) == 1
    assert str(errors[0]) == "bad record"
    assert errors[0].loader_kind == "stream"
    assert stream.finished is False


def test_error_without_listener_is_raised_to_the_caller():
    loaders = LoaderCache({"default_kind": "stream"})
    loaders.register("chain", "nowhere")

    with pytest.raises(LoaderNotCallableError):
        loaders.compose("chain")("x").run()


def test_empty_stack_is_a_passthrough():
    loaders = LoaderCache({"default_kind": "stream"})

    assert loaders.compose("missing-name")({"a": 1}).collect() == [{"a": 1}]


def test_through_end_hook_flushes_buffered_records():
    loaders = LoaderCache({"default_kind": "stream"})
    buffer = []

    def hold(record, push):
        buffer.append(record)

    def flush(push):
        push(list(buffer))

    def split(text, push):
        for part in text.split(","):
            push(part)

    loaders.register("batch", through(split), through(hold, flush))

    assert loaders.compose("batch")("a,b").collect() == [["a", "b"]]


def test_registered_streams_are_reusable_across_invocations():
    loaders = LoaderCache({"default_kind": "stream"})
    loaders.register("upper", through(lambda record, push: push(record.upper())))
    fn = loaders.compose("upper")

    assert fn("a").collect() == ["A"]
    assert fn("b").collect() == ["B"]


def test_stream_pipe_concatenates_stages():
    first = through(lambda record, push: push(record + 1))
    second = through(lambda record, push: push(record * 10))

    piped = first.pipe(second).pipe(lambda record: record - 1)

    assert isinstance(piped, Stream)
    assert len(piped.stages) == 3
    assert piped.write(1).end().collect() == [19]


def test_collect_refuses_a_started_stream():
    stream = through(lambda record, push: push(record)).write(1).end()
    stream.run()

    with pytest.raises(RuntimeError, match=r"already started"):
        stream.collect()


def test_load_stream_matches_by_extension(tmp_path):
    loaders = _make_loaders()
    loaders.register("bar", ["read", "yaml", "data"])

    assert loaders.load_stream(_write_fixture(tmp_path)).collect() == [{"c": "d", "e": "f"}]


def test_deferred_flow_error_without_listener_goes_to_the_loop_handler():
    loaders = LoaderCache({"default_kind": "stream"})

    def explode(record, push):
        raise ValueError("bad record")

    loaders.register("chain", through(explode))

    async def consume():
        reported = []
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        stream = loaders.compose("chain")("x")
        ended = []
        stream.on("end", lambda: ended.append(True))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return stream, reported, ended

    stream, reported, ended = asyncio.run(consume())

    assert len(reported) == 1
    assert reported[0]["stream"] is stream
    assert reported[0]["exception"] is stream.error
    assert str(stream.error) == "bad record"
    assert ended == []
    assert stream.finished is False


class _Shout:
    def pipe(self, dest):
        return through(lambda record, push: push(record.upper())).pipe(dest)


def test_foreign_stream_likes_are_adapted_through_pipe():
    loaders = LoaderCache({"default_kind": "stream"})
    loaders.register("shout", _Shout(), lambda record: record + "!")

    assert loaders.compose("shout")("hey").collect() == ["HEY!"]


def test_stream_likes_that_do_not_yield_a_stream_fail_the_flow():
    loaders = LoaderCache({"default_kind": "stream"})

    class Sink:
        def pipe(self, dest):
            return object()

    loaders.register("sink", Sink())

    with pytest.raises(LoaderNotCallableError):
        loaders.compose("sink")("x").collect()
