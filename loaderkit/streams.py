"""Minimal push-based record streams for the `stream` loader kind.

A `Stream` is an ordered list of stages. Piping streams concatenates their
stages into a new stream, so a registered stream can be reused by any number
of pipelines. Records written to a stream are buffered and only flow once the
stream runs:

- inside a running asyncio loop, `end()` schedules the flow on the next tick
  (`loop.call_soon`), after the caller had a chance to attach listeners
- otherwise the flow starts when the consumer calls `run()`, `collect()` or
  iterates the stream

Listeners are attached with `on("data" | "error" | "end", handler)`. A failing
stage stops the flow and is reported as an `error` event; with no `error`
listener the exception is raised to whoever started the flow. When the loop
started it (deferred flow), there is no caller to raise to: the exception is
kept on `stream.error` and passed to the loop's exception handler, and `end`
never fires, so consumers inside a loop should always listen for `error`.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Iterator

Push = Callable[[Any], None]
WriteFn = Callable[[Any, Push], None]
EndFn = Callable[[Push], None]

EVENTS: tuple[str, ...] = ("data", "error", "end")


@dataclass(frozen=True)
class Stage:
    write: WriteFn
    end: EndFn | None = None


class Stream:
    def __init__(self, *stages: Stage, name: str | None = None):
        self.name = name
        self._stages: tuple[Stage, ...] = tuple(stages)
        self._listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)
        self._buffer: list[Any] = []
        self._ended = False
        self._started = False
        self._finished = False
        self.error: BaseException | None = None

    def __repr__(self) -> str:
        return f"Stream(name={self.name!r}, stages={len(self._stages)})"

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    @property
    def finished(self) -> bool:
        return self._finished

    def pipe(self, dest: "Stream | Callable[[Any], Any]") -> "Stream":
        """Return a new stream running this stream's stages, then `dest`'s."""

        target = as_stream(dest)
        return Stream(*self._stages, *target._stages, name=target.name or self.name)

    def on(self, event: str, handler: Callable[..., Any]) -> "Stream":
        if event not in EVENTS:
            raise ValueError(f"Unknown stream event: {event} (expected one of: {', '.join(EVENTS)})")
        if not callable(handler):
            raise TypeError(f"Stream {event} handler must be callable (type={type(handler).__name__})")
        self._listeners[event].append(handler)
        return self

    def write(self, record: Any) -> "Stream":
        if self._ended:
            raise ValueError("write after end")
        self._buffer.append(record)
        return self

    def end(self) -> "Stream":
        if self._ended:
            return self
        self._ended = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return self
        loop.call_soon(self._run_deferred, loop)
        return self

    def _run_deferred(self, loop: asyncio.AbstractEventLoop) -> None:
        try:
            self.run()
        except Exception as exc:
            loop.call_exception_handler(
                {
                    "message": f"Unhandled error in stream {self.name or '<anonymous>'}",
                    "exception": exc,
                    "stream": self,
                }
            )

    def run(self) -> "Stream":
        """Push buffered records through every stage (once)."""

        if self._started:
            return self
        self._started = True
        try:
            for record in self._buffer:
                self._feed(0, record)
            for index, stage in enumerate(self._stages):
                if stage.end is not None:
                    stage.end(self._pusher(index + 1))
        except Exception as exc:
            self.error = exc
            self._emit_error(exc)
            return self
        self._buffer.clear()
        self._finished = True
        for handler in list(self._listeners["end"]):
            handler()
        return self

    def collect(self) -> list[Any]:
        """Run the stream and return every emitted record, raising on error."""

        if self._started:
            raise RuntimeError("collect() called on a stream that already started flowing")
        records: list[Any] = []
        errors: list[BaseException] = []
        self.on("data", records.append).on("error", errors.append)
        self.run()
        if errors:
            raise errors[0]
        return records

    def __iter__(self) -> Iterator[Any]:
        return iter(self.collect())

    def _pusher(self, index: int) -> Push:
        return lambda record: self._feed(index, record)

    def _feed(self, index: int, record: Any) -> None:
        if index >= len(self._stages):
            for handler in list(self._listeners["data"]):
                handler(record)
            return
        self._stages[index].write(record, self._pusher(index + 1))

    def _emit_error(self, exc: BaseException) -> None:
        handlers = list(self._listeners["error"])
        if not handlers:
            raise exc
        for handler in handlers:
            handler(exc)


def through(write: WriteFn, end: EndFn | None = None, *, name: str | None = None) -> Stream:
    """Create a single-stage stream from `write(record, push)` (and `end(push)`)."""

    if not callable(write):
        raise TypeError(f"through() write must be callable (type={type(write).__name__})")
    if end is not None and not callable(end):
        raise TypeError(f"through() end must be callable (type={type(end).__name__})")
    return Stream(Stage(write=write, end=end), name=name or getattr(write, "__name__", None))


def lift(fn: Callable[[Any], Any]) -> Stream:
    """Turn a plain one-record function into a single-record transform."""

    return through(lambda record, push: push(fn(record)), name=getattr(fn, "__name__", None))


def passthrough() -> Stream:
    return through(lambda record, push: push(record), name="passthrough")


def as_stream(value: Any) -> Stream:
    if isinstance(value, Stream):
        return value
    if callable(value):
        return lift(value)
    raise TypeError(f"Cannot pipe into {type(value).__name__}; expected a Stream or callable")
