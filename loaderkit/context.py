"""Per-invocation execution context exposed to running loaders."""

from __future__ import annotations

import contextlib
import logging
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator, Protocol

if TYPE_CHECKING:
    from loaderkit.cache import LoaderCache
    from loaderkit.recorder import StepRecorder
    from loaderkit.stack import LoaderStack


class IteratorFactory(Protocol):
    def __call__(self, ctx: "ExecutionContext", stack: list[Any]) -> Any:
        ...


@dataclass
class ExecutionContext:
    """What a loader sees as its receiver while it runs.

    `app` is the owning engine, so a loader can compose or resolve other
    stacks from inside a pipeline.
    """

    app: "LoaderCache"
    kind: str
    options: dict[str, Any]
    iterator: IteratorFactory
    loaders: "LoaderStack"
    recorder: "StepRecorder"
    logger: logging.Logger
    name: str | None = None
    stack: list[Any] = field(default_factory=list)


_current: ContextVar[ExecutionContext | None] = ContextVar("loaderkit_context", default=None)


def current_context() -> ExecutionContext:
    ctx = _current.get()
    if ctx is None:
        raise RuntimeError("current_context() called outside of a running loader")
    return ctx


@contextlib.contextmanager
def bound(ctx: ExecutionContext) -> Iterator[ExecutionContext]:
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)
