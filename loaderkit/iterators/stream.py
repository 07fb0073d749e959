"""Stream iterator: pipe every loader into one `Stream`.

Registered streams contribute their stages; other stream-likes (a callable
`pipe`) take part when piping them into a `Stream` returns a `Stream`; plain
callables are lifted into single-record transforms. Anything else becomes a
stage that fails when the first record reaches it, so the problem surfaces as
an `error` event.
"""

from __future__ import annotations

from typing import Any, Callable

from loaderkit.context import ExecutionContext, bound
from loaderkit.errors import LoaderNotCallableError
from loaderkit.iterators.base import step_failed
from loaderkit.predicates import is_stream
from loaderkit.streams import Push, Stage, Stream, as_stream, passthrough


def _observed(ctx: ExecutionContext, index: int, step: Any, stage: Stage) -> Stage:
    def write(record: Any, push: Push) -> None:
        ctx.recorder.on_step_start(ctx, index, step)
        try:
            with bound(ctx):
                stage.write(record, push)
        except Exception as exc:
            if not hasattr(exc, "loader_index"):
                step_failed(ctx, index, step, exc)
            raise
        ctx.recorder.on_step_end(ctx, index, step)

    stage_end = stage.end

    def end(push: Push) -> None:
        try:
            with bound(ctx):
                stage_end(push)  # type: ignore[misc]
        except Exception as exc:
            if not hasattr(exc, "loader_index"):
                step_failed(ctx, index, step, exc)
            raise

    return Stage(write=write, end=end if stage_end is not None else None)


def _invalid(ctx: ExecutionContext, index: int, step: Any) -> Stage:
    def write(record: Any, push: Push) -> None:
        raise LoaderNotCallableError(step, index=index, kind=ctx.kind)

    return Stage(write=write)


def _adapt(step: Any) -> Stream | None:
    if isinstance(step, Stream):
        return step
    if is_stream(step):
        # Foreign stream-likes take part when piping into a Stream yields one.
        piped = step.pipe(passthrough())
        return piped if isinstance(piped, Stream) else None
    if callable(step):
        return as_stream(step)
    return None


def _stages_for(ctx: ExecutionContext, index: int, step: Any) -> list[Stage]:
    stream = _adapt(step)
    if stream is None:
        return [_observed(ctx, index, step, _invalid(ctx, index, step))]
    return [_observed(ctx, index, step, stage) for stage in stream.stages]


def iterator_stream(ctx: ExecutionContext, stack: list[Any]) -> Callable[..., Stream]:
    def run(*args: Any) -> Stream:
        if not stack:
            stream = passthrough()
        else:
            stages: list[Stage] = []
            for index, step in enumerate(stack):
                stages.extend(_stages_for(ctx, index, step))
            stream = Stream(*stages, name=ctx.name)
        if args:
            stream.write(args[0])
        return stream.end()

    return run
