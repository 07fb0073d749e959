"""Synchronous iterator: each loader's return value feeds the next one."""

from __future__ import annotations

from typing import Any, Callable

from loaderkit.context import ExecutionContext, bound
from loaderkit.iterators.base import first_value, require_callable, step_failed


def iterator_sync(ctx: ExecutionContext, stack: list[Any]) -> Callable[..., Any]:
    def run(*args: Any) -> Any:
        if not stack:
            return first_value(args)

        value: Any = None
        with bound(ctx):
            for index, step in enumerate(stack):
                call_args = args if index == 0 else (value,)
                ctx.recorder.on_step_start(ctx, index, step)
                try:
                    fn = require_callable(step, index=index, kind=ctx.kind)
                    value = fn(*call_args)
                except Exception as exc:
                    step_failed(ctx, index, step, exc)
                    raise
                ctx.recorder.on_step_end(ctx, index, step)
        return value

    return run
