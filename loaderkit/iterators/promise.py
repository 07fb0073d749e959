"""Promise iterator: loaders may return awaitables; the chain is awaited in order."""

from __future__ import annotations

import inspect
from typing import Any, Callable, Coroutine

from loaderkit.context import ExecutionContext, bound
from loaderkit.iterators.base import first_value, require_callable, step_failed


def iterator_promise(
    ctx: ExecutionContext, stack: list[Any]
) -> Callable[..., Coroutine[Any, Any, Any]]:
    async def chain(args: tuple[Any, ...]) -> Any:
        if not stack:
            return first_value(args)

        value: Any = None
        with bound(ctx):
            for index, step in enumerate(stack):
                call_args = args if index == 0 else (value,)
                ctx.recorder.on_step_start(ctx, index, step)
                try:
                    fn = require_callable(step, index=index, kind=ctx.kind)
                    result = fn(*call_args)
                    if inspect.isawaitable(result):
                        result = await result
                except Exception as exc:
                    step_failed(ctx, index, step, exc)
                    raise
                value = result
                ctx.recorder.on_step_end(ctx, index, step)
        return value

    def run(*args: Any) -> Coroutine[Any, Any, Any]:
        return chain(args)

    return run
