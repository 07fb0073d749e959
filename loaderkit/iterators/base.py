"""Helpers shared by the built-in iterators."""

from __future__ import annotations

from typing import Any, Callable

from loaderkit.context import ExecutionContext
from loaderkit.errors import LoaderNotCallableError, attach_step_error
from loaderkit.predicates import step_label
from loaderkit.recorder import report_error


def require_callable(step: Any, *, index: int, kind: str) -> Callable[..., Any]:
    if not callable(step):
        raise LoaderNotCallableError(step, index=index, kind=kind)
    return step


def step_failed(ctx: ExecutionContext, index: int, step: Any, exc: BaseException) -> None:
    """Attach loader context to `exc` and notify the recorder."""

    attach_step_error(
        exc,
        kind=ctx.kind,
        index=index,
        name=step_label(step),
        stack=ctx.name,
    )
    report_error(ctx, index, step, exc)


def first_value(args: tuple[Any, ...]) -> Any:
    return args[0] if args else None
