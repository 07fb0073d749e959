"""Step observation hooks used by every iterator."""

from __future__ import annotations

from typing import Any, Protocol

from loaderkit.context import ExecutionContext
from loaderkit.predicates import step_label


class StepRecorder(Protocol):
    def on_step_start(self, ctx: ExecutionContext, index: int, step: Any) -> None:
        ...

    def on_step_end(self, ctx: ExecutionContext, index: int, step: Any) -> None:
        ...

    def on_step_error(
        self, ctx: ExecutionContext, index: int, step: Any, exc: BaseException
    ) -> None:
        ...


def _path(ctx: ExecutionContext, index: int) -> str:
    return f"{ctx.name or '<anonymous>'}[{index}]"


class DefaultStepRecorder:
    def on_step_start(self, ctx: ExecutionContext, index: int, step: Any) -> None:
        ctx.logger.debug(
            "Step: %s (kind=%s, source=%s)", _path(ctx, index), ctx.kind, step_label(step)
        )

    def on_step_end(self, ctx: ExecutionContext, index: int, step: Any) -> None:
        ctx.logger.debug("Completed step %s", _path(ctx, index))

    def on_step_error(
        self, ctx: ExecutionContext, index: int, step: Any, exc: BaseException
    ) -> None:
        ctx.logger.error("Step failed: %s (%s)", _path(ctx, index), exc)


class NullStepRecorder:
    def on_step_start(self, ctx: ExecutionContext, index: int, step: Any) -> None:
        return

    def on_step_end(self, ctx: ExecutionContext, index: int, step: Any) -> None:
        return

    def on_step_error(
        self, ctx: ExecutionContext, index: int, step: Any, exc: BaseException
    ) -> None:
        return


def validate_recorder(recorder: Any) -> None:
    required = ("on_step_start", "on_step_end", "on_step_error")
    for name in required:
        method = getattr(recorder, name, None)
        if method is None or not callable(method):
            raise TypeError(f"Step recorder missing required method: {name}")


def report_error(ctx: ExecutionContext, index: int, step: Any, exc: BaseException) -> None:
    """Notify the recorder of a failure; a failing recorder never masks `exc`."""

    try:
        ctx.recorder.on_step_error(ctx, index, step, exc)
    except Exception:
        ctx.logger.exception("Step recorder failed during error handling for %s", _path(ctx, index))
