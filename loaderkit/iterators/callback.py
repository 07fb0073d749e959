"""Continuation-passing iterator for the `async` loader kind.

Each loader is called as `fn(*args, next)` and must call `next(err, value)`
exactly once. The chain is strictly sequential: the following loader only
starts after `next` was called without an error. The first error (passed to
`next` or raised by a loader) skips the remaining loaders and goes to `done`.

Every loader gets its own `next`; a call to a continuation that is no longer
the pending one (a second call, or a call after the chain finished) is ignored
with a warning.

Loaders that call `next` synchronously are driven by a loop rather than by
nested calls, so long stacks do not grow the Python call stack. Continuations
may be called from other threads; the loop hand-off is guarded by a lock.
"""

from __future__ import annotations

import threading
from typing import Any, Callable

from loaderkit.context import ExecutionContext, bound
from loaderkit.iterators.base import first_value, require_callable, step_failed

Done = Callable[..., Any]
Next = Callable[..., None]


class _CallbackRun:
    def __init__(self, ctx: ExecutionContext, stack: list[Any], done: Done):
        self.ctx = ctx
        self.stack = stack
        self.done = done
        self.index = 0
        self.finished = False
        self._lock = threading.Lock()
        self._pending: tuple[Any, ...] | None = None
        self._driving = False
        self._awaiting: int | None = None

    def start(self, data: tuple[Any, ...]) -> None:
        self._resume(data)

    def _continuation(self, index: int) -> Next:
        def next(err: Any = None, value: Any = None) -> None:
            with self._lock:
                stale = self.finished or self._awaiting != index
                if not stale:
                    self._awaiting = None
            if stale:
                self.ctx.logger.warning(
                    "Loader continuation called more than once in %s",
                    self.ctx.name or "<anonymous>",
                )
                return

            step = self.stack[index]
            if err is not None:
                if isinstance(err, BaseException):
                    step_failed(self.ctx, index, step, err)
                self._finish(err, None)
                return

            self.ctx.recorder.on_step_end(self.ctx, index, step)
            self._resume((value,))

        return next

    def _resume(self, args: tuple[Any, ...]) -> None:
        with self._lock:
            self._pending = args
            if self._driving:
                return
            self._driving = True
        self._drive()

    def _take(self) -> tuple[Any, ...] | None:
        with self._lock:
            args = self._pending
            self._pending = None
            if args is None or self.finished:
                self._driving = False
                return None
            return args

    def _drive(self) -> None:
        while True:
            args = self._take()
            if args is None:
                return
            if self.index >= len(self.stack):
                self._finish(None, first_value(args))
                return

            index = self.index
            step = self.stack[index]
            self.index += 1
            self.ctx.recorder.on_step_start(self.ctx, index, step)
            with self._lock:
                self._awaiting = index
            try:
                fn = require_callable(step, index=index, kind=self.ctx.kind)
                with bound(self.ctx):
                    fn(*args, self._continuation(index))
            except Exception as exc:
                with self._lock:
                    finished = self.finished
                    self._awaiting = None
                    self._pending = None
                if finished:
                    with self._lock:
                        self._driving = False
                    raise
                step_failed(self.ctx, index, step, exc)
                self._finish(exc, None)
                return

    def _finish(self, err: Any, value: Any) -> None:
        with self._lock:
            self.finished = True
            self._driving = False
        if err is not None:
            self.done(err)
        else:
            self.done(None, value)


def iterator_async(ctx: ExecutionContext, stack: list[Any]) -> Callable[..., None]:
    def run(*args: Any) -> None:
        if not args or not callable(args[-1]):
            raise TypeError("async loaders require a completion callback as the last argument")
        *data, done = args
        if not stack:
            done(None, first_value(tuple(data)))
            return
        _CallbackRun(ctx, stack, done).start(tuple(data))

    return run
