"""Classification of values that may appear in a loader stack."""

from __future__ import annotations

import inspect
from typing import Any, Literal, TypeAlias

StepKind: TypeAlias = Literal["func", "stream", "promise", "list", "name"]


def is_stream(value: Any) -> bool:
    return value is not None and callable(getattr(value, "pipe", None))


def is_promise(value: Any) -> bool:
    if value is None:
        return False
    if inspect.isawaitable(value):
        return True
    return callable(getattr(value, "then", None))


def is_loader(value: Any) -> bool:
    """Return True if `value` can be used as a loader (or a list of loaders).

    Strings are never loader-like on their own; they only become steps once a
    registry resolves them by name.
    """

    if value is None or isinstance(value, (str, bytes)):
        return False
    if isinstance(value, (list, tuple)):
        return True
    return is_stream(value) or is_promise(value) or callable(value)


def classify(value: Any) -> StepKind | None:
    """Map a raw stack entry onto one of the closed step kinds.

    Returns None for values that cannot take part in a stack (plain data).
    """

    if isinstance(value, str):
        return "name" if value.strip() else None
    if isinstance(value, (list, tuple)):
        return "list"
    if is_stream(value):
        return "stream"
    if is_promise(value) and not callable(value):
        return "promise"
    if callable(value):
        return "func"
    return None


def step_label(step: Any) -> str:
    """Human readable label for a step, used in logs and error context."""

    if isinstance(step, str):
        return step
    module = getattr(step, "__module__", None) or "<unknown_module>"
    qualname = getattr(step, "__qualname__", None) or getattr(step, "__name__", None)
    if qualname is None:
        return f"<{type(step).__name__}>"
    return f"{module}.{qualname}"
