"""Call-time argument splitting for composed loaders."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from loaderkit.predicates import is_loader


@dataclass(frozen=True)
class CallArgs:
    data: tuple[Any, ...]
    extra: tuple[Any, ...] = ()
    done: Callable[..., Any] | None = field(default=None)


def split_call_args(args: Sequence[Any], kind: str) -> CallArgs:
    """Separate leading data arguments from trailing loader-like arguments.

    The first argument is always data, even when it is itself callable. For
    kind="async" the last trailing loader-like argument is the completion
    callback and is not part of `extra`.
    """

    items = tuple(args)
    end = len(items)
    while end > 1 and is_loader(items[end - 1]):
        end -= 1

    data = items[:end]
    trailing = items[end:]
    done = None
    if kind == "async" and trailing:
        done = trailing[-1]
        trailing = trailing[:-1]
    return CallArgs(data=data, extra=trailing, done=done)
