"""Flatten names, loaders and nested lists into an ordered list of steps."""

from __future__ import annotations

from typing import Any

from loaderkit.errors import StackCycleError
from loaderkit.stack import LoaderStack


def resolve(stack: LoaderStack, *refs: Any, detect_cycles: bool = True) -> list[Any]:
    """Resolve `refs` against `stack` depth-first, left to right.

    - registered names expand to their raw stack (first + stack + last hooks)
    - lists/tuples are spliced in place
    - anything else (functions, streams, unknown names) is a leaf

    Unknown names are kept as leaves and only fail when executed. With
    `detect_cycles` a name that appears inside its own expansion raises
    `StackCycleError`; without it such a registry recurses until Python's
    recursion limit is hit.
    """

    out: list[Any] = []
    _build(stack, list(refs), out, path=(), detect_cycles=detect_cycles)
    return out


def _build(
    stack: LoaderStack,
    items: list[Any] | tuple[Any, ...],
    out: list[Any],
    *,
    path: tuple[str, ...],
    detect_cycles: bool,
) -> None:
    for item in items:
        value = stack.get(item)
        if isinstance(value, (list, tuple)):
            next_path = path
            if isinstance(item, str):
                name = item.strip()
                if detect_cycles and name in path:
                    raise StackCycleError((*path[path.index(name) :], name))
                next_path = (*path, name)
            _build(stack, value, out, path=next_path, detect_cycles=detect_cycles)
        else:
            out.append(value)
