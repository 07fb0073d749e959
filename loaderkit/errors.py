"""Error types raised by `loaderkit`."""

from __future__ import annotations

from typing import Any


class LoaderError(Exception):
    """Base class for engine errors."""


class InvalidLoaderKindError(LoaderError, ValueError):
    def __init__(self, kind: Any, available: tuple[str, ...] = ()):
        self.kind = kind
        self.available = tuple(available)
        listed = ", ".join(self.available) or "<none>"
        super().__init__(f"Invalid loader kind: {kind!r} (available: {listed})")


class RegistrationError(LoaderError, TypeError):
    """Malformed `register`/`compose` call (bad name or unsupported ref)."""


class StackCycleError(LoaderError, ValueError):
    def __init__(self, cycle: tuple[str, ...]):
        self.cycle = tuple(cycle)
        super().__init__(f"Loader stack cycle detected: {' -> '.join(self.cycle)}")


class LoaderNotCallableError(LoaderError, TypeError):
    def __init__(self, step: Any, *, index: int, kind: str):
        self.step = step
        self.index = index
        self.kind = kind
        super().__init__(
            f"Loader at position {index} is not executable under kind={kind} "
            f"(value={step!r}, type={type(step).__name__})"
        )


def attach_step_error(exc: BaseException, **fields: Any) -> None:
    """Attach `loader_*` context attributes to an exception without overwriting."""

    for key, value in fields.items():
        attr = f"loader_{key}"
        if hasattr(exc, attr):
            continue
        try:
            setattr(exc, attr, value)
        except (AttributeError, TypeError):
            # Exceptions with __slots__ cannot carry extra attributes.
            continue
