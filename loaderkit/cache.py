"""`LoaderCache`: register named loader stacks and compose them into callables.

```python
loaders = LoaderCache()
loaders.register("read", lambda path: Path(path).read_text(encoding="utf-8"))
loaders.register("yaml", yaml.safe_load)
loaders.register("bar", ["read", "yaml"])

loaders.compose("bar")("fixtures/a.bar")             # -> {"c": "d"}
loaders.compose("bar", [add_defaults])("a.bar")      # extra loaders run last
loaders.load("fixtures/a.bar")                       # stack picked by extension
```

Every execution kind (sync, async, promise, stream, or a custom one added with
`iterator()`) has its own registry, so the same name can hold a different
stack per kind.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Callable

from loaderkit.arguments import split_call_args
from loaderkit.config import EngineConfig
from loaderkit.context import ExecutionContext, IteratorFactory
from loaderkit.errors import InvalidLoaderKindError
from loaderkit.iterators import BUILTIN_ITERATORS
from loaderkit.recorder import DefaultStepRecorder, NullStepRecorder, StepRecorder, validate_recorder
from loaderkit.resolver import resolve
from loaderkit.stack import LoaderStack, flatten_refs, normalize_name

_MISSING = object()


def match_extension(data: Any, options: Mapping[str, Any] | None = None) -> str:
    """Default loader matcher: the text after the last dot (`a/b.yml` -> `yml`)."""

    text = os.fspath(data) if isinstance(data, os.PathLike) else str(data)
    _, dot, ext = text.rpartition(".")
    return ext if dot and ext else text


def _get_path(data: Mapping[str, Any], path: str) -> Any:
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def _set_path(data: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


class LoaderCache:
    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        recorder: StepRecorder | None = None,
        logger: logging.Logger | None = None,
    ):
        self.options: dict[str, Any] = dict(options or {})
        self.recorder: StepRecorder = recorder or DefaultStepRecorder()
        validate_recorder(self.recorder)
        self.logger = logger or logging.getLogger(__name__)
        self._iterators: dict[str, IteratorFactory] = {}
        self._stacks: dict[str, LoaderStack] = {}
        for kind, fn in BUILTIN_ITERATORS.items():
            self.iterator(kind, fn)
        self._kind(self.options.get("default_kind"))

    @classmethod
    def from_config(cls, cfg: EngineConfig, *, logger: logging.Logger | None = None) -> "LoaderCache":
        recorder = DefaultStepRecorder() if cfg.record_steps else NullStepRecorder()
        return cls(cfg.to_options(), recorder=recorder, logger=logger)

    @property
    def default_kind(self) -> str:
        return str(self.options.get("default_kind") or "sync")

    def option(self, key: str | Mapping[str, Any], value: Any = _MISSING) -> Any:
        """Read (`option(key)`) or set options; dotted keys address nested dicts."""

        if isinstance(key, Mapping):
            for k, v in key.items():
                self.option(k, v)
            return self
        if not isinstance(key, str) or not key.strip():
            raise TypeError(f"Option key must be a non-empty string (type={type(key).__name__})")
        if value is _MISSING:
            return _get_path(self.options, key.strip())
        if key.strip() == "default_kind":
            self._kind(value)
        _set_path(self.options, key.strip(), value)
        return self

    def iterator(self, kind: str, fn: IteratorFactory | object = _MISSING) -> Any:
        """Get the iterator for `kind`, or register `fn(ctx, stack)` under it."""

        name = normalize_name(kind, what="Loader kind")
        if fn is _MISSING:
            if name not in self._iterators:
                raise InvalidLoaderKindError(name, self.kinds())
            return self._iterators[name]
        if not callable(fn):
            raise TypeError(f"Iterator for {name} must be callable (type={type(fn).__name__})")
        self._iterators[name] = fn  # type: ignore[assignment]
        self._stacks.setdefault(name, LoaderStack(name))
        return self

    def kinds(self) -> tuple[str, ...]:
        return tuple(self._iterators)

    def _kind(self, kind: Any = None) -> str:
        name = kind if kind is not None else self.default_kind
        if not isinstance(name, str) or name.strip() not in self._iterators:
            raise InvalidLoaderKindError(name, self.kinds())
        return name.strip()

    def loaders(self, kind: str | None = None) -> LoaderStack:
        return self._stacks[self._kind(kind)]

    def register(self, name: str, *refs: Any, kind: str | None = None) -> "LoaderCache":
        """Union-append `refs` onto the stack named `name`."""

        self.loaders(kind).set(name, *refs)
        return self

    loader = register

    def first(self, name: str, *refs: Any, kind: str | None = None) -> Any:
        result = self.loaders(kind).first(name, *refs)
        return self if refs else result

    def last(self, name: str, *refs: Any, kind: str | None = None) -> Any:
        result = self.loaders(kind).last(name, *refs)
        return self if refs else result

    def get(self, name: Any, kind: str | None = None) -> Any:
        return self.loaders(kind).get(name)

    def has(self, name: str, kind: str | None = None) -> bool:
        return name in self.loaders(kind)

    def names(self, kind: str | None = None) -> tuple[str, ...]:
        return self.loaders(kind).names()

    def resolve(self, *refs: Any, kind: str | None = None) -> list[Any]:
        detect_cycles = bool(self.options.get("detect_cycles", True))
        return resolve(self.loaders(kind), *refs, detect_cycles=detect_cycles)

    def _context(
        self, kind: str, options: dict[str, Any], *, name: str | None, stack: list[Any]
    ) -> ExecutionContext:
        return ExecutionContext(
            app=self,
            kind=kind,
            options=options,
            iterator=self._iterators[kind],
            loaders=self._stacks[kind],
            recorder=self.recorder,
            logger=self.logger,
            name=name,
            stack=stack,
        )

    def seq(self, *refs: Any, kind: str | None = None) -> Any:
        """Resolve `refs` and return the raw iterator callable (no argument splitting)."""

        resolved_kind = self._kind(kind)
        stack = self.resolve(*refs, kind=resolved_kind)
        ctx = self._context(resolved_kind, dict(self.options), name=None, stack=stack)
        return ctx.iterator(ctx, stack)

    def compose(
        self, name: str, *extra: Any, options: Mapping[str, Any] | None = None
    ) -> Callable[..., Any]:
        """Resolve `name` (+ `extra` loaders) once and return the runnable pipeline.

        `options["kind"]` selects the execution kind (default: `default_kind`).
        Later registrations under `name` are not seen by the returned callable.
        An unregistered `name` composes an empty stack (identity).
        """

        key = normalize_name(name)
        opts: dict[str, Any] = {**self.options, **dict(options or {})}
        kind = self._kind(opts.get("kind"))
        opts["kind"] = kind

        head = [key] if self.has(key, kind) else []
        stack = self.resolve(head, flatten_refs(extra, name=key), kind=kind)
        base_ctx = self._context(kind, opts, name=key, stack=stack)
        self.logger.debug("Composed %s (kind=%s, steps=%d)", key, kind, len(stack))

        def composed(*args: Any) -> Any:
            call = split_call_args(args, kind)
            steps = list(stack)
            if call.extra:
                steps.extend(self.resolve(list(call.extra), kind=kind))
            if not steps and opts.get("default_loader"):
                steps = self.resolve(opts["default_loader"], kind=kind)
            wrap = opts.get("wrap")
            if wrap is not None:
                steps = [wrap(step) for step in steps]

            ctx = replace(base_ctx, stack=steps, options=dict(opts))
            run = ctx.iterator(ctx, steps)
            if kind == "async":
                if call.done is None:
                    raise TypeError(
                        f"async loader {key} requires a completion callback as the last argument"
                    )
                return run(*call.data, call.done)
            return run(*call.data)

        return composed

    def _load_options(self, kind: str, options: Mapping[str, Any] | None) -> dict[str, Any]:
        return {**dict(options or {}), "kind": kind}

    def _match(self, data: Any, opts: Mapping[str, Any]) -> str:
        matcher = opts.get("match_loader") or self.options.get("match_loader") or match_extension
        return normalize_name(matcher(data, {**self.options, **opts}), what="Matched loader name")

    def load(self, data: Any, *extra: Any, options: Mapping[str, Any] | None = None) -> Any:
        """Run the stack matched from `data` (by extension by default) synchronously."""

        opts = self._load_options("sync", options)
        return self.compose(self._match(data, opts), *extra, options=opts)(data)

    def load_async(self, data: Any, *args: Any, options: Mapping[str, Any] | None = None) -> None:
        if not args or not callable(args[-1]):
            raise TypeError("load_async() requires a completion callback as the last argument")
        *extra, done = args
        opts = self._load_options("async", options)
        return self.compose(self._match(data, opts), *extra, options=opts)(data, done)

    def load_promise(self, data: Any, *extra: Any, options: Mapping[str, Any] | None = None) -> Any:
        opts = self._load_options("promise", options)
        return self.compose(self._match(data, opts), *extra, options=opts)(data)

    def load_stream(self, data: Any, *extra: Any, options: Mapping[str, Any] | None = None) -> Any:
        opts = self._load_options("stream", options)
        return self.compose(self._match(data, opts), *extra, options=opts)(data)
