"""Named loader stacks (the registry side of the engine).

A `LoaderStack` maps names to their *raw* refs: functions, streams, names of
other entries, or nested lists. Nothing is resolved at registration time, so a
name referenced before it is registered picks up whatever it holds when the
stack is finally resolved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from loaderkit.errors import RegistrationError
from loaderkit.predicates import classify

logger = logging.getLogger(__name__)


def normalize_name(name: Any, *, what: str = "Loader name") -> str:
    if not isinstance(name, str):
        raise RegistrationError(f"{what} must be a string (type={type(name).__name__})")
    normalized = name.strip()
    if not normalized:
        raise RegistrationError(f"{what} cannot be empty")
    return normalized


def union_append(existing: list[Any], refs: Iterable[Any]) -> list[Any]:
    """Append refs not already present (by identity; names by value), in order."""

    out = list(existing)
    names = {ref for ref in out if isinstance(ref, str)}
    ids = {id(ref) for ref in out if not isinstance(ref, str)}
    for ref in refs:
        if isinstance(ref, str):
            if ref in names:
                continue
            names.add(ref)
        else:
            if id(ref) in ids:
                continue
            ids.add(id(ref))
        out.append(ref)
    return out


def flatten_refs(refs: Iterable[Any], *, name: str) -> list[Any]:
    """Flatten one level of list refs and validate every entry.

    Deeper nesting is preserved as-is; the resolver expands it later.
    """

    flat: list[Any] = []
    for idx, ref in enumerate(refs):
        items = list(ref) if isinstance(ref, (list, tuple)) else [ref]
        for item in items:
            if classify(item) is None:
                raise RegistrationError(
                    f"Loader {name} ref[{idx}] is not a loader or loader name "
                    f"(type={type(item).__name__})"
                )
            flat.append(item.strip() if isinstance(item, str) else item)
    return flat


@dataclass
class _Entry:
    stack: list[Any] = field(default_factory=list)
    first: list[Any] = field(default_factory=list)
    last: list[Any] = field(default_factory=list)


class LoaderStack:
    """Registry of named raw stacks for a single execution kind."""

    def __init__(self, kind: str = "sync"):
        self.kind = kind
        self._entries: dict[str, _Entry] = {}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def _entry(self, name: str) -> _Entry:
        entry = self._entries.get(name)
        if entry is None:
            entry = _Entry()
            self._entries[name] = entry
        return entry

    def set(self, name: str, *refs: Any) -> "LoaderStack":
        """Union-append `refs` onto the raw stack stored under `name`."""

        key = normalize_name(name)
        flat = flatten_refs(refs, name=key)
        entry = self._entry(key)
        before = len(entry.stack)
        entry.stack = union_append(entry.stack, flat)
        logger.debug(
            "Registered loader %s (kind=%s, +%d refs)", key, self.kind, len(entry.stack) - before
        )
        return self

    def first(self, name: str, *refs: Any) -> Any:
        """Get or extend the refs that run before `name`'s own stack."""

        key = normalize_name(name)
        if not refs:
            return list(self._entries[key].first) if key in self._entries else []
        entry = self._entry(key)
        entry.first = union_append(entry.first, flatten_refs(refs, name=key))
        return self

    def last(self, name: str, *refs: Any) -> Any:
        """Get or extend the refs that run after `name`'s own stack."""

        key = normalize_name(name)
        if not refs:
            return list(self._entries[key].last) if key in self._entries else []
        entry = self._entry(key)
        entry.last = union_append(entry.last, flatten_refs(refs, name=key))
        return self

    def get(self, name: Any) -> Any:
        """Return the raw stack for a registered name, else `name` unchanged.

        The pass-through lets the resolver treat functions, lists and names
        uniformly.
        """

        if not isinstance(name, str):
            return name
        entry = self._entries.get(name.strip())
        if entry is None:
            return name
        return [*entry.first, *entry.stack, *entry.last]
