"""Engine configuration loaded from YAML or a plain mapping.

Example config:

    loaders:
      default_kind: promise
      detect_cycles: true
      record_steps: false
      default_loader: [identity]
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import yaml

from loaderkit.config_namespace import ConfigNamespace

LOADER_KINDS: tuple[str, ...] = ("sync", "async", "promise", "stream")
DEFAULT_CONFIG_ENV_VAR = "LOADERKIT_CONFIG"


@dataclass(frozen=True)
class EngineConfig:
    default_kind: str = "sync"
    detect_cycles: bool = True
    record_steps: bool = True
    default_loader: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any] | None) -> "EngineConfig":
        root = ConfigNamespace(dict(cfg or {}), path="")
        ns = root.namespace("loaders", default=None)

        default_kind = ns.get_str("default_kind", default="sync", choices=LOADER_KINDS)
        detect_cycles = ns.get_bool("detect_cycles", default=True)
        record_steps = ns.get_bool("record_steps", default=True)
        default_loader = ns.get_list_str("default_loader", default=[], allow_empty=True)

        root.assert_consumed()
        return cls(
            default_kind=str(default_kind),
            detect_cycles=detect_cycles,
            record_steps=record_steps,
            default_loader=tuple(default_loader),
        )

    def to_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "default_kind": self.default_kind,
            "detect_cycles": self.detect_cycles,
        }
        if self.default_loader:
            options["default_loader"] = list(self.default_loader)
        return options


def _load_yaml_mapping(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(payload)


def load_engine_config(
    path: str | os.PathLike[str] | None = None, *, env_var: str | None = DEFAULT_CONFIG_ENV_VAR
) -> EngineConfig:
    """Load an `EngineConfig` from `path`, else from `$env_var`, else defaults."""

    explicit_path = None
    if path is not None:
        explicit_path = str(path).strip() or None
    elif env_var:
        explicit_path = os.environ.get(env_var, "").strip() or None

    if not explicit_path:
        return EngineConfig()

    expanded = os.path.abspath(os.path.expandvars(os.path.expanduser(explicit_path)))
    return EngineConfig.from_dict(_load_yaml_mapping(expanded))
