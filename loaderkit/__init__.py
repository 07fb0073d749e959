"""Named loader stacks composed into sync, callback, awaitable or stream pipelines.

Register loaders (plain transform functions, streams, or names of other
stacks), then `compose(name)` to get one callable that runs the flattened stack
under the engine's execution kind.
"""

from loaderkit.arguments import CallArgs, split_call_args
from loaderkit.cache import LoaderCache, match_extension
from loaderkit.config import LOADER_KINDS, EngineConfig, load_engine_config
from loaderkit.config_namespace import ConfigNamespace
from loaderkit.context import ExecutionContext, current_context
from loaderkit.errors import (
    InvalidLoaderKindError,
    LoaderError,
    LoaderNotCallableError,
    RegistrationError,
    StackCycleError,
)
from loaderkit.predicates import classify, is_loader, is_promise, is_stream
from loaderkit.recorder import DefaultStepRecorder, NullStepRecorder, StepRecorder
from loaderkit.resolver import resolve
from loaderkit.stack import LoaderStack
from loaderkit.streams import Stream, through

__all__ = [
    "LOADER_KINDS",
    "CallArgs",
    "ConfigNamespace",
    "DefaultStepRecorder",
    "EngineConfig",
    "ExecutionContext",
    "InvalidLoaderKindError",
    "LoaderCache",
    "LoaderError",
    "LoaderNotCallableError",
    "LoaderStack",
    "NullStepRecorder",
    "RegistrationError",
    "StackCycleError",
    "StepRecorder",
    "Stream",
    "classify",
    "current_context",
    "is_loader",
    "is_promise",
    "is_stream",
    "load_engine_config",
    "match_extension",
    "resolve",
    "split_call_args",
    "through",
]
