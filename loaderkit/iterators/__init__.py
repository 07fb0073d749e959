"""Built-in iterators, one per loader kind."""

from loaderkit.iterators.callback import iterator_async
from loaderkit.iterators.promise import iterator_promise
from loaderkit.iterators.stream import iterator_stream
from loaderkit.iterators.sync import iterator_sync

BUILTIN_ITERATORS = {
    "sync": iterator_sync,
    "async": iterator_async,
    "promise": iterator_promise,
    "stream": iterator_stream,
}

__all__ = [
    "BUILTIN_ITERATORS",
    "iterator_async",
    "iterator_promise",
    "iterator_stream",
    "iterator_sync",
]
