"""Batches, actions and transactions — coalesced writes.

Writes made inside batch(), an @action or `with transaction()` only queue
their notifications. Subscribers run once the outermost block exits, so
they never see a state where some of the writes have landed and others
have not.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from ripplestore import _scheduler
from ripplestore._runtime import Runtime, get_runtime

P = ParamSpec("P")
R = TypeVar("R")


def batch(fn: Callable[[], R], *, runtime: Runtime | None = None) -> R:
    """Run fn now, notifying each affected subscriber at most once afterwards.

    Usage:
        a, b = Container(1), Container(2)
        total = Derived(lambda: a.get() + b.get())
        total.subscribe(print)      # prints 3

        batch(lambda: (a.set(10), b.set(20)))
        # prints 30 once, never 21 or 12
    """
    return _scheduler.run(runtime or get_runtime(), fn, batch=True)


@contextmanager
def transaction(*, runtime: Runtime | None = None) -> Iterator[None]:
    """Context manager for batching writes.

    Usage:
        with transaction():
            first.set("Ada")
            last.set("Lovelace")
            # subscribers run here, after both are set
    """
    runtime = runtime or get_runtime()
    is_root = _scheduler.begin_batch(runtime)
    try:
        yield
    finally:
        _scheduler.end_batch(runtime, is_root)


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch every write made while fn runs.

    Usage:
        @action
        def swap():
            x, y = left.get(), right.get()
            left.set(y)
            right.set(x)
            # subscribers see both changes at once
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return batch(lambda: fn(*args, **kwargs))

    return wrapper
