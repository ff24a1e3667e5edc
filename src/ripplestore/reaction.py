"""Reactions — side effects driven by container changes.

Two flavors, both built on Derived:

- observe(fn): runs fn now, re-runs it whenever anything it read changes.
- reaction(data_fn, effect_fn): tracks data_fn, calls effect_fn with the
  new result only when that result changes.

Both return a Reaction. Call .dispose() (or the handle itself) to stop.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, TypeVar

from ripplestore._errors import AsyncComputationError
from ripplestore._runtime import Runtime
from ripplestore._tracking import Unsubscriber
from ripplestore.container import Equality
from ripplestore.derived import Derived

logger = logging.getLogger("ripplestore.reaction")

T = TypeVar("T")


def _noop(_value: Any = None) -> None:
    pass


class Reaction:
    """Handle for a running side effect."""

    __slots__ = ("_name", "_unsubscribe")

    def __init__(self, name: str, unsubscribe: Unsubscriber) -> None:
        self._name = name
        self._unsubscribe: Unsubscriber | None = unsubscribe

    @property
    def disposed(self) -> bool:
        return self._unsubscribe is None

    def dispose(self) -> None:
        """Stop the effect and release everything it was observing."""
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            logger.debug("Disposing reaction %s", self._name)
            unsubscribe()

    __call__ = dispose

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else "active"
        return f"Reaction({self._name}, {state})"


def _name_of(fn: Callable) -> str:
    return getattr(fn, "__name__", repr(fn))


def observe(fn: Callable[[], Any], *, runtime: Runtime | None = None) -> Reaction:
    """Run fn immediately, then again whenever a container it read changes.

    fn must be synchronous: a coroutine function would read its containers
    after the tracked run has ended.

    Usage:
        count = Container(0)
        log = []

        stop = observe(lambda: log.append(count.get()))
        # log == [0]

        count.set(1)
        # log == [0, 1]

        stop.dispose()
        count.set(2)
        # log == [0, 1]
    """

    def tracked() -> None:
        result = fn()
        if inspect.isawaitable(result):
            close = getattr(result, "close", None)
            if close is not None:
                close()
            raise AsyncComputationError(
                f"observe() needs a synchronous function, {_name_of(fn)} returned {result!r}"
            )

    store = Derived(tracked, runtime=runtime)
    return Reaction(_name_of(fn), store.subscribe(_noop))


def reaction(
    data_fn: Callable[[], T],
    effect_fn: Callable[[T], None],
    *,
    fire_immediately: bool = False,
    equals: Equality[T] | None = None,
    runtime: Runtime | None = None,
) -> Reaction:
    """Track data_fn's reads; call effect_fn when its result changes.

    Unlike observe(), effect_fn only fires when data_fn's *return value*
    changes, not on every dependency notification. effect_fn's own reads
    are not tracked.

    Usage:
        first = Container("Ada")
        last = Container("Lovelace")

        names = []
        r = reaction(
            lambda: f"{first.get()} {last.get()}",
            names.append,
        )
        # names == [] — data_fn ran to establish deps, effect did not fire

        first.set("Augusta")
        # names == ["Augusta Lovelace"]

        r.dispose()
    """
    store = Derived(data_fn, equals=equals, runtime=runtime)
    initial = not fire_immediately

    def effect(value: T) -> None:
        nonlocal initial
        if initial:
            initial = False
            return
        effect_fn(value)

    return Reaction(_name_of(data_fn), store.subscribe(effect))
