"""Derived values — computed from whatever containers the function reads.

A Derived wraps a function. It has two states:

- dormant: nobody subscribes. Every get() runs the function from scratch
  and keeps no subscriptions afterwards.
- live: it has subscribers. It subscribes to every container the function
  read on its last run, re-runs when any of them changes, and get()
  returns the cached result.

The dependency set is rebuilt on every run. Containers not read this time
are unsubscribed, so branches that stop being taken stop triggering runs.

A pending counter makes N dependencies changed in one pass cost one run:
each change first invalidates (counter up) and later notifies (counter
down); the run happens when the counter returns to zero.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from ripplestore import _scheduler
from ripplestore._tracking import Unsubscriber, tracking
from ripplestore._runtime import Runtime
from ripplestore.container import Container, Equality, Readable

logger = logging.getLogger("ripplestore.derived")

T = TypeVar("T")


class Derived(Readable[T]):
    """A value recomputed from the containers its function reads."""

    __slots__ = (
        "_fn", "_pass_prior", "_dependencies", "_pending", "_live", "_notifier",
    )

    def __init__(
        self,
        fn: Callable[..., T],
        value: T = None,
        *,
        pass_prior: bool = False,
        equals: Equality[T] | None = None,
        runtime: Runtime | None = None,
    ) -> None:
        self._fn = fn
        self._pass_prior = pass_prior
        self._dependencies: set[Unsubscriber] = set()
        self._pending = 0
        self._live = False
        # Upstream subscriber for the current activation; None while dormant.
        self._notifier: Callable[[Any], None] | None = None
        super().__init__(Container(value, self._start, equals=equals, runtime=runtime))

    @property
    def live(self) -> bool:
        return self._live

    def _start(self, set: Callable[[T], None], update: Any) -> Unsubscriber:
        logger.debug("Starting %r", self)
        self._live = True
        self._pending = 0

        def notify(_value: Any = None) -> None:
            # Entries queued before a dormant spell belong to a past activation.
            if self._notifier is notify:
                self._notify()

        self._notifier = notify
        try:
            self._sync()
        except BaseException:
            self._release()
            raise
        return self._release

    def _release(self) -> None:
        logger.debug("Releasing %d dependencies of %r", len(self._dependencies), self)
        self._live = False
        self._pending = 0
        self._notifier = None
        dependencies, self._dependencies = self._dependencies, set()
        for unsubscribe in dependencies:
            unsubscribe()

    def _notify(self) -> None:
        """Re-run once every invalidation has landed."""
        if self._pending > 0:
            self._pending -= 1
        if self._pending == 0:
            self._sync()

    def _invalidate(self) -> None:
        """Upstream invalidator: count the change and push our own pending
        subscribers behind it so they hear from us after we settle."""
        self._pending += 1
        _scheduler.promote(self._container.runtime, self._container._subscribers)

    def _sync(self) -> None:
        container = self._container
        try:
            with tracking(container.runtime, self._notifier, self._invalidate) as context:
                if self._pass_prior:
                    value = self._fn(container._value)
                else:
                    value = self._fn()
        except BaseException:
            # Keep the previous run's dependencies; drop what this run added.
            for unsubscribe in context.unsubscribes - self._dependencies:
                unsubscribe()
            raise

        stale = self._dependencies - context.unsubscribes
        self._dependencies = context.unsubscribes
        for unsubscribe in stale:
            unsubscribe()

        container.set(value)

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", repr(self._fn))
        state = "live" if self._live else "dormant"
        return f"Derived({name}, {state})"


def derived(
    fn: Callable[..., T],
    value: T = None,
    *,
    pass_prior: bool = False,
    equals: Equality[T] | None = None,
    runtime: Runtime | None = None,
) -> Derived[T]:
    """Decorator/factory to create a Derived from a function.

    Usage:
        count = Container(2)

        @derived
        def doubled():
            return count.get() * 2

        doubled.get()  # 4
        count.set(5)
        doubled.get()  # 10

    With pass_prior=True the function receives its previous result:

        total = derived(lambda prior: prior + count.get(), 0, pass_prior=True)
    """
    return Derived(fn, value, pass_prior=pass_prior, equals=equals, runtime=runtime)
