"""Ambient tracking context — how a read becomes a subscription.

While a derived computation runs, the runtime's context slot names the
subscriber standing in for that computation. Container.get() sees it and
subscribes that subscriber, collecting the unsubscribe function into the
frame. Frames nest: reading another derived value pushes a new frame and
the prior one is restored when it finishes, even if it raises.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterator

if TYPE_CHECKING:
    from ripplestore._runtime import Runtime

Unsubscriber = Callable[[], None]
Invalidator = Callable[[], None]


@dataclass(eq=False)
class Context:
    """One tracked run: its subscriber and the subscriptions it made."""

    subscriber: Callable[[Any], None]
    invalidate: Invalidator | None
    prior: Context | None = None
    unsubscribes: set[Unsubscriber] = field(default_factory=set)


def enter(
    runtime: Runtime,
    subscriber: Callable[[Any], None],
    invalidate: Invalidator | None = None,
) -> Context:
    """Push a new frame, saving the current one as its prior."""
    context = Context(subscriber, invalidate, prior=runtime.context)
    runtime.context = context
    return context


def leave(runtime: Runtime, context: Context) -> None:
    """Pop back to the frame that was current before context was entered."""
    runtime.context = context.prior


@contextmanager
def tracking(
    runtime: Runtime,
    subscriber: Callable[[Any], None],
    invalidate: Invalidator | None = None,
) -> Iterator[Context]:
    """Track reads made inside the block on behalf of subscriber."""
    context = enter(runtime, subscriber, invalidate)
    try:
        yield context
    finally:
        leave(runtime, context)


@contextmanager
def untracked(runtime: Runtime) -> Iterator[None]:
    """Read inside the block without subscribing the current computation."""
    prior = runtime.context
    runtime.context = None
    try:
        yield
    finally:
        runtime.context = prior
