"""Runtime — the shared state behind every Container and Derived.

A Runtime owns the two pieces of mutable state the engine needs: the
ambient tracking context (who is currently computing) and the pending
notification queue. Containers capture the active runtime when they are
created, so independent runtimes never see each other's work.

The active runtime is held in a contextvar. Use use_runtime() to scope a
different one, and reset_runtime() between tests.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterator

if TYPE_CHECKING:
    from ripplestore._tracking import Context

logger = logging.getLogger("ripplestore.runtime")

Subscriber = Callable[[Any], None]


def batch_sentinel(_value: Any = None) -> None:
    """Placeholder holding the queue open while a batch block runs."""


class Runtime:
    """Ambient context slot plus pending-notification queue."""

    __slots__ = ("name", "context", "queue", "draining")

    def __init__(self, name: str = "default") -> None:
        self.name = name
        # Innermost tracking frame; frames link to their prior.
        self.context: Context | None = None
        # Insertion-ordered: head is the next subscriber to notify.
        self.queue: dict[Subscriber, Any] = {}
        self.draining = False

    @property
    def pending(self) -> int:
        """Notifications waiting in the queue, not counting a batch sentinel."""
        return len(self.queue) - (batch_sentinel in self.queue)

    def reset(self) -> None:
        """Drop any tracking frame and pending notifications."""
        if self.queue or self.context is not None:
            logger.info(
                "Resetting runtime %r: discarding %d pending notifications",
                self.name, self.pending,
            )
        self.context = None
        self.queue.clear()
        self.draining = False

    def __repr__(self) -> str:
        return f"Runtime({self.name!r}, pending={self.pending})"


_default = Runtime()

_active: contextvars.ContextVar[Runtime] = contextvars.ContextVar(
    "ripplestore_runtime", default=_default
)


def get_runtime() -> Runtime:
    """The runtime new containers attach to."""
    return _active.get()


@contextmanager
def use_runtime(runtime: Runtime) -> Iterator[Runtime]:
    """Make runtime the active one for the duration of the block.

    Usage:
        isolated = Runtime("isolated")
        with use_runtime(isolated):
            count = Container(0)  # lives in `isolated`
    """
    token = _active.set(runtime)
    try:
        yield runtime
    finally:
        _active.reset(token)


def reset_runtime(runtime: Runtime | None = None) -> None:
    """Clear the given (or active) runtime. Intended for test teardown."""
    (runtime or get_runtime()).reset()


def get_pending_count(runtime: Runtime | None = None) -> int:
    """Number of notifications waiting in the queue. Useful for testing."""
    return (runtime or get_runtime()).pending
