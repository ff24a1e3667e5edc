"""Notification scheduler — batched, de-duplicated change delivery.

The runtime's queue is an insertion-ordered dict of subscriber -> value.
A write enqueues its container's subscribers; the write that found the
queue idle is the batch root and drains it, head first, including anything
enqueued while draining.

A subscriber that is already pending is moved to the tail instead of being
queued twice. A computation depending on several containers written in the
same pass is therefore notified once, after all of them have landed, and
diamond-shaped graphs settle without an explicit topological sort.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, TypeVar

from ripplestore._runtime import batch_sentinel

if TYPE_CHECKING:
    from ripplestore._runtime import Runtime, Subscriber
    from ripplestore._tracking import Invalidator

logger = logging.getLogger("ripplestore.scheduler")

R = TypeVar("R")


def enqueue(
    runtime: Runtime,
    subscribers: Iterable[tuple[Subscriber, Invalidator | None]],
    value: Any,
) -> None:
    """Queue each subscriber with value, promoting those already pending."""
    queue = runtime.queue
    for subscriber, invalidate in subscribers:
        if subscriber in queue:
            del queue[subscriber]
            queue[subscriber] = value
            continue
        queue[subscriber] = value
        if invalidate is not None:
            invalidate()


def promote(runtime: Runtime, subscribers: Iterable[Subscriber]) -> None:
    """Move any of subscribers that are pending to the tail of the queue."""
    queue = runtime.queue
    for subscriber in subscribers:
        if subscriber in queue:
            queue[subscriber] = queue.pop(subscriber)


def drain(runtime: Runtime) -> None:
    """Deliver pending notifications until the queue is empty.

    A failing subscriber does not stop delivery to the rest: every entry is
    still delivered, then the first error is re-raised. Interrupts such as
    KeyboardInterrupt are held the same way and take precedence over
    ordinary errors, so the queue is always idle when drain() returns.
    """
    queue = runtime.queue
    # Subscribers run outside whatever computation triggered the write.
    prior, runtime.context = runtime.context, None
    runtime.draining = True
    first_error: BaseException | None = None
    delivered = 0
    try:
        while queue:
            subscriber = next(iter(queue))
            value = queue.pop(subscriber)
            delivered += 1
            try:
                subscriber(value)
            except BaseException as exc:
                if first_error is None:
                    first_error = exc
                    continue
                if isinstance(first_error, Exception) and not isinstance(exc, Exception):
                    first_error, exc = exc, first_error
                logger.error(
                    "Notification failed while another error was pending",
                    exc_info=exc,
                )
    finally:
        runtime.draining = False
        runtime.context = prior
    logger.debug("Drained %d notifications on runtime %r", delivered, runtime.name)
    if first_error is not None:
        raise first_error


def begin_batch(runtime: Runtime, batch: bool = True) -> bool:
    """Open a pass over the queue. Returns True if this call is the batch root.

    The root of a batch parks a sentinel in the queue so writes made before
    end_batch() accumulate instead of draining one at a time.
    """
    is_root = not runtime.queue and not runtime.draining
    if is_root and batch:
        runtime.queue[batch_sentinel] = None
        logger.debug("Batch opened on runtime %r", runtime.name)
    return is_root


def end_batch(runtime: Runtime, is_root: bool) -> None:
    """Close a pass opened by begin_batch(); the root drains the queue."""
    if is_root:
        runtime.queue.pop(batch_sentinel, None)
        drain(runtime)


def run(runtime: Runtime, fn: Callable[[], R], batch: bool = False) -> R:
    """Run fn, then drain the queue if this call is the batch root.

    Writes use this with batch=False: the first write into an idle queue
    drains it. batch=True holds the queue open until fn returns.
    """
    is_root = begin_batch(runtime, batch)
    try:
        return fn()
    finally:
        end_batch(runtime, is_root)
