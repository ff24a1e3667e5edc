"""Containers — values that notify subscribers and track their readers.

When a Container is read while a derived computation is running, that
computation is subscribed to it automatically. When the value changes, its
subscribers are handed to the scheduler and notified in queue order.

A Container may be given a start function. It runs when the first
subscriber attaches, and the cleanup it returns runs when the last one
leaves. Reading a Container that nobody subscribes to runs start and its
cleanup back to back, so the value is fresh but nothing stays attached.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Optional, TypeVar

from ripplestore import _scheduler
from ripplestore._runtime import Runtime, get_runtime
from ripplestore._tracking import Invalidator, Unsubscriber, untracked

T = TypeVar("T")

Subscriber = Callable[[T], None]
Updater = Callable[[T], T]
Equality = Callable[[T, T], bool]
StartStopNotifier = Callable[
    [Callable[[T], None], Callable[[Updater[T]], None]], Optional[Unsubscriber]
]


def _noop() -> None:
    pass


def default_equals(prev: Any, new: Any) -> bool:
    return prev is new or prev == new


class Container(Generic[T]):
    """A single value with subscriber-based change notification."""

    __slots__ = (
        "_value", "_start", "_stop", "_starting", "_equals", "_runtime",
        "_subscribers",
    )

    def __init__(
        self,
        value: T = None,
        start: StartStopNotifier[T] | None = None,
        *,
        equals: Equality[T] | None = None,
        runtime: Runtime | None = None,
    ) -> None:
        self._value = value
        self._start = start
        # Live cleanup handle; None until the first subscriber attaches.
        self._stop: Unsubscriber | None = None
        self._starting = False
        self._equals = equals or default_equals
        self._runtime = runtime or get_runtime()
        self._subscribers: dict[Subscriber[T], tuple[Unsubscriber, Invalidator | None]] = {}

    @property
    def runtime(self) -> Runtime:
        return self._runtime

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def has_subscribers(self) -> bool:
        return bool(self._subscribers)

    def get(self) -> T:
        """Read the value. Inside a tracked run, subscribes that run."""
        context = self._runtime.context
        if context is not None:
            unsubscribe = self.subscribe(context.subscriber, context.invalidate)
            context.unsubscribes.add(unsubscribe)

        if not self._subscribers and not self._starting:
            self._starting = True
            try:
                stop = self._run_start()
                stop()
            finally:
                self._starting = False

        return self._value

    def set(self, value: T) -> None:
        """Write a new value and notify subscribers if it changed."""
        if self._equals(self._value, value):
            return
        self._value = value
        if self._stop is not None:
            _scheduler.run(self._runtime, self._enqueue_subscribers)

    def update(self, fn: Updater[T]) -> None:
        """Write fn(current value)."""
        self.set(fn(self._value))

    def subscribe(
        self, subscriber: Subscriber[T], invalidate: Invalidator | None = None
    ) -> Unsubscriber:
        """Register subscriber and return the function that removes it.

        Subscribing the same callable again returns its existing unsubscribe
        function. Without an invalidate callback the subscriber is called
        once right away with the current value; with one, the subscription
        belongs to a derived computation and waits for the next change.

        Unsubscribing does not touch the pending queue: a notification
        already queued for the subscriber is still delivered.
        """
        entry = self._subscribers.get(subscriber)
        if entry is not None:
            return entry[0]

        def unsubscribe() -> None:
            current = self._subscribers.get(subscriber)
            if current is None or current[0] is not unsubscribe:
                return
            del self._subscribers[subscriber]
            if not self._subscribers and self._stop is not None:
                stop, self._stop = self._stop, None
                stop()

        self._subscribers[subscriber] = (unsubscribe, invalidate)

        # A failed start or initial call leaves nothing registered.
        try:
            if len(self._subscribers) == 1:
                self._stop = self._run_start()

            if invalidate is None:
                with untracked(self._runtime):
                    subscriber(self._value)
        except BaseException:
            unsubscribe()
            raise

        return unsubscribe

    def _run_start(self) -> Unsubscriber:
        if self._start is None:
            return _noop
        with untracked(self._runtime):
            return self._start(self.set, self.update) or _noop

    def _enqueue_subscribers(self) -> None:
        entries = [(sub, entry[1]) for sub, entry in self._subscribers.items()]
        _scheduler.enqueue(self._runtime, entries, self._value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


class Readable(Generic[T]):
    """Read-only view of a Container: get() and subscribe() only."""

    __slots__ = ("_container",)

    def __init__(self, container: Container[T]) -> None:
        self._container = container

    @property
    def runtime(self) -> Runtime:
        return self._container.runtime

    @property
    def subscriber_count(self) -> int:
        return self._container.subscriber_count

    @property
    def has_subscribers(self) -> bool:
        return self._container.has_subscribers

    def get(self) -> T:
        return self._container.get()

    def subscribe(
        self, subscriber: Subscriber[T], invalidate: Invalidator | None = None
    ) -> Unsubscriber:
        return self._container.subscribe(subscriber, invalidate)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._container._value!r})"


def readable(
    value: T = None,
    start: StartStopNotifier[T] | None = None,
    *,
    equals: Equality[T] | None = None,
    runtime: Runtime | None = None,
) -> Readable[T]:
    """Create a value that only its own start function can change.

    Usage:
        def start(set, update):
            timer = clock.every(1.0, lambda: update(lambda n: n + 1))
            return timer.cancel

        ticks = readable(0, start)
    """
    return Readable(Container(value, start, equals=equals, runtime=runtime))
