"""Awaitable helpers — wait for a container to reach a value.

These bridge containers into asyncio code. Each subscribes for as long as
it waits and unsubscribes as soon as it completes or is cancelled.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol, TypeVar

from ripplestore._tracking import Unsubscriber

T = TypeVar("T")


class Store(Protocol[T]):
    def get(self) -> T: ...

    def subscribe(self, subscriber: Callable[[T], None]) -> Unsubscriber: ...


async def when_matches(store: Store[T], matches: Callable[[T], bool]) -> T:
    """Return the store's value once matches(value) is true.

    Resolves immediately if the current value already matches.
    """
    value = store.get()
    if matches(value):
        return value

    future: asyncio.Future[T] = asyncio.get_running_loop().create_future()

    def check(value: T) -> None:
        if not future.done() and matches(value):
            future.set_result(value)

    unsubscribe = store.subscribe(check)
    try:
        return await future
    finally:
        unsubscribe()


async def when_readable(store: Store[T | None]) -> T:
    """Return the store's value once it is not None."""
    return await when_matches(store, lambda value: value is not None)


async def after_change(store: Store[T]) -> T:
    """Return the store's next value after the current one."""
    future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
    initial = True

    def changed(value: T) -> None:
        nonlocal initial
        if initial:
            initial = False
        elif not future.done():
            future.set_result(value)

    unsubscribe = store.subscribe(changed)
    try:
        return await future
    finally:
        unsubscribe()
