"""Tests for the awaitable helpers."""

import asyncio

import pytest

from ripplestore import Container, Derived, after_change, when_matches, when_readable


class TestWhenMatches:
    @pytest.mark.asyncio
    async def test_resolves_immediately(self):
        c = Container(5)
        assert await when_matches(c, lambda v: v > 3) == 5
        assert c.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_waits_for_match(self):
        c = Container(0)
        task = asyncio.create_task(when_matches(c, lambda v: v >= 2))
        await asyncio.sleep(0)
        assert c.subscriber_count == 1

        c.set(1)
        await asyncio.sleep(0)
        assert not task.done()

        c.set(2)
        assert await task == 2
        assert c.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_works_with_derived(self):
        c = Container(1)
        doubled = Derived(lambda: c.get() * 2)
        task = asyncio.create_task(when_matches(doubled, lambda v: v == 6))
        await asyncio.sleep(0)
        c.set(3)
        assert await task == 6
        assert not doubled.live

    @pytest.mark.asyncio
    async def test_cancel_unsubscribes(self):
        c = Container(0)
        task = asyncio.create_task(when_matches(c, lambda v: v > 100))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert c.subscriber_count == 0


class TestWhenReadable:
    @pytest.mark.asyncio
    async def test_waits_for_not_none(self):
        c = Container(None)
        task = asyncio.create_task(when_readable(c))
        await asyncio.sleep(0)
        c.set("ready")
        assert await task == "ready"

    @pytest.mark.asyncio
    async def test_falsy_values_count(self):
        assert await when_readable(Container(0)) == 0


class TestAfterChange:
    @pytest.mark.asyncio
    async def test_next_value(self):
        c = Container(1)
        task = asyncio.create_task(after_change(c))
        await asyncio.sleep(0)
        assert not task.done()
        c.set(2)
        assert await task == 2
        assert c.subscriber_count == 0
