"""Tests for the ambient tracking context."""

import pytest

from ripplestore import Container, Runtime
from ripplestore._tracking import enter, leave, tracking, untracked


def subscriber(value):
    pass


class TestTracking:
    def test_enter_and_leave_nest(self):
        runtime = Runtime()
        outer = enter(runtime, subscriber)
        inner = enter(runtime, subscriber)
        assert runtime.context is inner
        assert inner.prior is outer
        leave(runtime, inner)
        assert runtime.context is outer
        leave(runtime, outer)
        assert runtime.context is None

    def test_restores_on_exception(self):
        runtime = Runtime()
        with tracking(runtime, subscriber) as outer:
            with pytest.raises(RuntimeError):
                with tracking(runtime, subscriber):
                    raise RuntimeError("boom")
            assert runtime.context is outer
        assert runtime.context is None

    def test_read_subscribes_current_computation(self):
        runtime = Runtime()
        c = Container(1, runtime=runtime)
        calls = []

        def notify(value):
            calls.append(value)

        with tracking(runtime, notify, lambda: None) as context:
            assert c.get() == 1
            assert c.get() == 1

        assert c.subscriber_count == 1
        assert len(context.unsubscribes) == 1
        assert calls == []  # invalidate given: not called on subscribe

        c.set(2)
        assert calls == [2]

    def test_reads_from_other_runtime_are_untracked(self):
        runtime = Runtime()
        c = Container(1)
        with tracking(runtime, subscriber) as context:
            c.get()
        assert c.subscriber_count == 0
        assert context.unsubscribes == set()

    def test_untracked(self):
        runtime = Runtime()
        c = Container(1, runtime=runtime)
        with tracking(runtime, subscriber) as context:
            with untracked(runtime):
                assert runtime.context is None
                c.get()
            assert runtime.context is context
        assert c.subscriber_count == 0
