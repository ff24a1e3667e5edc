"""Tests for Runtime isolation, use_runtime and reset_runtime."""

import logging

from ripplestore import (
    Container,
    Derived,
    Runtime,
    get_pending_count,
    get_runtime,
    reset_runtime,
    transaction,
    use_runtime,
)
from ripplestore import _scheduler


class TestRuntime:
    def test_default_runtime(self):
        assert get_runtime() is get_runtime()
        assert Container(0).runtime is get_runtime()

    def test_use_runtime_scopes_new_containers(self):
        isolated = Runtime("isolated")
        default = get_runtime()
        with use_runtime(isolated) as active:
            assert active is isolated
            assert get_runtime() is isolated
            c = Container(0)
        assert c.runtime is isolated
        assert get_runtime() is default

    def test_explicit_runtime(self):
        isolated = Runtime("isolated")
        assert Container(0, runtime=isolated).runtime is isolated
        assert Derived(lambda: 1, runtime=isolated).runtime is isolated

    def test_runtimes_do_not_share_queues(self):
        other = Runtime("other")
        c = Container(0, runtime=other)
        log = []
        c.subscribe(log.append)

        with transaction():  # holds the default runtime's queue open
            c.set(1)
            assert log == [0, 1]

    def test_derived_in_isolated_runtime(self):
        isolated = Runtime("isolated")
        with use_runtime(isolated):
            a = Container(1)
            b = Container(2)
            total = Derived(lambda: a.get() + b.get())
        log = []
        total.subscribe(log.append)
        with transaction(runtime=isolated):
            a.set(10)
            b.set(20)
        assert log == [3, 30]

    def test_repr(self):
        assert repr(Runtime("r")) == "Runtime('r', pending=0)"


class TestReset:
    def test_reset_discards_pending(self, caplog):
        c = Container(0)
        c.subscribe(lambda v: None)
        runtime = get_runtime()
        _scheduler.begin_batch(runtime)
        c.set(1)
        assert get_pending_count() == 1

        with caplog.at_level(logging.INFO, logger="ripplestore.runtime"):
            reset_runtime()

        assert get_pending_count() == 0
        assert not runtime.queue
        assert runtime.context is None
        assert "discarding 1 pending" in caplog.text

        log = []
        c.subscribe(log.append)
        c.set(2)  # delivery works again
        assert log == [1, 2]

    def test_reset_idle_runtime_is_quiet(self, caplog):
        with caplog.at_level(logging.INFO, logger="ripplestore.runtime"):
            reset_runtime(Runtime("idle"))
        assert caplog.text == ""
