"""
Operation context: cancellation flag and deadline.
"""

import threading
import time

import pytest

from tiered_memory.core.context import OperationContext, ensure_context
from tiered_memory.core.errors import DeadlineExceeded, MemoryStoreError, OperationCancelled


def test_fresh_context_never_fires():
    ctx = OperationContext()
    ctx.check()
    assert not ctx.cancelled
    assert not ctx.expired()
    assert ctx.remaining() is None


def test_cancel_raises_on_check():
    ctx = OperationContext()
    ctx.cancel()

    assert ctx.cancelled
    assert ctx.expired()
    with pytest.raises(OperationCancelled):
        ctx.check()


def test_deadline():
    ctx = OperationContext.with_timeout(0.05)
    assert 0 < ctx.remaining() <= 0.05

    time.sleep(0.1)

    assert ctx.expired()
    assert ctx.remaining() == 0.0
    with pytest.raises(DeadlineExceeded):
        ctx.check()


def test_deadline_is_a_cancellation():
    assert issubclass(DeadlineExceeded, OperationCancelled)
    assert issubclass(OperationCancelled, MemoryStoreError)


def test_callbacks_fire_once():
    ctx = OperationContext()
    fired = []
    ctx.on_cancel(lambda: fired.append("a"))

    ctx.cancel()
    ctx.cancel()

    assert fired == ["a"]


def test_unregistered_callback_does_not_fire():
    ctx = OperationContext()
    fired = []
    unregister = ctx.on_cancel(lambda: fired.append("a"))

    unregister()
    ctx.cancel()

    assert fired == []


def test_callback_on_cancelled_context_runs_immediately():
    ctx = OperationContext()
    ctx.cancel()
    fired = []

    ctx.on_cancel(lambda: fired.append("late"))

    assert fired == ["late"]


def test_cancel_from_another_thread():
    ctx = OperationContext()
    event = threading.Event()
    ctx.on_cancel(event.set)

    threading.Thread(target=ctx.cancel).start()

    assert event.wait(5)
    assert ctx.cancelled


def test_ensure_context():
    ctx = OperationContext()
    assert ensure_context(ctx) is ctx
    assert isinstance(ensure_context(None), OperationContext)
