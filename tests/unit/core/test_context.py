"""Tests for context.py"""

import os
import signal
import time

import pytest

from bootkit.context import ExecutionContext, cancel_on_interrupt
from bootkit.errors import ContextCancelledError, is_cancellation


class TestExecutionContext:
    """Test cases for ExecutionContext"""

    def test_live_context(self):
        context = ExecutionContext()
        assert not context.cancelled
        assert context.reason is None
        assert context.remaining() is None
        context.check()

    def test_cancel(self):
        context = ExecutionContext()
        context.cancel('stop')
        assert context.cancelled
        with pytest.raises(ContextCancelledError, match='stop') as exc_info:
            context.check()
        assert is_cancellation(exc_info.value)

    def test_first_reason_wins(self):
        context = ExecutionContext()
        context.cancel('first')
        context.cancel('second')
        assert context.reason == 'first'

    def test_child_follows_parent(self):
        parent = ExecutionContext()
        child = parent.child()
        parent.cancel('interrupted')
        assert child.reason == 'interrupted'

    def test_child_cancel_leaves_parent(self):
        parent = ExecutionContext()
        child = parent.child()
        child.cancel()
        assert not parent.cancelled

    def test_deadline(self):
        context = ExecutionContext().with_timeout(0.05)
        assert context.remaining() <= 0.05
        time.sleep(0.1)
        assert context.reason == 'deadline exceeded'
        assert context.remaining() == 0.0

    def test_child_inherits_earlier_deadline(self):
        parent = ExecutionContext().with_timeout(1)
        child = parent.with_timeout(60)
        assert child.deadline == parent.deadline


class TestOnCancel:
    """Test cases for cancellation callbacks"""

    def test_runs_once_on_cancel(self):
        context = ExecutionContext()
        calls = []
        context.on_cancel(lambda: calls.append('closed'))

        context.cancel()
        context.cancel()

        assert calls == ['closed']

    def test_runs_when_parent_cancelled(self):
        """Test a callback on a child fires once when the whole chain is cancelled"""
        parent = ExecutionContext()
        child = parent.child()
        calls = []
        child.on_cancel(lambda: calls.append('closed'))

        parent.cancel()
        child.cancel()

        assert calls == ['closed']

    def test_runs_immediately_when_already_cancelled(self):
        context = ExecutionContext()
        context.cancel()
        calls = []
        context.on_cancel(lambda: calls.append('closed'))
        assert calls == ['closed']

    def test_unregister(self):
        parent = ExecutionContext()
        child = parent.child()
        calls = []
        remove = child.on_cancel(lambda: calls.append('closed'))

        remove()
        parent.cancel()

        assert calls == []

    def test_sigint_runs_callbacks(self):
        """Test SIGINT reaches callbacks through the interrupt handler"""
        calls = []
        with cancel_on_interrupt(ExecutionContext()) as context:
            context.on_cancel(lambda: calls.append('closed'))
            os.kill(os.getpid(), signal.SIGINT)
            time.sleep(0.05)
        assert calls == ['closed']


class TestCancelOnInterrupt:
    """Test cases for SIGINT wiring"""

    def test_sigint_cancels_context(self):
        previous = signal.getsignal(signal.SIGINT)
        with cancel_on_interrupt(ExecutionContext()) as context:
            os.kill(os.getpid(), signal.SIGINT)
            time.sleep(0.05)
            assert context.reason == 'interrupted'
        assert signal.getsignal(signal.SIGINT) is previous
