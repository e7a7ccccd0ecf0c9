"""Tests for the cancellation Context."""

from __future__ import annotations

import threading
import time

import pytest

from minigql import Context, ContextCancelledError, DeadlineExceededError


class TestBackground:
    def test_is_never_done(self) -> None:
        ctx = Context.background()
        assert ctx.done() is False
        assert ctx.err() is None
        assert ctx.deadline is None
        assert ctx.remaining() is None
        ctx.raise_if_done()


class TestCancel:
    def test_cancel_marks_done(self) -> None:
        ctx = Context.background().with_cancel()
        ctx.cancel()
        assert ctx.done() is True
        assert isinstance(ctx.err(), ContextCancelledError)
        with pytest.raises(ContextCancelledError, match="context canceled"):
            ctx.raise_if_done()

    def test_cancel_is_idempotent(self) -> None:
        ctx = Context.background()
        ctx.cancel()
        ctx.cancel()
        assert isinstance(ctx.err(), ContextCancelledError)

    def test_parent_cancel_propagates_to_children(self) -> None:
        parent = Context.background()
        child = parent.with_timeout(60).with_cancel()
        parent.cancel()
        assert isinstance(child.err(), ContextCancelledError)

    def test_child_cancel_does_not_affect_parent(self) -> None:
        parent = Context.background()
        child = parent.with_cancel()
        child.cancel()
        assert parent.done() is False

    def test_cancel_from_another_thread(self) -> None:
        ctx = Context.background()
        worker = threading.Thread(target=ctx.cancel)
        worker.start()
        worker.join()
        assert ctx.done() is True

    def test_cancel_wins_over_expired_deadline(self) -> None:
        ctx = Context.background().with_deadline(time.monotonic() - 1)
        ctx.cancel()
        assert isinstance(ctx.err(), ContextCancelledError)


class TestDeadline:
    def test_past_deadline_is_done(self) -> None:
        ctx = Context.background().with_deadline(time.monotonic() - 1)
        assert isinstance(ctx.err(), DeadlineExceededError)
        assert ctx.remaining() == 0.0
        with pytest.raises(DeadlineExceededError, match="context deadline exceeded"):
            ctx.raise_if_done()

    def test_future_deadline_reports_remaining_time(self) -> None:
        ctx = Context.background().with_timeout(30)
        remaining = ctx.remaining()
        assert remaining is not None
        assert 0 < remaining <= 30
        assert ctx.done() is False

    def test_child_keeps_earlier_parent_deadline(self) -> None:
        parent = Context.background().with_timeout(5)
        child = parent.with_timeout(60)
        assert child.deadline == parent.deadline

    def test_child_can_shorten_deadline(self) -> None:
        parent = Context.background().with_timeout(60)
        child = parent.with_timeout(1)
        assert child.deadline is not None
        assert parent.deadline is not None
        assert child.deadline < parent.deadline


class TestOnCancel:
    def test_callback_runs_once_on_cancel(self) -> None:
        calls: list[str] = []
        ctx = Context.background().with_cancel()
        ctx.on_cancel(lambda: calls.append("x"))

        ctx.cancel()
        ctx.cancel()

        assert calls == ["x"]

    def test_callback_runs_immediately_when_already_cancelled(self) -> None:
        calls: list[str] = []
        ctx = Context.background()
        ctx.cancel()

        ctx.with_cancel().on_cancel(lambda: calls.append("x"))

        assert calls == ["x"]

    def test_parent_cancel_runs_child_callback(self) -> None:
        calls: list[str] = []
        parent = Context.background()
        child = parent.with_timeout(60).with_cancel()
        child.on_cancel(lambda: calls.append("x"))

        parent.cancel()
        child.cancel()

        assert calls == ["x"]

    def test_unregistered_callback_does_not_run(self) -> None:
        calls: list[str] = []
        parent = Context.background()
        child = parent.with_cancel()
        unregister = child.on_cancel(lambda: calls.append("x"))

        unregister()
        parent.cancel()
        child.cancel()

        assert calls == []

    def test_deadline_does_not_run_callback(self) -> None:
        calls: list[str] = []
        ctx = Context.background().with_deadline(time.monotonic() - 1)
        ctx.on_cancel(lambda: calls.append("x"))
        assert ctx.done() is True
        assert calls == []
