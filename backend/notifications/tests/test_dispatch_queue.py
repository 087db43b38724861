"""
Unit tests for ``notifications.queue.EmailDispatchQueue``.

Queues are built with ``autostart=False`` and the ``fake_scheduler``
fixture so every retry runs on demand instead of after a real delay.
"""

from __future__ import annotations

import logging
import time

import pytest

from notifications import get_dispatch_queue
from notifications.queue import EmailDispatchQueue

KIND = "fir_confirmation"


class FlakySender:
    """Fails the first ``failures`` calls, then succeeds."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, email, payload):
        self.calls.append((email, payload))
        if len(self.calls) <= self.failures:
            raise RuntimeError("SMTP unavailable")


@pytest.fixture()
def queue_logs(caplog, monkeypatch):
    """Route queue records to ``caplog``; the app logger stops propagation."""
    monkeypatch.setattr(logging.getLogger("notifications"), "propagate", True)
    with caplog.at_level(logging.DEBUG, logger="notifications.queue"):
        yield caplog


def _make_queue(sender, scheduler, **kwargs) -> EmailDispatchQueue:
    return EmailDispatchQueue(
        senders={KIND: sender, "password_reset": sender},
        send_interval=0,
        scheduler=scheduler,
        autostart=False,
        **kwargs,
    )


def test_enqueue_rejects_unknown_kind(fake_scheduler):
    queue = _make_queue(FlakySender(), fake_scheduler)

    with pytest.raises(ValueError):
        queue.enqueue("newsletter", "a@example.com", {})

    assert queue.status()["pending"] == 0


def test_successful_send_removes_task(fake_scheduler):
    sender = FlakySender()
    queue = _make_queue(sender, fake_scheduler)
    queue.enqueue(KIND, "a@example.com", {"user_name": "A"})

    assert queue.drain() == 1
    assert sender.calls == [("a@example.com", {"user_name": "A"})]
    assert queue.status()["pending"] == 0
    assert fake_scheduler.handles == []


def test_task_failing_twice_is_delivered_once_on_third_attempt(fake_scheduler):
    sender = FlakySender(failures=2)
    queue = _make_queue(sender, fake_scheduler)
    queue.enqueue(KIND, "a@example.com", {})

    assert queue.drain() == 0
    assert fake_scheduler.delays == [5.0]
    assert queue.status()["scheduled_retries"] == 1
    fake_scheduler.fire_all()
    assert queue.status()["tasks"][0]["attempts"] == 1

    assert queue.drain() == 0
    assert fake_scheduler.delays == [10.0]
    fake_scheduler.fire_all()

    assert queue.drain() == 1
    assert len(sender.calls) == 3
    status = queue.status()
    assert status["pending"] == 0
    assert status["scheduled_retries"] == 0
    assert fake_scheduler.handles == []


def test_task_failing_three_times_is_dropped(fake_scheduler, queue_logs):
    sender = FlakySender(failures=10)
    queue = _make_queue(sender, fake_scheduler)
    queue.enqueue(KIND, "a@example.com", {})

    for _ in range(2):
        queue.drain()
        fake_scheduler.fire_all()
    queue.drain()

    assert len(sender.calls) == 3
    assert fake_scheduler.handles == []
    assert queue.status()["pending"] == 0
    assert queue.drain() == 0
    assert len(sender.calls) == 3

    errors = [
        r for r in queue_logs.records
        if r.name == "notifications.queue" and r.levelno == logging.ERROR
    ]
    assert len(errors) == 1
    assert "permanently failed after 3 attempts" in errors[0].getMessage()


def test_retry_is_inserted_at_front(fake_scheduler):
    sent: list[str] = []
    failed_once: set[str] = set()

    def sender(email, payload):
        if email == "first@example.com" and email not in failed_once:
            failed_once.add(email)
            raise RuntimeError("temporary")
        sent.append(email)

    queue = _make_queue(sender, fake_scheduler)
    queue.enqueue(KIND, "first@example.com", {})
    queue.enqueue(KIND, "second@example.com", {})
    queue.drain()
    assert sent == ["second@example.com"]

    queue.enqueue(KIND, "third@example.com", {})
    fake_scheduler.fire_all()
    assert [t["email"] for t in queue.status()["tasks"]] == [
        "first@example.com",
        "third@example.com",
    ]

    queue.drain()
    assert sent == ["second@example.com", "first@example.com", "third@example.com"]


def test_concurrent_drain_returns_immediately(fake_scheduler):
    nested_results: list[int] = []
    queue: EmailDispatchQueue

    def sender(email, payload):
        nested_results.append(queue.drain())

    queue = _make_queue(sender, fake_scheduler)
    queue.enqueue(KIND, "a@example.com", {})
    queue.enqueue(KIND, "b@example.com", {})

    assert queue.drain() == 2
    assert nested_results == [0, 0]


def test_status_never_exposes_payload(fake_scheduler):
    queue = _make_queue(FlakySender(), fake_scheduler)
    queue.queue_password_reset("a@example.com", "Alice", "http://client/reset-password/x/y")

    status = queue.status()
    assert status["pending"] == 1
    assert status["processing"] is False
    task = status["tasks"][0]
    assert set(task) == {"id", "kind", "email", "attempts", "created_at"}
    assert task["kind"] == "password_reset"
    assert "reset-password" not in repr(status)


def test_shutdown_cancels_pending_retries(fake_scheduler):
    queue = _make_queue(FlakySender(failures=1), fake_scheduler)
    queue.enqueue(KIND, "a@example.com", {})
    queue.drain()
    handle = fake_scheduler.handles[0]

    queue.shutdown(timeout=1)

    assert handle.cancelled is True
    assert queue.status()["scheduled_retries"] == 0
    # A timer that fires despite cancellation must not requeue.
    handle.callback()
    assert queue.status()["pending"] == 0


def test_worker_thread_delivers_queued_tasks():
    sender = FlakySender()
    queue = EmailDispatchQueue(senders={KIND: sender}, send_interval=0)
    try:
        queue.queue_fir_confirmation("a@example.com", "Alice", {"id": 1})
        queue.queue_fir_confirmation("b@example.com", "Bob", {"id": 2})
        assert queue.wait_until_idle(timeout=5)
    finally:
        queue.shutdown(timeout=5)

    assert [email for email, _ in sender.calls] == ["a@example.com", "b@example.com"]
    assert sender.calls[0][1] == {"user_name": "Alice", "report": {"id": 1}}


def test_worker_waits_while_another_caller_drains():
    sender = FlakySender()
    queue = EmailDispatchQueue(senders={KIND: sender}, send_interval=0)
    drain_calls: list[int] = []
    original_drain = queue.drain

    def counting_drain():
        result = original_drain()
        drain_calls.append(result)
        return result

    queue.drain = counting_drain
    queue._drain_lock.acquire()
    try:
        queue.enqueue(KIND, "a@example.com", {})
        time.sleep(0.3)
        assert sender.calls == []
        assert len(drain_calls) <= 2
    finally:
        queue._drain_lock.release()

    try:
        with queue._cond:
            queue._cond.notify_all()
        assert queue.wait_until_idle(timeout=5)
    finally:
        queue.shutdown(timeout=5)

    assert [email for email, _ in sender.calls] == ["a@example.com"]


def test_accessor_returns_the_app_owned_queue(dispatch_queue):
    assert get_dispatch_queue() is dispatch_queue
