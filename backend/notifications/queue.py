"""
notifications.queue — In-process email dispatch queue with retry.

╔══════════════════════════════════════════════════════════════════╗
║  One queue per process, one consumer.                          ║
║                                                                ║
║  • ``enqueue`` appends a task and wakes the worker thread.     ║
║  • The worker drains the deque head-first, pausing             ║
║    ``send_interval`` seconds between sends.                    ║
║  • A failed task is re-inserted at the FRONT of the deque      ║
║    after ``retry_base_delay × attempts`` seconds, until        ║
║    ``max_attempts`` is reached; then it is logged and dropped. ║
║  • Retry timers only insert and signal.  They never drain.     ║
╚══════════════════════════════════════════════════════════════════╝

Tasks live in memory only and are lost when the process exits.

Usage::

    from notifications import get_dispatch_queue

    get_dispatch_queue().queue_fir_confirmation(
        email=user.email,
        user_name=user.get_full_name(),
        report_data={...},
    )

Tests build their own queue with ``autostart=False`` and a fake
``scheduler`` so retries run without sleeping::

    queue = EmailDispatchQueue(senders={...}, send_interval=0,
                               scheduler=fake, autostart=False)
    queue.enqueue("fir_confirmation", "a@example.com", {})
    queue.drain()
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping

from django.utils import timezone

from .emails import NotificationKind, Sender

logger = logging.getLogger(__name__)

#: ``scheduler(delay_seconds, callback)`` runs ``callback`` later and may
#: return a handle with a ``cancel()`` method.
Scheduler = Callable[[float, Callable[[], None]], Any]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY = 5.0
DEFAULT_SEND_INTERVAL = 0.1


@dataclass
class NotificationTask:
    kind: str
    email: str
    payload: dict[str, Any] = field(default_factory=dict)
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    attempts: int = 0
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=timezone.now)

    def summary(self) -> dict[str, Any]:
        """Public view of the task; the payload is never exposed."""
        return {
            "id": self.id,
            "kind": self.kind,
            "email": self.email,
            "attempts": self.attempts,
            "created_at": self.created_at,
        }


def _timer_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class EmailDispatchQueue:
    """
    Single-consumer FIFO of ``NotificationTask`` objects.

    Args:
        senders:          Task kind → callable ``(email, payload)``.  A
                          sender signals failure by raising.
        max_attempts:     Delivery attempts per task before it is dropped.
        retry_base_delay: Seconds multiplied by the attempt count to get
                          the retry delay (5 s, 10 s with the defaults).
        send_interval:    Pause between consecutive sends in one drain pass.
        scheduler:        Delayed-call hook used for retries.
        autostart:        Start the worker thread on the first enqueue.
    """

    def __init__(
        self,
        senders: Mapping[str, Sender],
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        send_interval: float = DEFAULT_SEND_INTERVAL,
        scheduler: Scheduler | None = None,
        autostart: bool = True,
    ) -> None:
        self._senders = dict(senders)
        self._max_attempts = max_attempts
        self._retry_base_delay = retry_base_delay
        self._send_interval = send_interval
        self._scheduler = scheduler or _timer_scheduler
        self._autostart = autostart

        self._tasks: deque[NotificationTask] = deque()
        self._cond = threading.Condition()
        self._drain_lock = threading.Lock()
        self._processing = False
        self._stop = threading.Event()
        self._worker: threading.Thread | None = None
        # token → scheduler handle (``None`` until the scheduler returns)
        self._retry_handles: dict[object, Any] = {}

    # ── Producers ───────────────────────────────────────────────────

    def enqueue(self, kind: str, email: str, payload: dict[str, Any] | None = None) -> NotificationTask:
        """Append a task with zero attempts and wake the worker."""
        if kind not in self._senders:
            raise ValueError(f"Unknown notification kind '{kind}'.")

        task = NotificationTask(
            kind=kind,
            email=email,
            payload=dict(payload or {}),
            max_attempts=self._max_attempts,
        )
        with self._cond:
            self._tasks.append(task)
            self._cond.notify_all()
        logger.info("Queued %s email %s for %s", kind, task.id, email)

        if self._autostart:
            self.start()
        return task

    def queue_fir_confirmation(self, email: str, user_name: str, report_data: dict[str, Any]) -> NotificationTask:
        return self.enqueue(
            NotificationKind.FIR_CONFIRMATION,
            email,
            {"user_name": user_name, "report": report_data},
        )

    def queue_password_reset(self, email: str, user_name: str, reset_url: str) -> NotificationTask:
        return self.enqueue(
            NotificationKind.PASSWORD_RESET,
            email,
            {"user_name": user_name, "reset_url": reset_url},
        )

    # ── Worker lifecycle ────────────────────────────────────────────

    def start(self) -> None:
        """Start the worker thread if it is not already running."""
        with self._cond:
            if self._worker is not None and self._worker.is_alive():
                return
            self._stop.clear()
            self._worker = threading.Thread(
                target=self._run,
                name="email-dispatch-worker",
                daemon=True,
            )
            self._worker.start()

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop the worker and cancel pending retry timers."""
        self._stop.set()
        with self._cond:
            handles = [h for h in self._retry_handles.values() if h is not None]
            self._retry_handles.clear()
            self._cond.notify_all()
            worker = self._worker
        for handle in handles:
            cancel = getattr(handle, "cancel", None)
            if cancel is not None:
                cancel()
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)
        logger.info("Email dispatch queue stopped (%d task(s) left in memory)", len(self._tasks))

    def _run(self) -> None:
        while not self._stop.is_set():
            with self._cond:
                while not self._tasks and not self._stop.is_set():
                    self._cond.wait()
            if self._stop.is_set():
                break
            if self.drain() == 0 and self._drain_lock.locked():
                # Another caller holds the drain; wait for its final notify.
                with self._cond:
                    self._cond.wait(timeout=0.5)

    # ── Consumer ────────────────────────────────────────────────────

    def drain(self) -> int:
        """
        Deliver queued tasks until the deque is empty.

        Returns the number of tasks delivered in this pass.  A concurrent
        caller returns ``0`` immediately instead of draining in parallel.
        """
        if not self._drain_lock.acquire(blocking=False):
            return 0

        delivered = 0
        try:
            with self._cond:
                self._processing = True
            logger.debug("Draining email queue: %d pending", len(self._tasks))

            while not self._stop.is_set():
                with self._cond:
                    if not self._tasks:
                        break
                    task = self._tasks.popleft()

                if self._deliver(task):
                    delivered += 1

                if self._send_interval and self._stop.wait(self._send_interval):
                    break
        finally:
            self._drain_lock.release()
            with self._cond:
                self._processing = False
                self._cond.notify_all()
        return delivered

    def _deliver(self, task: NotificationTask) -> bool:
        sender = self._senders.get(task.kind)
        if sender is None:
            logger.error("No sender registered for %s; dropping task %s", task.kind, task.id)
            return False

        try:
            sender(task.email, task.payload)
        except Exception as exc:
            task.attempts += 1
            if task.attempts < task.max_attempts:
                delay = self._retry_base_delay * task.attempts
                logger.warning(
                    "Sending %s to %s failed (%s); retry %d/%d in %.1fs",
                    task.kind, task.email, exc,
                    task.attempts + 1, task.max_attempts, delay,
                )
                self._schedule_retry(task, delay)
            else:
                logger.error(
                    "Email permanently failed after %d attempts: %s to %s",
                    task.attempts, task.kind, task.email,
                )
            return False

        logger.info("Email sent: %s to %s", task.kind, task.email)
        return True

    def _schedule_retry(self, task: NotificationTask, delay: float) -> None:
        token = object()

        def requeue() -> None:
            with self._cond:
                if self._retry_handles.pop(token, False) is False:
                    return  # cancelled by shutdown
                self._tasks.appendleft(task)
                self._cond.notify_all()

        with self._cond:
            self._retry_handles[token] = None
        handle = self._scheduler(delay, requeue)
        with self._cond:
            if token in self._retry_handles:
                self._retry_handles[token] = handle

    # ── Introspection ───────────────────────────────────────────────

    def status(self) -> dict[str, Any]:
        with self._cond:
            return {
                "pending": len(self._tasks),
                "processing": self._processing,
                "scheduled_retries": len(self._retry_handles),
                "tasks": [task.summary() for task in self._tasks],
            }

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """
        Block until nothing is queued, processing or awaiting retry.

        Returns ``False`` if ``timeout`` elapsed first.
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._tasks and not self._processing and not self._retry_handles,
                timeout,
            )
