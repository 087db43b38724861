"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``fake_scheduler`` / ``dispatch_queue`` for deterministic queue tests.
  - an autouse fixture that gives every test its own dispatch queue
    whose worker thread never starts.
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


class FakeScheduler:
    """
    Records delayed callbacks instead of running them on a timer.

    ``fire_all()`` runs every pending callback immediately.
    """

    class Handle:
        def __init__(self, delay, callback):
            self.delay = delay
            self.callback = callback
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.handles: list[FakeScheduler.Handle] = []

    def __call__(self, delay, callback):
        handle = self.Handle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def delays(self) -> list[float]:
        return [h.delay for h in self.handles]

    def fire_all(self) -> None:
        pending, self.handles = self.handles, []
        for handle in pending:
            if not handle.cancelled:
                handle.callback()


@pytest.fixture()
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture(autouse=True)
def _isolated_dispatch_queue(monkeypatch):
    """
    Replace the process-wide dispatch queue with a fresh one per test.

    The replacement never starts its worker, so queued emails stay in
    memory where tests can inspect them through ``status()``.
    """
    from django.apps import apps

    from notifications.emails import SENDERS
    from notifications.queue import EmailDispatchQueue

    queue = EmailDispatchQueue(
        senders=SENDERS,
        send_interval=0,
        scheduler=FakeScheduler(),
        autostart=False,
    )
    monkeypatch.setattr(apps.get_app_config("notifications"), "dispatch_queue", queue)
    yield queue
    queue.shutdown(timeout=1)


@pytest.fixture()
def dispatch_queue(_isolated_dispatch_queue):
    """The per-test queue installed as the process-wide dispatch queue."""
    return _isolated_dispatch_queue


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            user = create_user(username="alice")
            officer = create_user(role="police", is_verified=True)
    """
    from accounts.models import User

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        role: str = "citizen",
        is_active: bool = True,
        is_verified: bool | None = None,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"
        if is_verified is None:
            is_verified = role != "police"

        return User.objects.create_user(
            username=username,
            password=password,
            email=email,
            role=role,
            is_active=is_active,
            is_verified=is_verified,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper that creates a user and returns an ``Authorization``
    header dict with a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            header = auth_header(role="admin")
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
            resp = api_client.get("/api/core/dashboard/")
            assert resp.status_code == 200
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(*, username: str | None = None, role: str = "citizen", **user_kwargs) -> dict[str, str]:
        user = create_user(username=username, role=role, **user_kwargs)
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make
