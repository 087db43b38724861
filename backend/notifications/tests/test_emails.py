"""Tests for the templated senders in ``notifications.emails``."""

from __future__ import annotations

import pytest
from django.core import mail

from notifications.emails import (
    SENDERS,
    EmailDeliveryError,
    NotificationKind,
    send_fir_confirmation,
    send_password_reset,
)

REPORT = {
    "id": 7,
    "title": "Bike stolen",
    "category_display": "Theft",
    "severity_display": "Low",
    "address": "1 Elm St",
    "date_time": "2026-01-01T10:00:00+00:00",
}


def test_fir_confirmation_renders_report_details(settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

    send_fir_confirmation("alice@example.com", {"user_name": "Alice", "report": REPORT})

    assert len(mail.outbox) == 1
    message = mail.outbox[0]
    assert message.to == ["alice@example.com"]
    assert "FIR Request Confirmation" in message.subject
    assert "Bike stolen" in message.body
    assert "1 Elm St" in message.body
    html, mimetype = message.alternatives[0]
    assert mimetype == "text/html"
    assert "Alice" in html


def test_password_reset_contains_link(settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    url = "http://localhost:3000/reset-password/MQ/abc-123"

    send_password_reset("bob@example.com", {"user_name": "Bob", "reset_url": url})

    assert url in mail.outbox[0].body


def test_missing_recipient_raises():
    with pytest.raises(EmailDeliveryError):
        send_password_reset("", {"user_name": "Nobody", "reset_url": "x"})


def test_transport_failure_raises_delivery_error(settings, monkeypatch):
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

    def boom(self, fail_silently=False):
        raise OSError("connection refused")

    monkeypatch.setattr("django.core.mail.EmailMultiAlternatives.send", boom)

    with pytest.raises(EmailDeliveryError):
        send_fir_confirmation("alice@example.com", {"user_name": "Alice", "report": REPORT})


def test_every_kind_has_a_sender():
    assert set(SENDERS) == {NotificationKind.FIR_CONFIRMATION, NotificationKind.PASSWORD_RESET}
