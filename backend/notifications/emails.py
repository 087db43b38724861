"""
Templated email senders used by the dispatch queue.

Each sender takes ``(email, payload)`` and either delivers the message
or raises ``EmailDeliveryError``; the queue owns retries.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)

Sender = Callable[[str, dict[str, Any]], None]


class NotificationKind:
    FIR_CONFIRMATION = "fir_confirmation"
    PASSWORD_RESET = "password_reset"


class EmailDeliveryError(RuntimeError):
    """Raised when the mail transport fails."""


def _send_templated(email: str, subject: str, template: str, context: dict[str, Any]) -> None:
    if not email:
        raise EmailDeliveryError("Email recipient is missing")

    text_body = render_to_string(f"{template}.txt", context)
    html_body = render_to_string(f"{template}.html", context)

    message = EmailMultiAlternatives(
        subject=subject,
        body=text_body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[email],
    )
    message.attach_alternative(html_body, "text/html")
    try:
        sent = message.send(fail_silently=False)
    except Exception as exc:
        raise EmailDeliveryError(str(exc)) from exc
    if not sent:
        raise EmailDeliveryError(f"Mail backend accepted no message for {email}")


def send_fir_confirmation(email: str, payload: dict[str, Any]) -> None:
    _send_templated(
        email,
        subject="FIR Request Confirmation - Crime Report Submitted",
        template="notifications/email/fir_confirmation",
        context=payload,
    )
    logger.info("FIR confirmation email sent to %s", email)


def send_password_reset(email: str, payload: dict[str, Any]) -> None:
    _send_templated(
        email,
        subject="Password Reset Request - Crime Alert System",
        template="notifications/email/password_reset",
        context=payload,
    )
    logger.info("Password reset email sent to %s", email)


SENDERS: dict[str, Sender] = {
    NotificationKind.FIR_CONFIRMATION: send_fir_confirmation,
    NotificationKind.PASSWORD_RESET: send_password_reset,
}
