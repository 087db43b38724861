"""
Notifications app — in-process email dispatch queue.

One ``EmailDispatchQueue`` is built per process by
``NotificationsConfig.ready()``.  Services reach it through
``get_dispatch_queue()`` unless a queue is passed to them explicitly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

# Aliased: loading the app rebinds ``notifications.apps`` to the submodule.
from django.apps import apps as django_apps

if TYPE_CHECKING:
    from .queue import EmailDispatchQueue


def get_dispatch_queue() -> EmailDispatchQueue:
    """Return the process-wide dispatch queue owned by the app config."""
    return django_apps.get_app_config("notifications").dispatch_queue
