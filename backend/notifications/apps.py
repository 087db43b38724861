from django.apps import AppConfig
from django.conf import settings


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"
    verbose_name = "Notifications"

    #: Process-wide queue, built in ``ready()``.
    dispatch_queue = None

    def ready(self):
        from .emails import SENDERS
        from .queue import EmailDispatchQueue

        self.dispatch_queue = EmailDispatchQueue(
            senders=SENDERS,
            max_attempts=settings.EMAIL_QUEUE_MAX_ATTEMPTS,
            retry_base_delay=settings.EMAIL_QUEUE_RETRY_BASE_DELAY,
            send_interval=settings.EMAIL_QUEUE_SEND_INTERVAL,
            autostart=settings.EMAIL_QUEUE_AUTOSTART,
        )
