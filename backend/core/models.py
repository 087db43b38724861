from django.db import models


class TimeStampedModel(models.Model):
    """Adds ``created_at`` (set once on insert) and ``updated_at`` (every save)."""

    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created At")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Updated At")

    class Meta:
        abstract = True
