"""
Core app serializers.

Mostly **response-only** serializers for the aggregated endpoints served
by the core app: the admin dashboard, the email queue monitor and the
system constants.  They work on the plain dicts produced by
``core.services`` and never import models from other apps.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers


# ════════════════════════════════════════════════════════════════════
#  Dashboard Statistics
# ════════════════════════════════════════════════════════════════════

class DashboardFilterSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError("start_date must not be after end_date.")
        return attrs


class UserStatsSerializer(serializers.Serializer):
    total_users = serializers.IntegerField()
    citizens = serializers.IntegerField()
    police = serializers.IntegerField()
    admins = serializers.IntegerField()
    verified_users = serializers.IntegerField()
    active_users = serializers.IntegerField()


class ReportStatsSerializer(serializers.Serializer):
    total_reports = serializers.IntegerField()
    pending_reports = serializers.IntegerField()
    under_investigation = serializers.IntegerField()
    resolved_reports = serializers.IntegerField()
    anonymous_reports = serializers.IntegerField()
    pending_firs = serializers.IntegerField()


class RecentUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField()
    email = serializers.EmailField()
    role = serializers.CharField()
    is_verified = serializers.BooleanField()
    date_joined = serializers.DateTimeField()


class RecentReportSerializer(serializers.Serializer):
    """
    Recent report summary.  Carries no reporter information, so anonymous
    reports need no masking here.
    """

    id = serializers.IntegerField()
    title = serializers.CharField()
    category = serializers.CharField()
    severity = serializers.CharField()
    status = serializers.CharField()
    created_at = serializers.DateTimeField()


class DashboardStatsSerializer(serializers.Serializer):
    """Top-level payload of ``GET /api/core/dashboard/``."""

    user_stats = UserStatsSerializer()
    report_stats = ReportStatsSerializer()
    recent_users = RecentUserSerializer(many=True)
    recent_reports = RecentReportSerializer(many=True)


# ════════════════════════════════════════════════════════════════════
#  Email Queue
# ════════════════════════════════════════════════════════════════════

class QueuedTaskSerializer(serializers.Serializer):
    id = serializers.CharField()
    kind = serializers.CharField()
    email = serializers.EmailField()
    attempts = serializers.IntegerField()
    created_at = serializers.DateTimeField()


class EmailQueueStatusSerializer(serializers.Serializer):
    """Queue snapshot.  Task payloads are never part of it."""

    pending = serializers.IntegerField()
    processing = serializers.BooleanField()
    scheduled_retries = serializers.IntegerField()
    tasks = QueuedTaskSerializer(many=True)


# ════════════════════════════════════════════════════════════════════
#  System Constants
# ════════════════════════════════════════════════════════════════════

class ChoiceItemSerializer(serializers.Serializer):
    value = serializers.CharField()
    label = serializers.CharField()


class SystemConstantsSerializer(serializers.Serializer):
    report_categories = ChoiceItemSerializer(many=True)
    report_severities = ChoiceItemSerializer(many=True)
    report_statuses = ChoiceItemSerializer(many=True)
    report_priorities = ChoiceItemSerializer(many=True)
    fir_statuses = ChoiceItemSerializer(many=True)
    verification_statuses = ChoiceItemSerializer(many=True)
    user_roles = ChoiceItemSerializer(many=True)
