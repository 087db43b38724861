"""
Core app services — **Service Layer**.

Cross-app aggregation for the admin dashboard, the email queue monitor
and the system constants endpoint.

╔══════════════════════════════════════════════════════════════════════╗
║  CROSS-APP IMPORT RULE                                             ║
║                                                                    ║
║  Models from other apps are never imported at module level.        ║
║  Resolve them inside the method that needs them::                  ║
║                                                                    ║
║      Report = apps.get_model("reports", "Report")                  ║
║                                                                    ║
║  Choice classes are imported lazily as well.                       ║
╚══════════════════════════════════════════════════════════════════════╝
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from django.apps import apps
from django.contrib.auth import get_user_model
from django.db.models import Count, Q

from core.constants import RECENT_ACTIVITY_LIMIT
from core.domain.access import require_role

if TYPE_CHECKING:
    from accounts.models import User
    from notifications.queue import EmailDispatchQueue

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════
#  Dashboard Aggregation Service
# ════════════════════════════════════════════════════════════════════

class DashboardAggregationService:
    """
    Admin dashboard statistics.

    Parameters
    ----------
    user : User
        The requesting user.  Must act as admin.
    start_date, end_date : date, optional
        Inclusive bounds applied to account creation and report creation
        dates.  Recent activity ignores them.
    """

    def __init__(
        self,
        user: User,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> None:
        require_role(user, "admin")
        self.user = user
        self.start_date = start_date
        self.end_date = end_date

    def _date_range(self, field: str) -> Q:
        q = Q()
        if self.start_date:
            q &= Q(**{f"{field}__date__gte": self.start_date})
        if self.end_date:
            q &= Q(**{f"{field}__date__lte": self.end_date})
        return q

    def get_stats(self) -> dict[str, Any]:
        return {
            "user_stats": self._get_user_stats(),
            "report_stats": self._get_report_stats(),
            "recent_users": self._get_recent_users(),
            "recent_reports": self._get_recent_reports(),
        }

    def _get_user_stats(self) -> dict[str, int]:
        User = get_user_model()
        return User.objects.filter(self._date_range("date_joined")).aggregate(
            total_users=Count("id"),
            citizens=Count("id", filter=Q(role="citizen")),
            police=Count("id", filter=Q(role="police")),
            admins=Count("id", filter=Q(role="admin")),
            verified_users=Count("id", filter=Q(is_verified=True)),
            active_users=Count("id", filter=Q(is_active=True)),
        )

    def _get_report_stats(self) -> dict[str, int]:
        from reports.models import FIRStatus, ReportStatus

        Report = apps.get_model("reports", "Report")
        return Report.objects.filter(self._date_range("created_at")).aggregate(
            total_reports=Count("id"),
            pending_reports=Count("id", filter=Q(status=ReportStatus.PENDING)),
            under_investigation=Count("id", filter=Q(status=ReportStatus.UNDER_INVESTIGATION)),
            resolved_reports=Count("id", filter=Q(status=ReportStatus.RESOLVED)),
            anonymous_reports=Count("id", filter=Q(is_anonymous=True)),
            pending_firs=Count("id", filter=Q(fir_status=FIRStatus.PENDING)),
        )

    def _get_recent_users(self) -> list[dict[str, Any]]:
        User = get_user_model()
        return list(
            User.objects.order_by("-date_joined")
            .values("id", "username", "email", "role", "is_verified", "date_joined")[:RECENT_ACTIVITY_LIMIT]
        )

    def _get_recent_reports(self) -> list[dict[str, Any]]:
        Report = apps.get_model("reports", "Report")
        return list(
            Report.objects.order_by("-created_at")
            .values("id", "title", "category", "severity", "status", "created_at")[:RECENT_ACTIVITY_LIMIT]
        )


# ═══════════════════════════════════════════════════════════════════
#  Email Queue Status Service
# ═══════════════════════════════════════════════════════════════════


class EmailQueueStatusService:
    """Read-only view of the in-process notification dispatch queue."""

    @staticmethod
    def get_status(
        user: User,
        dispatch_queue: EmailDispatchQueue | None = None,
    ) -> dict[str, Any]:
        require_role(user, "admin")
        if dispatch_queue is None:
            from notifications import get_dispatch_queue
            dispatch_queue = get_dispatch_queue()
        return dispatch_queue.status()


# ═══════════════════════════════════════════════════════════════════
#  System Constants Service
# ═══════════════════════════════════════════════════════════════════


class SystemConstantsService:
    """
    Choice enumerations for frontend dropdowns and filters.

    Everything is derived from the model ``TextChoices`` classes so the
    frontend never drifts from the backend.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        from accounts.models import UserRole
        from reports.models import (
            FIRStatus,
            ReportCategory,
            ReportPriority,
            ReportSeverity,
            ReportStatus,
            VerificationStatus,
        )

        to_list = SystemConstantsService._choices_to_list
        return {
            "report_categories": to_list(ReportCategory),
            "report_severities": to_list(ReportSeverity),
            "report_statuses": to_list(ReportStatus),
            "report_priorities": to_list(ReportPriority),
            "fir_statuses": to_list(FIRStatus),
            "verification_statuses": to_list(VerificationStatus),
            "user_roles": to_list(UserRole),
        }

    @staticmethod
    def _choices_to_list(choices_class: type) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]
