"""
Reports app Service Layer.

This module is the **single source of truth** for all business logic
in the ``reports`` app.  Views must remain thin: validate input via
serializers, call a service method, and return the result wrapped in
a DRF ``Response``.

Architecture
------------
- ``visible_reports_filter`` / ``ensure_report_visible`` — role-based
  access filter applied to every read.
- ``ReportQueryService``      — filtered listings, heatmap and statistics.
- ``ReportCreationService``   — report submission (+ FIR confirmation email).
- ``ReportWorkflowService``   — status, FIR and verification mutations.
- ``ReportAssignmentService`` — admin assignment of a police officer.

Report State Overview
---------------------
Three independent pieces of state live on a report::

  status               pending ⇄ under_investigation ⇄ resolved ⇄ closed ⇄ false_report
                       (open policy: any status may follow any other)

  fir_status           not_requested                    (fir_requested = False, terminal)
                       pending → approved | rejected    (fir_requested = True)
                       approved ⇄ rejected              (decision may be revised)

  verification_status  unverified → verified | false_report   (admin only)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from core.constants import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    FIR_NUMBER_PREFIX,
    SEVERITY_HEATMAP_WEIGHTS,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from core.domain.access import (
    ScopeConfig,
    apply_role_filter,
    build_role_scope,
    get_effective_role,
    require_role,
)
from core.domain.exceptions import DomainError, InvalidTransition, NotFound, PermissionDenied

from .models import (
    FIRStatus,
    PoliceNote,
    Report,
    ReportCategory,
    ReportSeverity,
    ReportStatus,
    VerificationStatus,
)

if TYPE_CHECKING:
    from accounts.models import User
    from notifications.queue import EmailDispatchQueue

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Access Filter
# ═══════════════════════════════════════════════════════════════════

#: Role → visibility filter for report listings.
#: Police see everything; jurisdiction scoping is not modelled.
REPORT_SCOPE_CONFIG: ScopeConfig = {
    "citizen": lambda u: Q(reporter=u) | (Q(is_anonymous=False) & ~Q(status=ReportStatus.CLOSED)),
    "police": lambda u: Q(),
    "admin": lambda u: Q(),
}

#: Aggregates (heatmap, statistics) never include anonymous reports
#: for citizens, not even their own.
AGGREGATE_SCOPE_CONFIG: ScopeConfig = {
    "citizen": lambda u: Q(is_anonymous=False),
    "police": lambda u: Q(),
    "admin": lambda u: Q(),
}


def visible_reports_filter(user: User | None) -> Q:
    """Return the ``Q`` restricting which reports ``user`` may list."""
    return build_role_scope(user, scope_config=REPORT_SCOPE_CONFIG)


def ensure_report_visible(user: User, report: Report) -> None:
    """
    Raise ``PermissionDenied`` when a citizen opens someone else's
    anonymous report.

    Direct retrieval is deliberately looser than listing: a citizen may
    open a closed public report by id even though it is not listed.
    """
    role_name = get_effective_role(user)
    if role_name is None:
        raise PermissionDenied("Access denied.")
    if (
        role_name == "citizen"
        and report.is_anonymous
        and report.reporter_id != user.pk
    ):
        raise PermissionDenied("Access denied.")


def _base_queryset() -> QuerySet:
    return Report.objects.select_related(
        "reporter", "assigned_officer", "fir_approved_by", "verified_by",
    )


def _apply_filters(qs: QuerySet, filters: dict[str, Any]) -> QuerySet:
    """Apply the optional listing filters from ``ReportFilterSerializer``."""
    if filters.get("category"):
        qs = qs.filter(category=filters["category"])
    if filters.get("status"):
        qs = qs.filter(status=filters["status"])
    if filters.get("severity"):
        qs = qs.filter(severity=filters["severity"])
    if filters.get("city"):
        qs = qs.filter(city__icontains=filters["city"])
    if filters.get("start_date"):
        qs = qs.filter(date_time__date__gte=filters["start_date"])
    if filters.get("end_date"):
        qs = qs.filter(date_time__date__lte=filters["end_date"])
    if filters.get("search"):
        term = filters["search"]
        qs = qs.filter(Q(title__icontains=term) | Q(description__icontains=term))
    return qs


# ═══════════════════════════════════════════════════════════════════
#  Query Service
# ═══════════════════════════════════════════════════════════════════


class ReportQueryService:
    """Read-side operations.  Every listing passes the access filter."""

    @staticmethod
    def get_filtered_queryset(requesting_user: User, filters: dict[str, Any]) -> QuerySet:
        """
        Role-scoped listing with optional filters.

        Supported ``filters`` keys: ``category``, ``status``, ``severity``,
        ``city`` (partial, case-insensitive), ``start_date`` / ``end_date``
        (inclusive, on the incident date) and ``search`` (title or
        description).
        """
        qs = apply_role_filter(_base_queryset(), requesting_user, scope_config=REPORT_SCOPE_CONFIG)
        return _apply_filters(qs, filters).order_by("-created_at")

    @staticmethod
    def get_report(report_id: int) -> Report:
        try:
            return _base_queryset().get(pk=report_id)
        except Report.DoesNotExist:
            raise NotFound("Crime report not found.")

    @staticmethod
    def get_report_detail(requesting_user: User, report_id: int) -> Report:
        report = ReportQueryService.get_report(report_id)
        ensure_report_visible(requesting_user, report)
        return report

    @staticmethod
    def list_own_reports(requesting_user: User, filters: dict[str, Any]) -> QuerySet:
        qs = _base_queryset().filter(reporter=requesting_user)
        return _apply_filters(qs, filters).order_by("-created_at")

    @staticmethod
    def list_assigned_reports(requesting_user: User, filters: dict[str, Any]) -> QuerySet:
        require_role(requesting_user, "police")
        qs = _base_queryset().filter(assigned_officer=requesting_user)
        return _apply_filters(qs, filters).order_by("-created_at")

    @staticmethod
    def list_fir_requests(requesting_user: User, fir_status: str = FIRStatus.PENDING) -> QuerySet:
        """
        Reports whose FIR was requested, filtered by FIR status.

        ``fir_status="all"`` returns pending, approved and rejected alike.
        """
        require_role(requesting_user, "police", "admin")
        qs = _base_queryset()
        if fir_status == "all":
            qs = qs.exclude(fir_status=FIRStatus.NOT_REQUESTED)
        else:
            qs = qs.filter(fir_status=fir_status)
        return qs.order_by("-created_at")

    @staticmethod
    def list_verification_queue(requesting_user: User) -> QuerySet:
        require_role(requesting_user, "admin")
        return (
            _base_queryset()
            .filter(verification_status=VerificationStatus.UNVERIFIED)
            .order_by("-created_at")
        )

    @staticmethod
    def get_heatmap_points(requesting_user: User, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """
        One weighted point per report for the crime heatmap.

        Weight follows severity (critical 5, high 4, medium 3, low 1).
        """
        qs = apply_role_filter(Report.objects.all(), requesting_user, scope_config=AGGREGATE_SCOPE_CONFIG)
        qs = _apply_filters(qs, {k: filters.get(k) for k in ("start_date", "end_date", "category")})
        return [
            {
                "lat": lat,
                "lng": lng,
                "weight": SEVERITY_HEATMAP_WEIGHTS.get(severity, 1),
                "category": category,
            }
            for lat, lng, severity, category in qs.values_list(
                "latitude", "longitude", "severity", "category",
            )
        ]

    @staticmethod
    def get_summary_stats(requesting_user: User, filters: dict[str, Any]) -> dict[str, Any]:
        qs = apply_role_filter(Report.objects.all(), requesting_user, scope_config=AGGREGATE_SCOPE_CONFIG)
        qs = _apply_filters(qs, {k: filters.get(k) for k in ("start_date", "end_date")})

        totals = qs.aggregate(
            total_reports=Count("id"),
            pending_reports=Count("id", filter=Q(status=ReportStatus.PENDING)),
            resolved_reports=Count("id", filter=Q(status=ReportStatus.RESOLVED)),
        )
        category_breakdown = {
            row["category"]: row["count"]
            for row in qs.values("category").annotate(count=Count("id")).order_by("category")
        }
        severity_breakdown = {
            row["severity"]: row["count"]
            for row in qs.values("severity").annotate(count=Count("id")).order_by("severity")
        }
        return {
            **totals,
            "category_breakdown": category_breakdown,
            "severity_breakdown": severity_breakdown,
        }


# ═══════════════════════════════════════════════════════════════════
#  Creation Service
# ═══════════════════════════════════════════════════════════════════


def _validate_report_content(data: dict[str, Any]) -> None:
    """
    Re-check the content rules the serializer enforces so the service is
    safe to call without one.
    """
    title = (data.get("title") or "").strip()
    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        raise DomainError(
            f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters."
        )
    description = (data.get("description") or "").strip()
    if not DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH:
        raise DomainError(
            f"Description must be between {DESCRIPTION_MIN_LENGTH} and "
            f"{DESCRIPTION_MAX_LENGTH} characters."
        )
    if data.get("category") not in ReportCategory.values:
        raise DomainError("Invalid crime category.")
    if data.get("severity", ReportSeverity.MEDIUM) not in ReportSeverity.values:
        raise DomainError("Invalid severity level.")
    if not (data.get("address") or "").strip():
        raise DomainError("Address is required.")

    latitude, longitude = data.get("latitude"), data.get("longitude")
    if latitude is None or not -90 <= latitude <= 90:
        raise DomainError("Invalid latitude.")
    if longitude is None or not -180 <= longitude <= 180:
        raise DomainError("Invalid longitude.")
    if data.get("date_time") is None:
        raise DomainError("Incident date and time are required.")


def _fir_confirmation_payload(report: Report) -> dict[str, Any]:
    return {
        "id": report.pk,
        "title": report.title,
        "category_display": report.get_category_display(),
        "severity_display": report.get_severity_display(),
        "address": report.address,
        "date_time": report.date_time.isoformat(),
    }


class ReportCreationService:
    """Handles crime report submission."""

    @staticmethod
    @transaction.atomic
    def create_report(
        validated_data: dict[str, Any],
        requesting_user: User,
        dispatch_queue: EmailDispatchQueue | None = None,
    ) -> Report:
        """
        Persist a new report filed by ``requesting_user``.

        ``fir_status`` starts at ``pending`` when an FIR was requested and
        ``not_requested`` otherwise.  A non-anonymous FIR request queues a
        confirmation email once the transaction commits; a failure to
        queue is logged and never undoes the report.

        Raises
        ------
        PermissionDenied
            If the user is neither a citizen nor an admin.
        DomainError
            If the content breaks a validation rule.
        """
        require_role(
            requesting_user, "citizen", "admin",
            message="Only citizens and admins may submit crime reports.",
        )
        data = dict(validated_data)
        _validate_report_content(data)

        data["title"] = data["title"].strip()
        data["description"] = data["description"].strip()
        fir_requested = bool(data.pop("fir_requested", False))

        report = Report.objects.create(
            reporter=requesting_user,
            fir_requested=fir_requested,
            fir_status=FIRStatus.PENDING if fir_requested else FIRStatus.NOT_REQUESTED,
            **data,
        )
        logger.info(
            "Report %s filed by user %s (fir_requested=%s, anonymous=%s)",
            report.pk, requesting_user.pk, fir_requested, report.is_anonymous,
        )

        if fir_requested and not report.is_anonymous:
            payload = _fir_confirmation_payload(report)
            email = requesting_user.email
            user_name = requesting_user.first_name or requesting_user.username

            def enqueue_confirmation() -> None:
                queue = dispatch_queue
                if queue is None:
                    from notifications import get_dispatch_queue
                    queue = get_dispatch_queue()
                queue.queue_fir_confirmation(email, user_name, payload)

            # Runs after commit; robust so a queue failure never affects the report.
            transaction.on_commit(enqueue_confirmation, robust=True)

        return report


# ═══════════════════════════════════════════════════════════════════
#  Workflow Service
# ═══════════════════════════════════════════════════════════════════


def _append_note(report: Report, officer: User, note: str) -> PoliceNote | None:
    note = (note or "").strip()
    if not note:
        return None
    return PoliceNote.objects.create(report=report, officer=officer, note=note)


def _generate_fir_number() -> str:
    # Millisecond timestamp; two approvals in the same millisecond collide.
    return f"{FIR_NUMBER_PREFIX}{int(timezone.now().timestamp() * 1000)}"


class ReportWorkflowService:
    """Mutations of a report's status, FIR and verification state."""

    @staticmethod
    @transaction.atomic
    def update_status(
        report: Report,
        new_status: str,
        requesting_user: User,
        note: str = "",
    ) -> Report:
        """
        Set ``report.status``.  Any status may follow any other, including
        itself.  A non-blank ``note`` is appended to the police notes.
        """
        require_role(requesting_user, "police", "admin")
        if new_status not in ReportStatus.values:
            raise DomainError(f"Invalid status '{new_status}'.")

        previous = report.status
        report.status = new_status
        report.save(update_fields=["status", "updated_at"])
        _append_note(report, requesting_user, note)

        logger.info(
            "Report %s status %s -> %s by user %s",
            report.pk, previous, new_status, requesting_user.pk,
        )
        return report

    @staticmethod
    @transaction.atomic
    def assign_officer(report: Report, officer: User) -> Report:
        """
        Point ``assigned_officer`` at ``officer``.

        Performs no role check; ``ReportAssignmentService`` vets the
        officer and the caller.
        """
        report.assigned_officer = officer
        report.save(update_fields=["assigned_officer", "updated_at"])
        logger.info("Report %s assigned to officer %s", report.pk, officer.pk)
        return report

    @staticmethod
    @transaction.atomic
    def update_fir(
        report: Report,
        action: str,
        requesting_user: User,
        fir_number: str | None = None,
        note: str = "",
    ) -> Report:
        """
        Approve or reject a requested FIR.

        Approval keeps ``fir_number`` if given, else the existing number,
        else a generated ``FIR-<epoch millis>``.  Rejection clears the
        number and the approval stamp.

        Raises
        ------
        InvalidTransition
            If no FIR was requested for the report.
        """
        require_role(requesting_user, "police", "admin")
        if action not in ("approve", "reject"):
            raise DomainError("action must be approve or reject.")

        target = FIRStatus.APPROVED if action == "approve" else FIRStatus.REJECTED
        if report.fir_status == FIRStatus.NOT_REQUESTED:
            raise InvalidTransition(
                current=report.fir_status,
                target=target,
                reason="FIR was not requested for this report.",
            )

        if action == "approve":
            report.fir_status = FIRStatus.APPROVED
            report.fir_number = fir_number or report.fir_number or _generate_fir_number()
            report.fir_approved_at = timezone.now()
            report.fir_approved_by = requesting_user
        else:
            report.fir_status = FIRStatus.REJECTED
            report.fir_number = ""
            report.fir_approved_at = None
            report.fir_approved_by = None

        report.save(update_fields=[
            "fir_status", "fir_number", "fir_approved_at", "fir_approved_by", "updated_at",
        ])
        _append_note(report, requesting_user, note)

        logger.info(
            "Report %s FIR %s by user %s (number=%s)",
            report.pk, report.fir_status, requesting_user.pk, report.fir_number or "-",
        )
        return report

    @staticmethod
    @transaction.atomic
    def verify_report(
        report: Report,
        verification_status: str,
        requesting_user: User,
    ) -> Report:
        """Record the admin's verdict.  Leaves ``status`` untouched."""
        require_role(requesting_user, "admin")
        if verification_status not in (VerificationStatus.VERIFIED, VerificationStatus.FALSE_REPORT):
            raise DomainError("Invalid verification status.")

        report.verification_status = verification_status
        report.verified_by = requesting_user
        report.verified_at = timezone.now()
        report.save(update_fields=[
            "verification_status", "verified_by", "verified_at", "updated_at",
        ])
        logger.info(
            "Report %s marked %s by admin %s",
            report.pk, verification_status, requesting_user.pk,
        )
        return report


# ═══════════════════════════════════════════════════════════════════
#  Assignment Service
# ═══════════════════════════════════════════════════════════════════


class ReportAssignmentService:

    @staticmethod
    @transaction.atomic
    def assign_officer(report_id: int, officer_id: int, requesting_user: User) -> Report:
        """
        Assign an active police officer to a report.  Admin only.

        The officer is vetted before the report is looked up, so an
        invalid officer yields 400 even for a missing report.
        """
        require_role(requesting_user, "admin")

        User = get_user_model()
        officer = User.objects.filter(pk=officer_id, role="police", is_active=True).first()
        if officer is None:
            raise DomainError("Invalid officer ID.")

        report = ReportQueryService.get_report(report_id)
        return ReportWorkflowService.assign_officer(report, officer)
