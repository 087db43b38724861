"""
Reports app models.

A ``Report`` is a citizen's account of a crime.  It carries three
independent pieces of state:

* ``status``               — investigation lifecycle, changed by police.
* ``fir_status``           — First Information Report sub-workflow,
                             requested at creation and decided by police
                             or admins.
* ``verification_status``  — admin's judgement of the report's veracity.

Evidence (photo / video / document URLs) and witness statements are
stored inline as JSON; police notes live in their own table so each
note keeps a real reference to its author.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class ReportCategory(models.TextChoices):
    THEFT = "theft", "Theft"
    ASSAULT = "assault", "Assault"
    VANDALISM = "vandalism", "Vandalism"
    FRAUD = "fraud", "Fraud"
    BURGLARY = "burglary", "Burglary"
    VEHICLE_THEFT = "vehicle_theft", "Vehicle Theft"
    HARASSMENT = "harassment", "Harassment"
    DRUG_RELATED = "drug_related", "Drug Related"
    OTHER = "other", "Other"


class ReportSeverity(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"


class ReportStatus(models.TextChoices):
    """
    Investigation lifecycle.  Any status may follow any other; there is
    no forbidden-transition table.
    """

    PENDING = "pending", "Pending"
    UNDER_INVESTIGATION = "under_investigation", "Under Investigation"
    RESOLVED = "resolved", "Resolved"
    CLOSED = "closed", "Closed"
    FALSE_REPORT = "false_report", "False Report"


class FIRStatus(models.TextChoices):
    NOT_REQUESTED = "not_requested", "Not Requested"
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class VerificationStatus(models.TextChoices):
    UNVERIFIED = "unverified", "Unverified"
    VERIFIED = "verified", "Verified"
    FALSE_REPORT = "false_report", "False Report"


class ReportPriority(models.TextChoices):
    LOW = "low", "Low"
    NORMAL = "normal", "Normal"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"


def empty_evidence() -> dict:
    return {"photos": [], "videos": [], "documents": []}


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class Report(TimeStampedModel):
    """
    A crime report.

    ``fir_status`` is ``not_requested`` exactly when ``fir_requested`` is
    false; a database check constraint backs the service-layer rule.
    """

    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="reports",
        verbose_name="Reporter",
    )
    title = models.CharField(max_length=200, verbose_name="Title")
    description = models.TextField(max_length=1000, verbose_name="Description")
    category = models.CharField(
        max_length=20,
        choices=ReportCategory.choices,
        verbose_name="Category",
    )
    severity = models.CharField(
        max_length=10,
        choices=ReportSeverity.choices,
        default=ReportSeverity.MEDIUM,
        verbose_name="Severity",
    )
    date_time = models.DateTimeField(verbose_name="Incident Date & Time")

    # ── Location ─────────────────────────────────────────────────────
    address = models.CharField(max_length=255, verbose_name="Address")
    latitude = models.FloatField(verbose_name="Latitude")
    longitude = models.FloatField(verbose_name="Longitude")
    city = models.CharField(max_length=100, blank=True, default="", verbose_name="City")
    state = models.CharField(max_length=100, blank=True, default="", verbose_name="State")
    zip_code = models.CharField(max_length=20, blank=True, default="", verbose_name="Zip Code")

    is_anonymous = models.BooleanField(default=False, verbose_name="Anonymous")

    # ── FIR sub-workflow ─────────────────────────────────────────────
    fir_requested = models.BooleanField(default=False, verbose_name="FIR Requested")
    fir_status = models.CharField(
        max_length=20,
        choices=FIRStatus.choices,
        default=FIRStatus.NOT_REQUESTED,
        db_index=True,
        verbose_name="FIR Status",
    )
    fir_number = models.CharField(max_length=50, blank=True, default="", verbose_name="FIR Number")
    fir_approved_at = models.DateTimeField(null=True, blank=True, verbose_name="FIR Approved At")
    fir_approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_firs",
        verbose_name="FIR Approved By",
    )

    # ── Investigation ────────────────────────────────────────────────
    status = models.CharField(
        max_length=25,
        choices=ReportStatus.choices,
        default=ReportStatus.PENDING,
        verbose_name="Status",
    )
    assigned_officer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_reports",
        limit_choices_to={"role": "police"},
        verbose_name="Assigned Officer",
    )

    # ── Admin verification ───────────────────────────────────────────
    verification_status = models.CharField(
        max_length=20,
        choices=VerificationStatus.choices,
        default=VerificationStatus.UNVERIFIED,
        verbose_name="Verification Status",
    )
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="verified_reports",
        verbose_name="Verified By",
    )
    verified_at = models.DateTimeField(null=True, blank=True, verbose_name="Verified At")

    # ── Attachments ──────────────────────────────────────────────────
    evidence = models.JSONField(default=empty_evidence, blank=True, verbose_name="Evidence")
    witnesses = models.JSONField(default=list, blank=True, verbose_name="Witnesses")
    tags = models.JSONField(default=list, blank=True, verbose_name="Tags")

    priority = models.CharField(
        max_length=10,
        choices=ReportPriority.choices,
        default=ReportPriority.NORMAL,
        verbose_name="Priority",
    )
    estimated_loss_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name="Estimated Loss",
    )
    estimated_loss_currency = models.CharField(
        max_length=3,
        default="USD",
        verbose_name="Loss Currency",
    )

    class Meta:
        verbose_name = "Report"
        verbose_name_plural = "Reports"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["category", "status"], name="report_category_status_idx"),
            models.Index(fields=["severity", "priority"], name="report_severity_priority_idx"),
            models.Index(fields=["-created_at"], name="report_created_at_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(fir_requested=False, fir_status=FIRStatus.NOT_REQUESTED)
                    | (Q(fir_requested=True) & ~Q(fir_status=FIRStatus.NOT_REQUESTED))
                ),
                name="report_fir_status_matches_request",
            ),
        ]

    def __str__(self):
        return f"Report #{self.pk} — {self.title}"

    @property
    def full_address(self) -> str:
        parts = [self.address, self.city, " ".join(p for p in (self.state, self.zip_code) if p)]
        return ", ".join(p for p in parts if p)


class PoliceNote(models.Model):
    """
    A note left on a report by an officer or admin, usually alongside a
    status change or FIR decision.  Notes are kept in creation order.
    """

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="police_notes",
        verbose_name="Report",
    )
    officer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="police_notes",
        verbose_name="Officer",
    )
    note = models.TextField(verbose_name="Note")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Timestamp")

    class Meta:
        verbose_name = "Police Note"
        verbose_name_plural = "Police Notes"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"Note on Report #{self.report_id} by {self.officer}"
