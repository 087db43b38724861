"""
Reports app serializers.

Serializers handle field definitions, read/write constraints and
field-level validation only.  State changes and role checks live in
``services.py``.

Structure
---------
1. Filter / query-param serializers
2. Nested value serializers (location, evidence, witnesses, notes)
3. Report read serializers (list, detail)
4. Report write serializer (create)
5. Workflow action serializers (status, assign, FIR, verify)
6. Aggregate response serializers (heatmap, stats)
"""

from __future__ import annotations

from typing import Any

from django.utils import timezone
from rest_framework import serializers

from core.constants import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    FIR_NUMBER_MAX_LENGTH,
    FIR_NUMBER_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from core.domain.access import has_role

from .models import (
    FIRStatus,
    PoliceNote,
    Report,
    ReportCategory,
    ReportPriority,
    ReportSeverity,
    ReportStatus,
    VerificationStatus,
)

ANONYMOUS_REPORTER = "Anonymous"


# ═══════════════════════════════════════════════════════════════════
#  1. Filter / Query-Parameter Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportFilterSerializer(serializers.Serializer):
    """
    Query parameters for ``GET /api/reports/`` and the other listings.

    All fields are optional.  ``start_date`` / ``end_date`` are inclusive
    and compare against the incident date.
    """

    category = serializers.ChoiceField(choices=ReportCategory.choices, required=False)
    status = serializers.ChoiceField(choices=ReportStatus.choices, required=False)
    severity = serializers.ChoiceField(choices=ReportSeverity.choices, required=False)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    search = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError("start_date must not be after end_date.")
        return attrs


class FIRRequestFilterSerializer(serializers.Serializer):
    fir_status = serializers.ChoiceField(
        choices=[
            (FIRStatus.PENDING, "Pending"),
            (FIRStatus.APPROVED, "Approved"),
            (FIRStatus.REJECTED, "Rejected"),
            ("all", "All"),
        ],
        default=FIRStatus.PENDING,
    )


# ═══════════════════════════════════════════════════════════════════
#  2. Nested Value Serializers
# ═══════════════════════════════════════════════════════════════════


class CoordinatesSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)


class LocationSerializer(serializers.Serializer):
    address = serializers.CharField(max_length=255)
    coordinates = CoordinatesSerializer()
    city = serializers.CharField(max_length=100, allow_blank=True, default="")
    state = serializers.CharField(max_length=100, allow_blank=True, default="")
    zip_code = serializers.CharField(max_length=20, allow_blank=True, default="")


class EvidenceItemSerializer(serializers.Serializer):
    """One photo, video or document reference.  Files are stored elsewhere."""

    url = serializers.URLField()
    caption = serializers.CharField(max_length=255, required=False, allow_blank=True)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    uploaded_at = serializers.DateTimeField(required=False)


class EvidenceSerializer(serializers.Serializer):
    photos = EvidenceItemSerializer(many=True, required=False)
    videos = EvidenceItemSerializer(many=True, required=False)
    documents = EvidenceItemSerializer(many=True, required=False)


class WitnessSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    contact = serializers.CharField(max_length=100, allow_blank=True, default="")
    statement = serializers.CharField(max_length=1000, allow_blank=True, default="")


class EstimatedLossSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    currency = serializers.CharField(max_length=3, default="USD")


class PoliceNoteSerializer(serializers.ModelSerializer):
    officer_name = serializers.SerializerMethodField()

    class Meta:
        model = PoliceNote
        fields = ["id", "officer", "officer_name", "note", "created_at"]
        read_only_fields = fields

    def get_officer_name(self, obj: PoliceNote) -> str | None:
        if obj.officer is None:
            return None
        return obj.officer.get_full_name() or obj.officer.username


def _user_summary(user) -> dict[str, Any] | None:
    if user is None:
        return None
    return {
        "id": user.pk,
        "username": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
    }


# ═══════════════════════════════════════════════════════════════════
#  3. Report Read Serializers
# ═══════════════════════════════════════════════════════════════════


class _ReporterMixin:
    """
    Masks the reporter of anonymous reports for everyone but admins.

    The viewing user is read from ``context["request"]``; without a
    request the reporter is masked.
    """

    def get_reporter(self, obj: Report) -> dict[str, Any] | str:
        if obj.is_anonymous:
            request = self.context.get("request")
            if request is None or not has_role(request.user, "admin"):
                return ANONYMOUS_REPORTER
        return _user_summary(obj.reporter)


class ReportListSerializer(_ReporterMixin, serializers.ModelSerializer):
    """Compact representation for listing endpoints."""

    reporter = serializers.SerializerMethodField()
    category_display = serializers.CharField(source="get_category_display", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Report
        fields = [
            "id",
            "title",
            "category",
            "category_display",
            "severity",
            "status",
            "status_display",
            "fir_status",
            "verification_status",
            "priority",
            "date_time",
            "address",
            "city",
            "latitude",
            "longitude",
            "is_anonymous",
            "reporter",
            "assigned_officer",
            "created_at",
        ]
        read_only_fields = fields


class ReportDetailSerializer(_ReporterMixin, serializers.ModelSerializer):
    """Full representation including notes and the FIR / verification trail."""

    reporter = serializers.SerializerMethodField()
    location = serializers.SerializerMethodField()
    assigned_officer = serializers.SerializerMethodField()
    fir_approved_by = serializers.SerializerMethodField()
    verified_by = serializers.SerializerMethodField()
    estimated_loss = serializers.SerializerMethodField()
    police_notes = PoliceNoteSerializer(many=True, read_only=True)
    category_display = serializers.CharField(source="get_category_display", read_only=True)
    severity_display = serializers.CharField(source="get_severity_display", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Report
        fields = [
            "id",
            "title",
            "description",
            "category",
            "category_display",
            "severity",
            "severity_display",
            "date_time",
            "location",
            "full_address",
            "is_anonymous",
            "reporter",
            "status",
            "status_display",
            "priority",
            "assigned_officer",
            "fir_requested",
            "fir_status",
            "fir_number",
            "fir_approved_at",
            "fir_approved_by",
            "verification_status",
            "verified_by",
            "verified_at",
            "evidence",
            "witnesses",
            "tags",
            "estimated_loss",
            "police_notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_location(self, obj: Report) -> dict[str, Any]:
        return {
            "address": obj.address,
            "coordinates": {"lat": obj.latitude, "lng": obj.longitude},
            "city": obj.city,
            "state": obj.state,
            "zip_code": obj.zip_code,
        }

    def get_assigned_officer(self, obj: Report) -> dict[str, Any] | None:
        return _user_summary(obj.assigned_officer)

    def get_fir_approved_by(self, obj: Report) -> dict[str, Any] | None:
        return _user_summary(obj.fir_approved_by)

    def get_verified_by(self, obj: Report) -> dict[str, Any] | None:
        return _user_summary(obj.verified_by)

    def get_estimated_loss(self, obj: Report) -> dict[str, Any] | None:
        if obj.estimated_loss_amount is None:
            return None
        return {
            "amount": str(obj.estimated_loss_amount),
            "currency": obj.estimated_loss_currency,
        }


# ═══════════════════════════════════════════════════════════════════
#  4. Report Write Serializer
# ═══════════════════════════════════════════════════════════════════


class ReportCreateSerializer(serializers.Serializer):
    """
    Request body for ``POST /api/reports/``.

    ``validated_data`` is flattened into ``Report`` field names so it
    can be handed straight to ``ReportCreationService.create_report``.
    """

    title = serializers.CharField(min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    description = serializers.CharField(
        min_length=DESCRIPTION_MIN_LENGTH,
        max_length=DESCRIPTION_MAX_LENGTH,
    )
    category = serializers.ChoiceField(choices=ReportCategory.choices)
    severity = serializers.ChoiceField(
        choices=ReportSeverity.choices,
        default=ReportSeverity.MEDIUM,
    )
    priority = serializers.ChoiceField(
        choices=ReportPriority.choices,
        default=ReportPriority.NORMAL,
    )
    date_time = serializers.DateTimeField()
    location = LocationSerializer()
    is_anonymous = serializers.BooleanField(default=False)
    fir_requested = serializers.BooleanField(default=False)
    evidence = EvidenceSerializer(required=False)
    witnesses = WitnessSerializer(many=True, required=False)
    tags = serializers.ListField(
        child=serializers.CharField(max_length=50, allow_blank=True),
        required=False,
        max_length=20,
    )
    estimated_loss = EstimatedLossSerializer(required=False)

    def validate_evidence(self, value: dict[str, Any]) -> dict[str, list]:
        # JSONField storage: timestamps become ISO strings.
        now = timezone.now().isoformat()
        evidence = {"photos": [], "videos": [], "documents": []}
        for kind in evidence:
            for item in value.get(kind, []):
                entry = {k: v for k, v in item.items() if k != "uploaded_at"}
                uploaded_at = item.get("uploaded_at")
                entry["uploaded_at"] = uploaded_at.isoformat() if uploaded_at else now
                evidence[kind].append(entry)
        return evidence

    def validate_tags(self, value: list[str]) -> list[str]:
        return [tag.strip() for tag in value if tag.strip()]

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        location = attrs.pop("location")
        attrs["address"] = location["address"].strip()
        attrs["latitude"] = location["coordinates"]["lat"]
        attrs["longitude"] = location["coordinates"]["lng"]
        attrs["city"] = location.get("city", "")
        attrs["state"] = location.get("state", "")
        attrs["zip_code"] = location.get("zip_code", "")

        if "witnesses" in attrs:
            attrs["witnesses"] = [dict(w) for w in attrs["witnesses"]]

        loss = attrs.pop("estimated_loss", None)
        if loss is not None:
            attrs["estimated_loss_amount"] = loss["amount"]
            attrs["estimated_loss_currency"] = loss.get("currency") or "USD"
        return attrs


# ═══════════════════════════════════════════════════════════════════
#  5. Workflow Action Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ReportStatus.choices)
    note = serializers.CharField(max_length=1000, allow_blank=True, default="")


class ReportAssignSerializer(serializers.Serializer):
    officer_id = serializers.IntegerField(min_value=1)


class FIRUpdateSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=[("approve", "Approve"), ("reject", "Reject")])
    fir_number = serializers.CharField(
        min_length=FIR_NUMBER_MIN_LENGTH,
        max_length=FIR_NUMBER_MAX_LENGTH,
        required=False,
    )
    note = serializers.CharField(max_length=1000, allow_blank=True, default="")


class ReportVerifySerializer(serializers.Serializer):
    verification_status = serializers.ChoiceField(
        choices=[
            (VerificationStatus.VERIFIED, "Verified"),
            (VerificationStatus.FALSE_REPORT, "False Report"),
        ],
    )


# ═══════════════════════════════════════════════════════════════════
#  6. Aggregate Response Serializers
# ═══════════════════════════════════════════════════════════════════


class HeatmapPointSerializer(serializers.Serializer):
    lat = serializers.FloatField()
    lng = serializers.FloatField()
    weight = serializers.IntegerField()
    category = serializers.CharField()


class ReportStatsSerializer(serializers.Serializer):
    total_reports = serializers.IntegerField()
    pending_reports = serializers.IntegerField()
    resolved_reports = serializers.IntegerField()
    category_breakdown = serializers.DictField(child=serializers.IntegerField())
    severity_breakdown = serializers.DictField(child=serializers.IntegerField())
