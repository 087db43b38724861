import django.db.models.deletion
import reports.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Report",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("title", models.CharField(max_length=200, verbose_name="Title")),
                ("description", models.TextField(max_length=1000, verbose_name="Description")),
                ("category", models.CharField(choices=[("theft", "Theft"), ("assault", "Assault"), ("vandalism", "Vandalism"), ("fraud", "Fraud"), ("burglary", "Burglary"), ("vehicle_theft", "Vehicle Theft"), ("harassment", "Harassment"), ("drug_related", "Drug Related"), ("other", "Other")], max_length=20, verbose_name="Category")),
                ("severity", models.CharField(choices=[("low", "Low"), ("medium", "Medium"), ("high", "High"), ("critical", "Critical")], default="medium", max_length=10, verbose_name="Severity")),
                ("date_time", models.DateTimeField(verbose_name="Incident Date & Time")),
                ("address", models.CharField(max_length=255, verbose_name="Address")),
                ("latitude", models.FloatField(verbose_name="Latitude")),
                ("longitude", models.FloatField(verbose_name="Longitude")),
                ("city", models.CharField(blank=True, default="", max_length=100, verbose_name="City")),
                ("state", models.CharField(blank=True, default="", max_length=100, verbose_name="State")),
                ("zip_code", models.CharField(blank=True, default="", max_length=20, verbose_name="Zip Code")),
                ("is_anonymous", models.BooleanField(default=False, verbose_name="Anonymous")),
                ("fir_requested", models.BooleanField(default=False, verbose_name="FIR Requested")),
                ("fir_status", models.CharField(choices=[("not_requested", "Not Requested"), ("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")], db_index=True, default="not_requested", max_length=20, verbose_name="FIR Status")),
                ("fir_number", models.CharField(blank=True, default="", max_length=50, verbose_name="FIR Number")),
                ("fir_approved_at", models.DateTimeField(blank=True, null=True, verbose_name="FIR Approved At")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("under_investigation", "Under Investigation"), ("resolved", "Resolved"), ("closed", "Closed"), ("false_report", "False Report")], default="pending", max_length=25, verbose_name="Status")),
                ("verification_status", models.CharField(choices=[("unverified", "Unverified"), ("verified", "Verified"), ("false_report", "False Report")], default="unverified", max_length=20, verbose_name="Verification Status")),
                ("verified_at", models.DateTimeField(blank=True, null=True, verbose_name="Verified At")),
                ("evidence", models.JSONField(blank=True, default=reports.models.empty_evidence, verbose_name="Evidence")),
                ("witnesses", models.JSONField(blank=True, default=list, verbose_name="Witnesses")),
                ("tags", models.JSONField(blank=True, default=list, verbose_name="Tags")),
                ("priority", models.CharField(choices=[("low", "Low"), ("normal", "Normal"), ("high", "High"), ("urgent", "Urgent")], default="normal", max_length=10, verbose_name="Priority")),
                ("estimated_loss_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, verbose_name="Estimated Loss")),
                ("estimated_loss_currency", models.CharField(default="USD", max_length=3, verbose_name="Loss Currency")),
                ("assigned_officer", models.ForeignKey(blank=True, limit_choices_to={"role": "police"}, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="assigned_reports", to=settings.AUTH_USER_MODEL, verbose_name="Assigned Officer")),
                ("fir_approved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="approved_firs", to=settings.AUTH_USER_MODEL, verbose_name="FIR Approved By")),
                ("reporter", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="reports", to=settings.AUTH_USER_MODEL, verbose_name="Reporter")),
                ("verified_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="verified_reports", to=settings.AUTH_USER_MODEL, verbose_name="Verified By")),
            ],
            options={
                "verbose_name": "Report",
                "verbose_name_plural": "Reports",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["category", "status"], name="report_category_status_idx"),
                    models.Index(fields=["severity", "priority"], name="report_severity_priority_idx"),
                    models.Index(fields=["-created_at"], name="report_created_at_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("fir_requested", False), ("fir_status", "not_requested")),
                            models.Q(("fir_requested", True), models.Q(("fir_status", "not_requested"), _negated=True)),
                            _connector="OR",
                        ),
                        name="report_fir_status_matches_request",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PoliceNote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("note", models.TextField(verbose_name="Note")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Timestamp")),
                ("officer", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="police_notes", to=settings.AUTH_USER_MODEL, verbose_name="Officer")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="police_notes", to="reports.report", verbose_name="Report")),
            ],
            options={
                "verbose_name": "Police Note",
                "verbose_name_plural": "Police Notes",
                "ordering": ["created_at", "id"],
            },
        ),
    ]
