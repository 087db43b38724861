"""
Tests for the core app endpoints.

    GET /api/core/dashboard/
    GET /api/core/email-queue/
    GET /api/core/constants/
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from reports.models import Report, ReportStatus
from reports.tests.base import make_report

pytestmark = pytest.mark.django_db


@pytest.fixture()
def admin_client(api_client, auth_header):
    api_client.credentials(HTTP_AUTHORIZATION=auth_header(username="boss", role="admin")["Authorization"])
    return api_client


class TestDashboard:

    def test_counts_users_and_reports(self, admin_client, create_user):
        citizen = create_user(role="citizen")
        create_user(role="police", is_verified=False)
        make_report(citizen)
        make_report(citizen, status=ReportStatus.RESOLVED, is_anonymous=True)
        make_report(citizen, fir_requested=True)

        resp = admin_client.get(reverse("core:dashboard-stats"))

        assert resp.status_code == 200
        users = resp.data["user_stats"]
        assert users["total_users"] == 3
        assert users["citizens"] == 1
        assert users["police"] == 1
        assert users["admins"] == 1
        assert users["verified_users"] == 2

        reports = resp.data["report_stats"]
        assert reports["total_reports"] == 3
        assert reports["pending_reports"] == 2
        assert reports["resolved_reports"] == 1
        assert reports["anonymous_reports"] == 1
        assert reports["pending_firs"] == 1

    def test_recent_activity_is_newest_first(self, admin_client, create_user):
        citizen = create_user(role="citizen")
        first = make_report(citizen, title="First report")
        second = make_report(citizen, title="Second report")
        Report.objects.filter(pk=first.pk).update(created_at=timezone.now() - timedelta(hours=1))

        resp = admin_client.get(reverse("core:dashboard-stats"))

        assert [r["id"] for r in resp.data["recent_reports"]] == [second.pk, first.pk]
        assert "reporter" not in resp.data["recent_reports"][0]
        assert resp.data["recent_users"][0]["username"] == citizen.username

    def test_date_range_limits_report_counts(self, admin_client, create_user):
        citizen = create_user(role="citizen")
        old = make_report(citizen)
        make_report(citizen)
        Report.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=30))

        today = timezone.now().date().isoformat()
        resp = admin_client.get(reverse("core:dashboard-stats"), {"start_date": today})

        assert resp.status_code == 200
        assert resp.data["report_stats"]["total_reports"] == 1
        assert len(resp.data["recent_reports"]) == 2

    def test_inverted_date_range_is_rejected(self, admin_client):
        resp = admin_client.get(
            reverse("core:dashboard-stats"),
            {"start_date": "2024-05-02", "end_date": "2024-05-01"},
        )
        assert resp.status_code == 400

    @pytest.mark.parametrize("role", ["citizen", "police"])
    def test_non_admin_is_forbidden(self, api_client, auth_header, role):
        api_client.credentials(HTTP_AUTHORIZATION=auth_header(role=role, is_verified=True)["Authorization"])
        resp = api_client.get(reverse("core:dashboard-stats"))
        assert resp.status_code == 403

    def test_anonymous_is_unauthorized(self, api_client):
        resp = api_client.get(reverse("core:dashboard-stats"))
        assert resp.status_code == 401


class TestEmailQueueStatus:

    def test_snapshot_hides_payloads(self, admin_client, dispatch_queue):
        dispatch_queue.queue_password_reset("x@example.com", "X", "https://app.example/reset/abc")

        resp = admin_client.get(reverse("core:email-queue"))

        assert resp.status_code == 200
        assert resp.data["pending"] == 1
        assert resp.data["processing"] is False
        task = resp.data["tasks"][0]
        assert task["kind"] == "password_reset"
        assert task["email"] == "x@example.com"
        assert task["attempts"] == 0
        assert "payload" not in task
        assert "app.example" not in str(resp.data)

    def test_citizen_is_forbidden(self, api_client, auth_header):
        api_client.credentials(HTTP_AUTHORIZATION=auth_header(role="citizen")["Authorization"])
        assert api_client.get(reverse("core:email-queue")).status_code == 403


class TestSystemConstants:

    def test_constants_are_public(self, api_client):
        resp = api_client.get(reverse("core:system-constants"))

        assert resp.status_code == 200
        categories = {c["value"] for c in resp.data["report_categories"]}
        assert {"theft", "vandalism"} <= categories
        assert {r["value"] for r in resp.data["user_roles"]} == {"citizen", "police", "admin"}
        assert {"pending", "approved", "rejected", "not_requested"} == {
            f["value"] for f in resp.data["fir_statuses"]
        }
