"""
End-to-end flow: a citizen files a report with an FIR request, the
confirmation email goes through the dispatch queue, and an admin
approves the FIR.  A second citizen cannot read an anonymous report.

Endpoints under test:
    POST /api/accounts/auth/login/
    POST /api/reports/
    PUT  /api/reports/{id}/fir/
    GET  /api/reports/{id}/
    GET  /api/core/email-queue/
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from notifications import get_dispatch_queue
from reports.models import FIRStatus, Report

User = get_user_model()

_PASSWORD = "Fl0w!Pass123"


class TestFIRFlow(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.citizen_a = User.objects.create_user(
            username="citizen_a", email="a@example.com", password=_PASSWORD,
            first_name="Alice", role="citizen", is_verified=True,
        )
        cls.citizen_b = User.objects.create_user(
            username="citizen_b", email="b@example.com", password=_PASSWORD,
            role="citizen", is_verified=True,
        )
        cls.admin = User.objects.create_user(
            username="admin", email="admin@example.com", password=_PASSWORD,
            role="admin", is_verified=True,
        )

    def setUp(self):
        self.client = APIClient()

    def login_as(self, user: User) -> None:
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": user.username, "password": _PASSWORD},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def _file_report(self, **overrides):
        payload = {
            "title": "Bike stolen",
            "description": "Bike taken from porch overnight",
            "category": "theft",
            "severity": "low",
            "location": {"address": "1 Elm St", "coordinates": {"lat": 40.0, "lng": -75.0}},
            "date_time": timezone.now().isoformat(),
            "is_anonymous": False,
            "fir_requested": True,
        }
        payload.update(overrides)
        with self.captureOnCommitCallbacks(execute=True):
            return self.client.post(reverse("report-list"), payload, format="json")

    def test_file_report_then_admin_approves_fir(self):
        # Step 1: citizen files the report.
        self.login_as(self.citizen_a)
        resp = self._file_report()
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["fir_status"], FIRStatus.PENDING)
        report_id = resp.data["id"]

        # Step 2: exactly one confirmation email is queued.
        queue = get_dispatch_queue()
        self.assertEqual(queue.status()["pending"], 1)
        self.assertEqual(queue.status()["tasks"][0]["kind"], "fir_confirmation")

        # Step 3: the admin sees the task without its payload.
        self.login_as(self.admin)
        resp = self.client.get(reverse("core:email-queue"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["pending"], 1)
        self.assertNotIn("payload", resp.data["tasks"][0])

        # Step 4: draining delivers the email.
        self.assertEqual(queue.drain(), 1)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["a@example.com"])
        self.assertIn("Bike stolen", mail.outbox[0].body)

        # Step 5: admin approves the FIR with a number.
        resp = self.client.put(
            reverse("report-update-fir", args=[report_id]),
            {"action": "approve", "fir_number": "ABC123"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["fir_status"], FIRStatus.APPROVED)
        self.assertEqual(resp.data["fir_number"], "ABC123")
        self.assertIsNotNone(resp.data["fir_approved_at"])

        report = Report.objects.get(pk=report_id)
        self.assertEqual(report.fir_approved_by, self.admin)

    def test_email_failure_does_not_affect_report(self):
        self.login_as(self.citizen_a)
        queue = get_dispatch_queue()

        def failing_send(email, payload):
            raise RuntimeError("SMTP down")

        queue._senders["fir_confirmation"] = failing_send
        resp = self._file_report()
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        for _ in range(3):
            queue.drain()
            queue._scheduler.fire_all()

        self.assertEqual(queue.status()["pending"], 0)
        self.assertTrue(Report.objects.filter(pk=resp.data["id"]).exists())

    def test_other_citizen_cannot_read_anonymous_report(self):
        self.login_as(self.citizen_a)
        report_id = self._file_report(is_anonymous=True).data["id"]

        self.login_as(self.citizen_b)
        resp = self.client.get(reverse("report-detail", args=[report_id]))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        listing = self.client.get(reverse("report-list"))
        self.assertNotIn(report_id, {item["id"] for item in listing.data["items"]})


class TestPoliceVerificationFlow(TestCase):
    """A new officer sees nothing until an admin verifies the account."""

    @classmethod
    def setUpTestData(cls):
        cls.citizen = User.objects.create_user(
            username="citizen", email="c@example.com", password=_PASSWORD,
            role="citizen", is_verified=True,
        )
        cls.officer = User.objects.create_user(
            username="officer", email="o@example.com", password=_PASSWORD,
            role="police", is_verified=False,
        )
        cls.admin = User.objects.create_user(
            username="admin", email="admin@example.com", password=_PASSWORD,
            role="admin", is_verified=True,
        )
        cls.report = Report.objects.create(
            reporter=cls.citizen,
            title="Car broken into",
            description="Passenger window broken, radio taken.",
            category="theft",
            severity="medium",
            date_time=timezone.now(),
            address="5 Pine Rd",
            latitude=40.1,
            longitude=-75.1,
        )

    def setUp(self):
        self.client = APIClient()

    def _auth(self, user: User) -> None:
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": user.email, "password": _PASSWORD},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def test_officer_acts_only_after_verification(self):
        status_url = reverse("report-update-status", args=[self.report.pk])

        self._auth(self.officer)
        self.assertEqual(self.client.get(reverse("report-list")).data["items"], [])
        resp = self.client.put(status_url, {"status": "under_investigation"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self._auth(self.admin)
        resp = self.client.put(
            reverse("accounts:user-verify", args=[self.officer.pk]),
            {"is_verified": True},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        resp = self.client.put(
            reverse("report-assign", args=[self.report.pk]),
            {"officer_id": self.officer.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)

        self._auth(self.officer)
        assigned = self.client.get(reverse("report-assigned"))
        self.assertEqual([r["id"] for r in assigned.data["items"]], [self.report.pk])
        resp = self.client.put(
            status_url,
            {"status": "under_investigation", "note": "Canvassing neighbours"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], "under_investigation")
        self.assertEqual(len(resp.data["police_notes"]), 1)
