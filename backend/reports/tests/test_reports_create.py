"""
Integration tests for ``POST /api/reports/``.

Covers content validation, the initial FIR state and the FIR
confirmation email queued after commit.
"""

from __future__ import annotations

from django.utils import timezone
from rest_framework import status

from notifications import get_dispatch_queue
from reports.models import FIRStatus, Report, ReportStatus, VerificationStatus

from .base import ReportAPITestCase


def _payload(**overrides) -> dict:
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
    return payload


class TestReportCreate(ReportAPITestCase):

    def _post(self, payload):
        return self.client.post(self.list_url, payload, format="json")

    def test_citizen_creates_report_with_fir_request(self):
        self.login_as(self.citizen)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            resp = self._post(_payload())

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["fir_status"], FIRStatus.PENDING)
        self.assertEqual(resp.data["status"], ReportStatus.PENDING)
        self.assertEqual(resp.data["verification_status"], VerificationStatus.UNVERIFIED)
        self.assertEqual(resp.data["location"]["coordinates"], {"lat": 40.0, "lng": -75.0})
        self.assertEqual(resp.data["reporter"]["username"], self.citizen.username)
        self.assertEqual(len(callbacks), 1)
        queued = get_dispatch_queue().status()
        self.assertEqual(queued["pending"], 1)
        self.assertEqual(queued["tasks"][0]["kind"], "fir_confirmation")
        self.assertEqual(queued["tasks"][0]["email"], self.citizen.email)

        report = Report.objects.get(pk=resp.data["id"])
        self.assertEqual(report.reporter, self.citizen)
        self.assertTrue(report.fir_requested)

    def test_unavailable_queue_does_not_undo_report(self):
        from unittest.mock import patch

        self.login_as(self.citizen)

        with patch("notifications.get_dispatch_queue", side_effect=RuntimeError("queue gone")):
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                resp = self._post(_payload())

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(len(callbacks), 1)
        self.assertTrue(Report.objects.filter(pk=resp.data["id"]).exists())
        self.assertEqual(get_dispatch_queue().status()["pending"], 0)

    def test_report_without_fir_is_not_requested(self):
        self.login_as(self.citizen)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            resp = self._post(_payload(fir_requested=False))

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["fir_status"], FIRStatus.NOT_REQUESTED)
        self.assertFalse(resp.data["fir_requested"])
        self.assertEqual(callbacks, [])

    def test_anonymous_fir_request_sends_no_email(self):
        self.login_as(self.citizen)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            resp = self._post(_payload(is_anonymous=True))

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["fir_status"], FIRStatus.PENDING)
        self.assertEqual(resp.data["reporter"], "Anonymous")
        self.assertEqual(callbacks, [])

    def test_severity_defaults_to_medium(self):
        self.login_as(self.citizen)
        payload = _payload()
        del payload["severity"]

        resp = self._post(payload)

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["severity"], "medium")

    def test_optional_attachments_are_stored(self):
        self.login_as(self.citizen)
        payload = _payload(
            evidence={"photos": [{"url": "https://cdn.example.com/p.jpg", "caption": "Porch"}]},
            witnesses=[{"name": "Neighbour", "contact": "555-0101", "statement": "Saw a van."}],
            tags=[" bike ", "porch", " "],
            estimated_loss={"amount": "350.00", "currency": "EUR"},
        )

        resp = self._post(payload)

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        report = Report.objects.get(pk=resp.data["id"])
        self.assertEqual(report.evidence["photos"][0]["caption"], "Porch")
        self.assertIn("uploaded_at", report.evidence["photos"][0])
        self.assertEqual(report.evidence["videos"], [])
        self.assertEqual(report.witnesses[0]["name"], "Neighbour")
        self.assertEqual(report.tags, ["bike", "porch"])
        self.assertEqual(report.estimated_loss_currency, "EUR")
        self.assertEqual(resp.data["estimated_loss"], {"amount": "350.00", "currency": "EUR"})

    def test_admin_may_file_report(self):
        self.login_as(self.admin)
        resp = self._post(_payload(fir_requested=False))
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

    def test_police_may_not_file_report(self):
        self.login_as(self.officer)
        resp = self._post(_payload())
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Report.objects.exists())

    def test_unauthenticated_request_is_rejected(self):
        resp = self._post(_payload())
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_invalid_content_is_rejected(self):
        self.login_as(self.citizen)
        cases = {
            "short title": _payload(title="Bike"),
            "short description": _payload(description="too short"),
            "unknown category": _payload(category="arson"),
            "unknown severity": _payload(severity="extreme"),
            "latitude out of range": _payload(
                location={"address": "1 Elm St", "coordinates": {"lat": 91, "lng": 0}},
            ),
            "longitude out of range": _payload(
                location={"address": "1 Elm St", "coordinates": {"lat": 0, "lng": -181}},
            ),
            "missing address": _payload(location={"coordinates": {"lat": 0, "lng": 0}}),
        }
        for label, payload in cases.items():
            with self.subTest(label):
                resp = self._post(payload)
                self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        self.assertFalse(Report.objects.exists())
