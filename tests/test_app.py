import pytest
import os
import sys
from unittest.mock import patch

from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import app as app_module
from tools.idempotency import Idem
from tools.mailer import EmailClient, EmailError
from tools.store import ProspectStore, StoreError

MOCK_ENV = {"SUPABASE_URL": "", "SUPABASE_SERVICE_KEY": "", "RESEND_API_KEY": ""}

class TestEndpoints:
    """Test the HTTP handlers against in-memory adapters."""

    def setup_method(self):
        """Set up test fixtures."""
        with patch.dict(os.environ, MOCK_ENV):
            self.store = ProspectStore()
            self.email_client = EmailClient(store=self.store)
        with patch("tools.idempotency.redis.from_url") as mock_redis:
            mock_redis.return_value.ping.side_effect = Exception("no redis")
            self.idem = Idem()

        self.patches = [
            patch("tools.store.prospect_store", self.store),
            patch("tools.mailer.email_client", self.email_client),
            patch.object(app_module, "idem", self.idem),
            patch("tools.slack.send_prospect_alert", return_value="ts"),
        ]
        for p in self.patches:
            p.start()

        self.client = TestClient(app_module.app)
        self.assessment = {
            "email": "jane@acme.com",
            "name": "Jane",
            "company": "Acme",
            "industry": "Retail / E-commerce",
            "teamSize": "11-50 employees",
            "role": "Manager",
            "biggestChallenge": "Finding the right tools",
            "timeline": "Next 6 months",
            "scores": {"overall": 64, "current_state": 60, "strategy_vision": 70,
                       "team_capabilities": 62, "implementation": 64},
        }

    def teardown_method(self):
        for p in self.patches:
            p.stop()

    def test_health(self):
        response = self.client.get("/health")

        assert response.status_code == 200
        assert response.json()["services"]["store"] == "mock"

    def test_assessment_results(self):
        response = self.client.post("/api/assessment-results", json=self.assessment)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Assessment completed and results sent"
        assert body["emailId"].startswith("mock_email_")
        assert body["nurtureEmailsScheduled"] == 7
        assert body["scores"] == self.assessment["scores"]
        assert body["assessmentId"]
        assert body["readinessLabel"] == "AI-Ready Implementer"
        assert self.store.get_prospect_by_email("jane@acme.com")["id"] == body["prospectId"]

    @pytest.mark.parametrize("missing", ["email", "name", "scores"])
    def test_assessment_missing_fields(self, missing):
        payload = dict(self.assessment)
        del payload[missing]

        response = self.client.post("/api/assessment-results", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}
        assert self.store.query_prospects() == []

    def test_assessment_report_failure_is_500(self):
        with patch("tools.mailer.send_email", side_effect=EmailError("rejected")):
            response = self.client.post("/api/assessment-results", json=self.assessment)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to send results email"}

    def test_assessment_nurture_failure_is_not_fatal(self):
        with patch("tools.mailer.schedule_sequence", side_effect=StoreError("queue down")):
            response = self.client.post("/api/assessment-results", json=self.assessment)

        assert response.status_code == 200
        assert response.json()["nurtureEmailsScheduled"] == 0

    def test_assessment_database_failure_still_sends_report(self):
        with patch("tools.store.save_assessment", side_effect=StoreError("db down")):
            response = self.client.post("/api/assessment-results", json=self.assessment)

        assert response.status_code == 200
        assert response.json()["assessmentId"] is None

    def test_duplicate_delivery_ignored(self):
        payload = dict(self.assessment, eventId="evt_123")

        first = self.client.post("/api/assessment-results", json=payload)
        second = self.client.post("/api/assessment-results", json=payload)

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["status"] == "duplicate_ignored"

    def test_retry_after_report_failure_is_processed(self):
        payload = dict(self.assessment, eventId="evt_retry")

        with patch("tools.mailer.send_email", side_effect=EmailError("rejected")):
            first = self.client.post("/api/assessment-results", json=payload)
        retry = self.client.post("/api/assessment-results", json=payload)

        assert first.status_code == 500
        assert retry.status_code == 200
        assert retry.json()["message"] == "Assessment completed and results sent"

    def test_retry_after_missing_fields_is_processed(self):
        incomplete = {"eventId": "evt_fix", "email": "jane@acme.com", "name": "Jane"}

        first = self.client.post("/api/assessment-results", json=incomplete)
        retry = self.client.post("/api/assessment-results", json=dict(self.assessment, eventId="evt_fix"))

        assert first.status_code == 400
        assert retry.status_code == 200
        assert retry.json()["nurtureEmailsScheduled"] == 7

    def test_booking_retry_after_unknown_prospect(self):
        payload = {"eventId": "evt_booking", "prospectId": "p1", "callType": "general_discovery"}

        first = self.client.post("/api/bookings", json=payload)
        self.store.upsert_prospect({"id": "p1", "email": "a@x.com", "lead_score": 10, "category": "undetermined"})
        retry = self.client.post("/api/bookings", json=payload)

        assert first.status_code == 404
        assert retry.status_code == 200
        assert retry.json()["leadScore"] == 35

    def test_invalid_json(self):
        response = self.client.post("/api/lead", content=b"not json", headers={"content-type": "application/json"})

        assert response.status_code == 400

    def test_lead_form(self):
        response = self.client.post("/api/lead", json={
            "email": "pastor@church.org",
            "name": "Sam",
            "role": "Senior Pastor",
            "pageViews": ["/ministry", "/divine-strategy"],
            "utmData": {"source": "newsletter"},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["profile"]["category"] == "ministry_coaching"
        assert body["profile"]["source"] == "newsletter"
        assert body["recommendation"]["call_type"] == "divine_strategy"
        assert "utm_campaign=ministry_coaching" in body["trackingUrl"]
        assert body["preparationGuide"]["title"] == "Divine Strategy Session Preparation"

    def test_lead_scoring_update(self):
        response = self.client.post("/api/lead-scoring/update", json={
            "email": "Lead@Example.com",
            "scoringData": {"assessmentCompleted": True, "overallScore": 80, "emailClicked": True, "chatUsed": True},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["scoreResult"]["points"] == 80
        assert body["scoreResult"]["score"] == "hot"
        assert body["priorityLabel"] == "🔥 Urgent"

        prospect = self.store.get_prospect_by_email("lead@example.com")
        assert prospect["tier"] == "tier_1"
        assert prospect["status"] == "opportunity"

    def test_cold_rescore_keeps_tier_of_stored_score(self):
        self.client.post("/api/lead-scoring/update", json={
            "email": "lead@example.com",
            "scoringData": {"assessmentCompleted": True, "overallScore": 80, "emailClicked": True, "chatUsed": True},
        })

        response = self.client.post("/api/lead-scoring/update", json={"email": "lead@example.com", "scoringData": {}})

        assert response.status_code == 200
        assert response.json()["scoreResult"]["score"] == "cold"
        prospect = self.store.get_prospect_by_email("lead@example.com")
        assert prospect["lead_score"] == 80
        assert prospect["tier"] == "tier_1"
        assert prospect["status"] == "opportunity"

        listed = self.client.get("/api/prospects", params={"tier": "tier_1"}).json()["prospects"]
        assert [p["email"] for p in listed] == ["lead@example.com"]

    def test_lead_scoring_update_requires_email(self):
        response = self.client.post("/api/lead-scoring/update", json={"scoringData": {}})

        assert response.status_code == 400

    def test_get_lead_score(self):
        self.client.post("/api/lead-scoring/update", json={"email": "a@x.com", "scoringData": {"chatUsed": True}})
        self.client.post("/api/lead-scoring/update", json={"email": "a@x.com", "scoringData": {"calendarBooked": True}})

        response = self.client.get("/api/lead-scoring/update", params={"email": "a@x.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["prospect"]["lead_score"] == 35
        assert [entry["score_change"] for entry in body["history"]] == [20, 15]

    def test_get_lead_score_not_found(self):
        response = self.client.get("/api/lead-scoring/update", params={"email": "nobody@x.com"})

        assert response.status_code == 404

    def test_booking_adds_score(self):
        stored = self.store.upsert_prospect({"id": "p1", "email": "a@x.com", "lead_score": 30, "category": "undetermined"})

        response = self.client.post("/api/bookings", json={
            "prospectId": stored["id"],
            "callType": "executive_strategy",
            "calendlyUrl": "https://calendly.com/x",
            "estimatedValue": 100000,
        })

        assert response.status_code == 200
        assert response.json()["leadScore"] == 55

    def test_booking_rejects_non_numeric_value(self):
        self.store.upsert_prospect({"id": "p1", "email": "a@x.com", "lead_score": 30, "category": "undetermined"})

        response = self.client.post("/api/bookings", json={
            "prospectId": "p1",
            "callType": "executive_strategy",
            "estimatedValue": "100000+",
        })

        assert response.status_code == 400
        assert self.store.get_prospect("p1")["lead_score"] == 30

    def test_booking_unknown_prospect(self):
        response = self.client.post("/api/bookings", json={"prospectId": "missing", "callType": "general_discovery"})

        assert response.status_code == 404

    def test_lead_magnet(self):
        response = self.client.post("/api/lead-magnet", json={"email": "reader@x.com", "magnetType": "ai-guide"})

        assert response.status_code == 200
        body = response.json()
        assert body["leadScore"] == 15
        history = self.store.get_history(body["prospectId"])
        assert history[0]["reason"] == "lead_magnet_download"

    def test_lead_magnet_requires_email(self):
        response = self.client.post("/api/lead-magnet", json={"magnetType": "ai-guide"})

        assert response.status_code == 400

    def test_prospect_filters(self):
        self.store.upsert_prospect({"id": "a", "email": "a@x.com", "lead_score": 10, "tier": "tier_4"})
        self.store.upsert_prospect({"id": "b", "email": "b@x.com", "lead_score": 50, "tier": "tier_1"})

        response = self.client.get("/api/prospects", params={"min_lead_score": 20})

        assert response.status_code == 200
        assert [p["id"] for p in response.json()["prospects"]] == ["b"]

    def test_send_scheduled_requires_secret(self):
        with patch.dict(os.environ, {"CRON_SECRET": "s3cret", "WEBHOOK_SHARED_SECRET": ""}):
            response = self.client.post("/api/nurture/send-scheduled")

        assert response.status_code == 401

    def test_send_scheduled_with_cron_secret(self):
        with patch.dict(os.environ, {"CRON_SECRET": "s3cret"}):
            response = self.client.post("/api/nurture/send-scheduled", headers={"Authorization": "Bearer s3cret"})

        assert response.status_code == 200
        assert response.json()["sent"] == 0

    def test_send_scheduled_with_webhook_secret(self):
        with patch.dict(os.environ, {"WEBHOOK_SHARED_SECRET": "hook"}):
            response = self.client.post("/api/nurture/send-scheduled", headers={"x-webhook-secret": "hook"})

        assert response.status_code == 200

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
