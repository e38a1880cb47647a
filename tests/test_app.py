"""
Tests for the document analysis HTTP API.
"""
import json

import pytest
from fastapi.testclient import TestClient

from app import app, get_ocr

from conftest import FakeOcr, SMITH_TD3

APPLICANT = {
    "fullName": "JOHN SMITH",
    "dateOfBirth": "1990-05-01",
    "passportNumber": "L898902C3",
    "nationality": "UTO",
    "visaType": "tourist",
}


@pytest.fixture
def client():
    """Create a test client with a fake OCR adapter."""
    app.dependency_overrides[get_ocr] = lambda: FakeOcr({b"smith": SMITH_TD3}, failing={b"broken"})
    yield TestClient(app)
    app.dependency_overrides.clear()


def _files(*payloads):
    return [("files", (f"doc{i}.png", payload, "image/png")) for i, payload in enumerate(payloads)]


class TestHealthEndpoint:
    """Test health check endpoint."""

    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAnalyzeEndpoint:
    """Test /api/analyze."""

    def test_requires_applicant(self, client):
        """Test a missing applicant payload is rejected before analysis."""
        response = client.post("/api/analyze", files=_files(b"smith"))
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing applicant payload"

    def test_requires_files(self, client):
        """Test at least one document is required."""
        response = client.post("/api/analyze", data={"applicant": json.dumps(APPLICANT)})
        assert response.status_code == 400
        assert response.json()["detail"] == "At least one document image is required"

    def test_rejects_malformed_json(self, client):
        response = client.post("/api/analyze", data={"applicant": "{not json"}, files=_files(b"smith"))
        assert response.status_code == 400

    def test_rejects_incomplete_applicant(self, client):
        payload = dict(APPLICANT)
        del payload["fullName"]
        response = client.post("/api/analyze", data={"applicant": json.dumps(payload)},
                               files=_files(b"smith"))
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Invalid request payload"

    def test_returns_report(self, client):
        """Test a full report comes back in camelCase."""
        response = client.post(
            "/api/analyze",
            data={"applicant": json.dumps(APPLICANT)},
            files=_files(b"smith"),
        )
        assert response.status_code == 200
        body = response.json()

        assert set(body) == {"summary", "validations", "eligibility"}
        assert body["eligibility"]["visaType"] == "tourist"
        assert body["validations"][0]["rule"] == "mrz_extraction"
        assert body["validations"][0]["status"] == "pass"

    def test_policy_override(self, client):
        """Test a partial policy override is merged and applied."""
        response = client.post(
            "/api/analyze",
            data={
                "applicant": json.dumps(APPLICANT),
                "policy": json.dumps({"restrictedNationalities": ["UTO"]}),
            },
            files=_files(b"smith"),
        )
        assert response.status_code == 200
        assert response.json()["eligibility"]["status"] == "ineligible"

    def test_unreadable_document_still_reports(self, client):
        """Test an OCR failure produces a complete report, not an error."""
        response = client.post(
            "/api/analyze",
            data={"applicant": json.dumps(APPLICANT)},
            files=_files(b"broken"),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["eligibility"]["status"] in ("review", "ineligible")
        assert len(body["validations"]) == 5
