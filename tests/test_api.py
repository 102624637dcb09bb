"""
Tests for the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from config.test_settings import test_settings
from tests.conftest import FIXED_NOW

BANK_SCRIPT = "URGENT: your bank account is blocked, share the OTP immediately or face arrest"


class TestRootAndHealth:
    """Service metadata endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "running"
        assert "X-Correlation-ID" in response.headers

    def test_health(self, client):
        client.post("/api/patterns", json={"script": BANK_SCRIPT})

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"] == {"engine": "healthy", "database": "disabled"}
        assert data["metrics"]["storedPatterns"] == 1

    def test_health_reports_app_version(self, engine):
        app = create_app(test_settings.model_copy(update={"app_version": "2.3.4"}))
        app.state.engine = engine

        with TestClient(app) as versioned_client:
            response = versioned_client.get("/health")

        assert response.status_code == 200
        assert response.json()["version"] == "2.3.4"

    def test_metrics(self, client):
        client.post("/api/patterns", json={"script": BANK_SCRIPT})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "scam_patterns_analyzed_total" in response.text


class TestPatternEndpoints:
    """Analysis and lookup of patterns."""

    def test_analyze_pattern(self, client):
        response = client.post("/api/patterns", json={
            "script": BANK_SCRIPT,
            "location": "Kolkata",
            "targetProfile": "students",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["category"] == "Bank Fraud"
        assert len(data["features"]) == 50
        assert data["location"] == "Kolkata"
        assert data["targetProfile"] == "students"
        assert data["riskScore"] == 0.0

    @pytest.mark.parametrize("payload", [{}, {"script": ""}, {"script": 42}])
    def test_invalid_request_schema(self, client, payload):
        response = client.post("/api/patterns", json=payload)

        assert response.status_code == 422
        assert response.json()["status"] == "error"

    def test_whitespace_script_rejected(self, client):
        response = client.post("/api/patterns", json={"script": "   \n "})

        assert response.status_code == 422
        assert response.json()["message"] == "Invalid scam script"

    def test_get_pattern(self, client):
        created = client.post("/api/patterns", json={"script": BANK_SCRIPT}).json()

        response = client.get(f"/api/patterns/{created['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    def test_unknown_pattern_returns_404(self, client):
        assert client.get("/api/patterns/does-not-exist").status_code == 404
        assert client.get("/api/patterns/does-not-exist/similar").status_code == 404
        assert client.post("/api/patterns/does-not-exist/predictions").status_code == 404

    def test_list_patterns_by_category(self, client):
        client.post("/api/patterns", json={"script": BANK_SCRIPT})
        client.post("/api/patterns", json={"script": "Congratulations! You won the lucky draw, claim your prize"})

        all_patterns = client.get("/api/patterns").json()
        lottery = client.get("/api/patterns", params={"category": "Lottery/Prize"}).json()

        assert len(all_patterns) == 2
        assert [pattern["category"] for pattern in lottery] == ["Lottery/Prize"]

    def test_recent_patterns(self, client):
        client.post("/api/patterns", json={"script": BANK_SCRIPT})

        assert len(client.get("/api/patterns/recent", params={"hours": 1}).json()) == 1
        assert client.get("/api/patterns/recent", params={"hours": 0}).status_code == 422

    def test_similar_patterns(self, client):
        first = client.post("/api/patterns", json={"script": BANK_SCRIPT}).json()
        second = client.post("/api/patterns", json={"script": BANK_SCRIPT}).json()

        matches = client.get(f"/api/patterns/{second['id']}/similar").json()

        assert [match["pattern"]["id"] for match in matches] == [first["id"]]
        assert matches[0]["score"] == pytest.approx(1.0)


class TestPredictionEndpoints:
    """Mutation prediction over HTTP."""

    def test_cold_start_prediction(self, client):
        response = client.post("/api/predictions", json={"script": BANK_SCRIPT})

        assert response.status_code == 200
        prediction = response.json()["prediction"]
        assert prediction["predictedVariants"] == []
        assert prediction["confidence"] == 0.0
        assert prediction["timeToMutationDays"] == 0
        assert prediction["riskLevel"] == "low"

    def test_prediction_with_history(self, client):
        for _ in range(3):
            client.post("/api/patterns", json={"script": BANK_SCRIPT})
        created = client.post("/api/patterns", json={"script": BANK_SCRIPT}).json()

        response = client.post(f"/api/patterns/{created['id']}/predictions")

        assert response.status_code == 200
        prediction = response.json()
        assert prediction["sourcePatternId"] == created["id"]
        assert prediction["similarCount"] == 3
        assert prediction["confidence"] == pytest.approx(0.3)
        assert prediction["riskLevel"] in {"low", "medium", "high", "critical"}

        variants = prediction["predictedVariants"]
        assert len(variants) == 3
        assert [variant["mutationProbability"] for variant in variants] == pytest.approx([0.8, 0.7, 0.6])
        assert all(len(variant["description"]) <= 103 for variant in variants)
        assert all(len(variant["features"]) == 50 for variant in variants)


class TestTrendEndpoint:
    """Mutation trend insights."""

    def test_trends(self, client):
        client.post("/api/patterns", json={"script": BANK_SCRIPT})
        client.post("/api/patterns", json={"script": "Congratulations! You won the lucky draw, claim your prize"})

        response = client.get("/api/insights/mutation-trends", params={"days": 7})

        assert response.status_code == 200
        assert response.json() == [{
            "date": FIXED_NOW.date().isoformat(),
            "count": 2,
            "countsByCategory": {"Bank Fraud": 1, "Lottery/Prize": 1},
        }]

    def test_default_window(self, client):
        assert client.get("/api/insights/mutation-trends").json() == []

    @pytest.mark.parametrize("days", [0, -1])
    def test_invalid_window(self, client, days):
        response = client.get("/api/insights/mutation-trends", params={"days": days})
        assert response.status_code == 422
