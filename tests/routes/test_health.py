"""
Tests for the public health endpoints.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient

from smart_advisor.main import app
from smart_advisor.schemas.health import IntegrationStatus

client = TestClient(app)


def test_health_check():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@patch("smart_advisor.routes.health.check_integrations")
def test_integrations_all_available(mock_check):
    mock_check.return_value = [
        IntegrationStatus(service="TMDB", is_available=True, has_api_key=True),
        IntegrationStatus(service="Google Books", is_available=True, has_api_key=True),
        IntegrationStatus(service="Gemini", is_available=True, has_api_key=True),
    ]

    response = client.get("/health/integrations")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert [i["service"] for i in data["integrations"]] == ["TMDB", "Google Books", "Gemini"]


@patch("smart_advisor.routes.health.check_integrations")
def test_integrations_degraded(mock_check):
    mock_check.return_value = [
        IntegrationStatus(service="TMDB", is_available=False, has_api_key=False,
                          error="API key not configured"),
        IntegrationStatus(service="Google Books", is_available=True, has_api_key=True),
        IntegrationStatus(service="Gemini", is_available=True, has_api_key=True),
    ]

    response = client.get("/health/integrations")

    assert response.json()["status"] == "degraded"
