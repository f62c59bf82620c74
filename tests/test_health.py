# Health Tests
"""Tests for the liveness endpoint and app-wide behavior."""

from kalk_api.config import settings


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "kalk-api", "version": settings.api_version}


def test_correlation_id_generated(client):
    response = client.get("/api/health")
    assert response.headers.get("X-Correlation-ID")


def test_unknown_route_is_404(client):
    assert client.get("/api/nope").status_code == 404
