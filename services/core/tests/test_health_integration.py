"""Integration tests for health, metrics and the API key gate.

These tests run against the full application stack, middleware
included.
"""

import pytest

from outlets_core.config import get_settings
from outlets_core.observability.metrics import get_collector


@pytest.fixture
def api_key(monkeypatch):
    """Configure a shared API key for the duration of a test."""
    monkeypatch.setenv("API_KEY", "s3cret")
    get_settings.cache_clear()
    return "s3cret"


class TestHealthCheckIntegration:
    """Integration tests for health check functionality."""

    @pytest.mark.asyncio
    async def test_health_endpoint(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "outlets-service"}

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-Id": "req-42"})
        assert response.headers["x-request-id"] == "req-42"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/health")
        assert response.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_cors_preflight(self, client):
        response = await client.options(
            "/outlets",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.status_code in (200, 204)

    @pytest.mark.asyncio
    async def test_nonexistent_endpoint_returns_404(self, client):
        response = await client.get("/nonexistent")
        assert response.status_code == 404


class TestApiKeyGate:
    """Tests for the X-API-Key check."""

    @pytest.mark.asyncio
    async def test_missing_key_rejected(self, client, api_key):
        response = await client.get("/outlets")

        assert response.status_code == 401
        assert response.json() == {"detail": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_wrong_key_rejected(self, client, api_key):
        response = await client.get("/outlets", headers={"X-API-Key": "nope"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_valid_key_accepted(self, client, api_key):
        response = await client.get("/outlets", headers={"X-API-Key": api_key})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_is_public(self, client, api_key):
        response = await client.get("/health")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_no_configured_key_disables_gate(self, client):
        response = await client.get("/outlets")
        assert response.status_code == 200


class TestMetricsEndpoint:
    """Tests for GET /metrics."""

    @pytest.mark.asyncio
    async def test_requests_are_counted(self, client):
        await client.get("/health")
        await client.get("/health")

        response = await client.get("/metrics")

        assert response.status_code == 200
        data = response.json()
        assert "collected_at" in data
        counters = data["application"]["counters"]
        assert counters["http_requests_total{method=GET,status=200}"] == 2
        assert "http_request_duration_ms{method=GET}" in data["application"]["histograms"]

    @pytest.mark.asyncio
    async def test_domain_counters(self, client):
        campaign = "c-1"
        await client.post(
            "/outlets",
            json={
                "outletName": "Wired",
                "outletUrl": "https://wired.com",
                "campaignId": campaign,
                "whyRelevant": "",
                "whyNotRelevant": "",
                "relevanceScore": 10,
            },
        )

        assert get_collector().get("outlets_upserted_total") == 1

    @pytest.mark.asyncio
    async def test_metrics_require_key(self, client, api_key):
        response = await client.get("/metrics")
        assert response.status_code == 401
