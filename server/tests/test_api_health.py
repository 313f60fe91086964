"""API tests against the application as configured, without test fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from kashiyatra.main import create_app


@pytest.mark.asyncio
async def test_api_health_endpoints():
    """Test the operational endpoints on the configured database."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

        response = await client.get("/info")
        assert response.status_code == 200
        data = response.json()
        assert "service" in data
        assert "version" in data


@pytest.mark.asyncio
async def test_metrics_endpoint():
    """Test the metrics endpoint serves the Prometheus text format."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "booking_pricing_mismatches_total" in response.text


@pytest.mark.asyncio
async def test_validation_errors_use_problem_details():
    """Malformed bodies get a 422 Problem Details response with violations."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/v1/package/search", json={"page": 0, "limit": 5})
        assert response.status_code == 422
        data = response.json()
        assert data["type"].endswith("request-validation-error")
        assert data["violations"] == [
            {"path": "page", "message": "Input should be greater than or equal to 1"}
        ]


@pytest.mark.asyncio
async def test_openapi_docs():
    """Test that OpenAPI docs are available in development."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/docs")
        assert response.status_code == 200
