"""Smoke tests against the real application factory, without a database."""

import pytest
from httpx import ASGITransport, AsyncClient

from venue_booking.main import create_app


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def test_create_app_wires_collaborators(app):
    assert app.state.venue_locks is not None
    assert app.state.rate_limiter.limit > 0


@pytest.mark.asyncio
async def test_liveness_and_info_endpoints(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["service"] == "venue-booking-api"

    response = await client.get("/info")
    assert response.status_code == 200
    assert response.json()["features"]["conflict_detection"] is True


@pytest.mark.asyncio
async def test_request_id_header(client):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_booking_routes_require_auth(client):
    response = await client.post("/v1/booking/list", json={})

    assert response.status_code == 401
    assert response.headers["content-type"].startswith("application/json")


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
