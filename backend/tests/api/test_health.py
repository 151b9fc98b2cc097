"""Health & readiness probes."""

from httpx import ASGITransport, AsyncClient

from arcade.main import app


async def test_liveness():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        resp = await ac.get("/api/v1/health/")

    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


async def test_not_ready_without_engine():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        resp = await ac.get("/api/v1/health/ready")

    assert resp.status_code == 503


async def test_ready_with_engine(client):
    resp = await client.get("/api/v1/health/ready")

    assert resp.status_code == 200
    assert resp.json()["active_sessions"] == 0
