"""Tests for health and storage probe endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health endpoint returns ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_db_probe_round_trips_query(client: AsyncClient):
    response = await client.get("/test-db")
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Database connection successful!",
        "result": 2,
    }


@pytest.mark.asyncio
async def test_db_probe_reports_failure(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    """Probe returns 500 with the driver message when the database is down."""
    from survey_api import main as main_module

    async def failing_ping() -> int:
        raise OperationalError("SELECT 1 + 1", {}, ConnectionRefusedError("connection refused"))

    monkeypatch.setattr(main_module, "ping_db", failing_ping)

    response = await client.get("/test-db")
    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "DB connection failed"
    assert "connection refused" in data["details"]
