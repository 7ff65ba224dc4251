"""
Tests for health endpoints.
"""

import pytest

from servicedesk.main import app
from servicedesk.core.database import get_db


@pytest.mark.asyncio
async def test_root_health(api_client):
    response = await api_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"


@pytest.mark.asyncio
async def test_liveness_endpoint(api_client):
    response = await api_client.get("/api/health/liveness")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_readiness_healthy(api_client):
    response = await api_client.get("/api/health/readiness")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ready"
    assert payload["checks"]["database"]["status"] == "pass"


@pytest.mark.asyncio
async def test_readiness_database_failure(api_client):
    class FailingSession:
        async def execute(self, *_args, **_kwargs):
            raise RuntimeError("database timeout")

        async def close(self):
            return None

    async def failing_db():
        session = FailingSession()
        try:
            yield session
        finally:
            await session.close()

    original = app.dependency_overrides.get(get_db, getattr(app.state, "test_db_override", None))
    app.dependency_overrides[get_db] = failing_db
    try:
        response = await api_client.get("/api/health/readiness")
    finally:
        if original:
            app.dependency_overrides[get_db] = original
    assert response.status_code == 503
    payload = response.json()
    assert payload["status"] == "not_ready"
    assert payload["checks"]["database"] == {"status": "fail", "reason": "database timeout"}
