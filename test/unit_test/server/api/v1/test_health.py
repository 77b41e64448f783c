import pytest
from httpx import AsyncClient

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio


async def test_health_check(client: AsyncClient):
    response = await client.get("http://localhost/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "context_closed": False, "active_processes": 0}


async def test_health_reports_active_processes(client: AsyncClient):
    await client.post("/api/v1/capabilities/overlay-remover/watch_and_remove")

    response = await client.get("/health")
    assert response.json()["active_processes"] == 1


async def test_health_reports_closed_context(client: AsyncClient, runtime):
    runtime.page.teardown()

    response = await client.get("/health")
    assert response.json()["context_closed"] is True
