import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def start_watcher(client: AsyncClient) -> str:
    response = await client.post("/api/v1/capabilities/overlay-remover/watch_and_remove")
    assert response.status_code == 200
    return response.json()["data"]["processId"]


async def test_list_processes_empty(client: AsyncClient):
    response = await client.get("/api/v1/processes")
    assert response.status_code == 200
    assert response.json() == []


async def test_list_processes(client: AsyncClient):
    process_id = await start_watcher(client)

    response = await client.get("/api/v1/processes")
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["id"] == process_id
    assert data[0]["ownerAgentId"] == "overlay-remover"
    assert data[0]["capabilityName"] == "watch_and_remove"
    assert data[0]["type"] == "observer"
    assert data[0]["metadata"]["target"] == "body"
    assert "cleanup" not in data[0]


async def test_list_processes_filtered_by_agent(client: AsyncClient):
    await start_watcher(client)

    mine = await client.get("/api/v1/processes", params={"agent_id": "overlay-remover"})
    others = await client.get("/api/v1/processes", params={"agent_id": "someone-else"})

    assert len(mine.json()) == 1
    assert others.json() == []


async def test_stop_process(client: AsyncClient, page_host):
    process_id = await start_watcher(client)

    response = await client.delete(f"/api/v1/processes/{process_id}")
    assert response.status_code == 200
    assert response.json() == {"stopped": 1}
    assert page_host.subscriptions == {}

    again = await client.delete(f"/api/v1/processes/{process_id}")
    assert again.status_code == 404


async def test_stop_agent_processes(client: AsyncClient):
    await start_watcher(client)

    response = await client.delete("/api/v1/processes/agents/overlay-remover")
    assert response.json() == {"stopped": 1}

    untouched = await client.delete("/api/v1/processes/agents/someone-else")
    assert untouched.json() == {"stopped": 0}


async def test_stop_all_processes(client: AsyncClient):
    await start_watcher(client)

    response = await client.delete("/api/v1/processes")
    assert response.json() == {"stopped": 1}

    listing = await client.get("/api/v1/processes")
    assert listing.json() == []
