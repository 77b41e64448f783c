from __future__ import annotations

import asyncio

import pytest

from capability_runtime import CapabilityRuntime
from capability_runtime.bridge import MessageChannel
from capability_runtime.core.config import RuntimeSettings
from capability_runtime.dispatcher import InMemoryDefinitionStore
from capability_runtime.errors import ContextClosed
from capability_runtime.interpreter import RecordingPageHost
from capability_runtime.runtime import PageRuntime
from capability_runtime.schemas.definitions import parse_definition

TICKER = parse_definition(
    {
        "id": "ticker",
        "name": "Ticker",
        "capabilities": [
            {
                "name": "start",
                "isLongRunning": True,
                "actions": [
                    {
                        "type": "startProcess",
                        "processType": "interval",
                        "intervalMs": 5,
                        "actions": [{"type": "addStyle", "target": ".tick", "styles": {}}],
                        "saveAs": "pid",
                    },
                    {
                        "type": "startProcess",
                        "processType": "observer",
                        "target": "body",
                        "actions": [],
                    },
                    {"type": "return", "value": "{{pid}}"},
                ],
            },
            {
                "name": "remember",
                "parameters": [{"name": "value", "type": "string", "required": True}],
                "actions": [
                    {"type": "storage.set", "items": {"remembered": "{{value}}"}},
                    {"type": "storage.get", "keys": "remembered", "saveAs": "stored"},
                    {"type": "return", "value": "{{stored.remembered}}"},
                ],
            },
        ],
    }
)


@pytest.fixture
def page_host() -> RecordingPageHost:
    return RecordingPageHost()


@pytest.fixture
def runtime(page_host: RecordingPageHost) -> CapabilityRuntime:
    return CapabilityRuntime(
        definitions=InMemoryDefinitionStore([TICKER]),
        page_host=page_host,
        runtime_settings=RuntimeSettings(),
    )


@pytest.mark.asyncio
async def test_privileged_actions_cross_the_bridge(runtime: CapabilityRuntime):
    result = await runtime.execute_capability("ticker", "remember", {"value": "hello"})

    assert result.success is True
    assert result.data == "hello"


@pytest.mark.asyncio
async def test_lifecycle_api_lists_and_stops_processes(runtime: CapabilityRuntime):
    result = await runtime.execute_capability("ticker", "start")

    processes = runtime.page.list_processes("ticker")
    assert {p["type"] for p in processes} == {"interval", "observer"}
    assert result.data in {p["id"] for p in processes}
    assert runtime.page.list_processes("someone-else") == []

    assert runtime.page.stop_process(result.data) is True
    assert runtime.page.stop_process(result.data) is False
    assert runtime.page.stop_agent_processes("ticker") == 1
    assert runtime.page.stop_all_processes() == 0


@pytest.mark.asyncio
async def test_teardown_stops_everything(runtime: CapabilityRuntime, page_host: RecordingPageHost):
    await runtime.execute_capability("ticker", "start")
    page = runtime.page

    assert page.teardown() == 2
    assert page.teardown() == 0
    assert page.closed
    assert page_host.subscriptions == {}

    ticks = len(page_host.styles)
    await asyncio.sleep(0.03)
    assert len(page_host.styles) == ticks

    closed = await runtime.execute_capability("ticker", "remember", {"value": "x"})
    assert closed.error == ContextClosed.code


@pytest.mark.asyncio
async def test_reload_starts_with_an_empty_registry(runtime: CapabilityRuntime):
    await runtime.execute_capability("ticker", "start")
    old_page = runtime.page

    new_page = runtime.reload()

    assert new_page is not old_page
    assert old_page.closed
    assert len(old_page.registry) == 0
    assert len(new_page.registry) == 0

    result = await runtime.execute_capability("ticker", "remember", {"value": "again"})
    assert result.success is True


@pytest.mark.asyncio
async def test_teardown_rejects_pending_rpc_calls(page_host: RecordingPageHost):
    channel = MessageChannel("page", "extension")
    page = PageRuntime(channel.port1, page_host, runtime_settings=RuntimeSettings())

    pending = asyncio.ensure_future(page.bridge.call("storage.get"))
    await asyncio.sleep(0)
    page.teardown()

    with pytest.raises(ContextClosed):
        await pending


@pytest.mark.asyncio
async def test_page_runtime_as_context_manager(page_host: RecordingPageHost):
    channel = MessageChannel("page", "extension")

    async with PageRuntime(channel.port1, page_host) as page:
        assert not page.closed

    assert page.closed


def test_custom_definition_store_requires_credentials():
    class Store:
        def load_definition(self, definition_id):
            return None

        def list_definitions(self):
            return []

        def save_definition(self, definition):
            return None

    with pytest.raises(ValueError):
        CapabilityRuntime(definitions=Store())
