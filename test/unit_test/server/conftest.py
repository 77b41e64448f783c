"""
Shared fixtures for monitoring server tests.

Each test gets its own ``CapabilityRuntime`` with the built-in definitions and
a recording page host, injected through FastAPI dependency overrides.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from capability_runtime.core.config import RuntimeSettings
from capability_runtime.definitions import builtin_definitions
from capability_runtime.dispatcher import InMemoryDefinitionStore
from capability_runtime.interpreter import RecordingPageHost
from capability_runtime.runtime import CapabilityRuntime


@pytest.fixture
def page_host() -> RecordingPageHost:
    return RecordingPageHost()


@pytest_asyncio.fixture(name="runtime")
async def runtime_fixture(page_host: RecordingPageHost) -> AsyncGenerator[CapabilityRuntime, None]:
    """Create a fresh runtime for each test."""
    runtime = CapabilityRuntime(
        definitions=InMemoryDefinitionStore(builtin_definitions()),
        page_host=page_host,
        runtime_settings=RuntimeSettings(),
    )
    yield runtime
    await runtime.aclose()


@pytest_asyncio.fixture(name="client")
async def client_fixture(runtime: CapabilityRuntime) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with the runtime dependency overridden."""
    from capability_runtime.server.main import app
    from capability_runtime.server.services.deps import get_runtime

    app.dependency_overrides[get_runtime] = lambda: runtime

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()
