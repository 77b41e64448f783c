from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import pytest

from capability_runtime.bridge import (
    BridgeHost,
    InMemoryKeyValueStore,
    InMemoryNotificationService,
    InMemoryTabService,
    MessageChannel,
    RpcBridge,
    build_default_router,
)
from capability_runtime.core.config import InterpreterConfig
from capability_runtime.interpreter import ActionInterpreter, ExecutionContext, RecordingPageHost
from capability_runtime.processes import ProcessRegistry


@dataclass
class Harness:
    interpreter: ActionInterpreter
    registry: ProcessRegistry
    host: RecordingPageHost
    storage: InMemoryKeyValueStore
    tabs: InMemoryTabService
    notifications: InMemoryNotificationService
    bridge: RpcBridge

    def context(self, capability_name: str = "cap", **variables: Any) -> ExecutionContext:
        return ExecutionContext(agent_id="agent-a", capability_name=capability_name, variables=variables)


def build_harness(
    *,
    config: Optional[InterpreterConfig] = None,
    script_handler=None,
    element_counts: Optional[Dict[str, int]] = None,
) -> Harness:
    storage = InMemoryKeyValueStore()
    tabs = InMemoryTabService()
    notifications = InMemoryNotificationService()
    channel = MessageChannel("page", "extension")
    BridgeHost(channel.port2, build_default_router(storage, tabs, notifications), expected_origin="page")
    bridge = RpcBridge(channel.port1, expected_origin="extension", timeout=1.0)
    registry = ProcessRegistry()
    host = RecordingPageHost(script_handler=script_handler, element_counts=element_counts)
    interpreter = ActionInterpreter(
        registry=registry,
        bridge=bridge,
        host=host,
        config=config or InterpreterConfig(),
    )
    return Harness(
        interpreter=interpreter,
        registry=registry,
        host=host,
        storage=storage,
        tabs=tabs,
        notifications=notifications,
        bridge=bridge,
    )


@pytest.fixture
def harness() -> Harness:
    return build_harness()


@pytest.fixture
def make_harness():
    return build_harness
