from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from capability_runtime.core.config import PolicyConfig
from capability_runtime.dispatcher import (
    CapabilityDispatcher,
    InMemoryCredentialStore,
    InMemoryDefinitionStore,
    InMemoryPolicyGate,
)
from capability_runtime.schemas.definitions import CapabilityResult, parse_definition


class FakeInterpreter:
    def __init__(self, result: Optional[CapabilityResult] = None) -> None:
        self.result = result or CapabilityResult.ok("ran")
        self.calls: List[Dict[str, Any]] = []
        self.client_invoker = None

    def set_client_invoker(self, clients) -> None:
        self.client_invoker = clients

    async def execute(self, actions, context) -> CapabilityResult:
        self.calls.append({"actions": actions, "context": context})
        return self.result


class FakeClientEngine:
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []

    async def execute(self, definition, capability_name, parameters, credentials) -> CapabilityResult:
        self.calls.append(
            {"definition": definition.id, "capability": capability_name, "params": parameters, "credentials": credentials}
        )
        return CapabilityResult.ok({"echo": parameters}, status=200)


class AsyncDefinitionStore:
    """Definition store with coroutine methods, like a database-backed one."""

    def __init__(self, inner: InMemoryDefinitionStore) -> None:
        self._inner = inner

    async def load_definition(self, definition_id):
        return self._inner.load_definition(definition_id)

    async def list_definitions(self):
        return self._inner.list_definitions()

    async def save_definition(self, definition) -> None:
        self._inner.save_definition(definition)


GITHUB = parse_definition(
    {
        "kind": "client",
        "id": "github",
        "name": "GitHub",
        "baseUrl": "http://mock.github",
        "auth": {"type": "bearer"},
        "configFields": [{"key": "token", "required": True}],
        "capabilities": [{"name": "get_user", "path": "/users/{{username}}"}],
    }
)

PR_HELPER = parse_definition(
    {
        "id": "pr-helper",
        "name": "PR Helper",
        "dependencies": ["github"],
        "configFields": [{"key": "mode", "default": "summary"}],
        "capabilities": [
            {
                "name": "summarize",
                "parameters": [
                    {"name": "repo", "type": "string", "required": True},
                    {"name": "limit", "type": "number", "default": 10},
                ],
                "actions": [{"type": "return", "value": "{{repo}}"}],
            }
        ],
    }
)

PRIVILEGED = parse_definition(
    {
        "id": "page-scripter",
        "name": "Page Scripter",
        "containsPrivilegedCode": True,
        "capabilities": [{"name": "run", "actions": []}],
    }
)


@pytest.fixture
def definitions() -> InMemoryDefinitionStore:
    return InMemoryDefinitionStore([GITHUB, PR_HELPER, PRIVILEGED])


@pytest.fixture
def credentials(definitions: InMemoryDefinitionStore) -> InMemoryCredentialStore:
    return InMemoryCredentialStore(definitions, {"github": {"token": "t0k"}})


@pytest.fixture
def interpreter() -> FakeInterpreter:
    return FakeInterpreter()


@pytest.fixture
def client_engine() -> FakeClientEngine:
    return FakeClientEngine()


@pytest.fixture
def policy_gate() -> InMemoryPolicyGate:
    return InMemoryPolicyGate()


@pytest.fixture
def dispatcher(definitions, credentials, policy_gate, interpreter, client_engine) -> CapabilityDispatcher:
    return CapabilityDispatcher(
        definitions=definitions,
        credentials=credentials,
        policy_gate=policy_gate,
        interpreter=interpreter,  # type: ignore[arg-type]
        client_engine=client_engine,  # type: ignore[arg-type]
        policy=PolicyConfig(),
    )


def test_dispatcher_registers_itself_as_client_invoker(dispatcher, interpreter):
    assert interpreter.client_invoker is dispatcher


@pytest.mark.asyncio
async def test_unknown_definition_does_not_reach_interpreter(dispatcher, interpreter):
    result = await dispatcher.execute_capability("nope", "anything")

    assert result.success is False
    assert result.error == "DefinitionNotFound"
    assert interpreter.calls == []


@pytest.mark.asyncio
async def test_unconfigured_dependency(dispatcher, credentials, interpreter):
    credentials.clear_config("github")

    result = await dispatcher.execute_capability("pr-helper", "summarize", {"repo": "a/b"})

    assert result.error == "DependencyUnresolved"
    assert "github" in result.detail
    assert interpreter.calls == []


@pytest.mark.asyncio
async def test_privileged_definition_requires_approval(dispatcher, interpreter):
    denied = await dispatcher.execute_capability("page-scripter", "run")
    assert denied.error == "ApprovalRequired"

    await dispatcher.approve("page-scripter")
    allowed = await dispatcher.execute_capability("page-scripter", "run")

    assert allowed.success is True
    assert len(interpreter.calls) == 1


@pytest.mark.asyncio
async def test_approval_not_required_when_policy_disabled(definitions, credentials, policy_gate, interpreter):
    dispatcher = CapabilityDispatcher(
        definitions=definitions,
        credentials=credentials,
        policy_gate=policy_gate,
        interpreter=interpreter,  # type: ignore[arg-type]
        policy=PolicyConfig(require_approval_for_privileged_code=False),
    )

    assert (await dispatcher.execute_capability("page-scripter", "run")).success is True


@pytest.mark.asyncio
async def test_unknown_capability(dispatcher):
    result = await dispatcher.execute_capability("pr-helper", "explode", {"repo": "a/b"})

    assert result.error == "CapabilityNotFound"


@pytest.mark.asyncio
async def test_parameter_validation(dispatcher, interpreter):
    missing = await dispatcher.execute_capability("pr-helper", "summarize", {})
    assert missing.error == "ParameterValidationFailed"
    assert "missing required parameter 'repo'" in missing.detail

    wrong_type = await dispatcher.execute_capability("pr-helper", "summarize", {"repo": "a/b", "limit": "ten"})
    assert wrong_type.error == "ParameterValidationFailed"
    assert "expected number" in wrong_type.detail
    assert interpreter.calls == []


@pytest.mark.asyncio
async def test_agent_capability_binds_fresh_context(dispatcher, interpreter):
    result = await dispatcher.execute_capability(
        "pr-helper", "summarize", {"repo": "a/b"}, call_context={"tabId": 4}
    )

    assert result.success is True
    assert result.data == "ran"
    ctx = interpreter.calls[0]["context"]
    assert ctx.agent_id == "pr-helper"
    assert ctx.capability_name == "summarize"
    assert ctx.variables == {"repo": "a/b", "limit": 10}
    assert ctx.config == {"mode": "summary"}
    assert ctx.deps == {"github": {"token": "t0k"}}
    assert ctx.call_context == {"tabId": 4}


@pytest.mark.asyncio
async def test_each_invocation_gets_its_own_context(dispatcher, interpreter):
    await dispatcher.execute_capability("pr-helper", "summarize", {"repo": "a/b"})
    await dispatcher.execute_capability("pr-helper", "summarize", {"repo": "c/d"})

    first, second = (c["context"] for c in interpreter.calls)
    assert first is not second
    assert second.get_variable("repo") == "c/d"


@pytest.mark.asyncio
async def test_client_capability_goes_to_client_engine(dispatcher, client_engine, interpreter):
    result = await dispatcher.execute_capability("github", "get_user", {"username": "ada"})

    assert result.success is True
    assert result.status == 200
    assert client_engine.calls == [
        {"definition": "github", "capability": "get_user", "params": {"username": "ada"}, "credentials": {"token": "t0k"}}
    ]
    assert interpreter.calls == []


@pytest.mark.asyncio
async def test_invoke_client_routes_through_dispatch(dispatcher, client_engine, credentials):
    result = await dispatcher.invoke_client("github", "get_user", {"username": "ada"}, {"tabId": 1})
    assert result.success is True
    assert client_engine.calls[0]["capability"] == "get_user"

    missing = await dispatcher.invoke_client("gitlab", "get_user", {}, {})
    assert missing.error == "DefinitionNotFound"

    dispatcher_without_engine = CapabilityDispatcher(
        definitions=dispatcher.definitions,
        credentials=credentials,
        policy_gate=InMemoryPolicyGate(),
    )
    crashed = await dispatcher_without_engine.invoke_client("github", "get_user", {}, {})
    assert crashed.success is False
    assert crashed.error == "CapabilityRuntimeError"


@pytest.mark.asyncio
async def test_interpreter_failure_is_returned_not_raised(definitions, credentials, policy_gate):
    interpreter = FakeInterpreter(CapabilityResult.fail("ActionExecutionFailed", "boom"))
    dispatcher = CapabilityDispatcher(
        definitions=definitions,
        credentials=credentials,
        policy_gate=policy_gate,
        interpreter=interpreter,  # type: ignore[arg-type]
    )

    result = await dispatcher.execute_capability("pr-helper", "summarize", {"repo": "a/b"})

    assert result.success is False
    assert result.error == "ActionExecutionFailed"


@pytest.mark.asyncio
async def test_async_definition_store(definitions, credentials, policy_gate, interpreter):
    dispatcher = CapabilityDispatcher(
        definitions=AsyncDefinitionStore(definitions),
        credentials=credentials,
        policy_gate=policy_gate,
        interpreter=interpreter,  # type: ignore[arg-type]
    )

    assert (await dispatcher.execute_capability("pr-helper", "summarize", {"repo": "a/b"})).success is True
    assert [d.id for d in await dispatcher.list_definitions()] == ["github", "pr-helper", "page-scripter"]


@pytest.mark.asyncio
async def test_listing_helpers(dispatcher):
    capabilities = await dispatcher.list_capabilities("pr-helper")

    assert [c.name for c in capabilities] == ["summarize"]
    assert await dispatcher.is_configured("github") is True
    assert await dispatcher.is_configured("unknown") is False
    assert (await dispatcher.get_definition("github")).kind == "client"


def test_credential_store_applies_defaults_and_required_keys(definitions, credentials):
    assert credentials.get_config("pr-helper") == {"mode": "summary"}
    assert credentials.is_configured("pr-helper") is True

    credentials.set_config("github", {"token": ""})
    assert credentials.is_configured("github") is False


class ForeignDefinition:
    """Definition-shaped object that is neither an agent nor a client definition."""

    id = "foreign"
    dependencies: List[str] = []
    contains_privileged_code = False

    def get_capability(self, name):
        return PR_HELPER.get_capability("summarize")


class ForeignDefinitionStore:
    def load_definition(self, definition_id):
        return ForeignDefinition()

    def list_definitions(self):
        return [ForeignDefinition()]

    def save_definition(self, definition) -> None:
        pass


@pytest.mark.asyncio
async def test_unsupported_definition_type_is_reported(credentials, policy_gate, interpreter):
    dispatcher = CapabilityDispatcher(
        definitions=ForeignDefinitionStore(),  # type: ignore[arg-type]
        credentials=credentials,
        policy_gate=policy_gate,
        interpreter=interpreter,  # type: ignore[arg-type]
    )

    result = await dispatcher.execute_capability("foreign", "summarize", {"repo": "a/b"})

    assert result.success is False
    assert result.error == "CapabilityRuntimeError"
    assert "Unsupported definition type" in result.detail
    assert interpreter.calls == []
