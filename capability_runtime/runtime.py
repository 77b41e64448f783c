from __future__ import annotations

"""Execution-context scoped runtime objects.

``PageRuntime`` is created once per untrusted execution context (one page
load). It owns that context's ``ProcessRegistry``, its side of the RPC
bridge and the ``ActionInterpreter``. ``teardown`` stops every process and
rejects pending RPC calls; a reload is a new ``PageRuntime`` and nothing of
the previous one is reachable through it.

``CapabilityRuntime`` wires both sides together in one process: the
privileged ``BridgeHost`` with its router, the current ``PageRuntime`` and the
``CapabilityDispatcher``. The monitoring server and the tests use it.
"""

from typing import Any, Dict, List, Optional

from .bridge import BridgeHost, MessageChannel, MethodRouter, RpcBridge, build_default_router
from .bridge.transport import MessagePort
from .clients.engine import ClientEngine
from .core.config import RuntimeSettings, settings
from .core.logging_config import get_logger
from .dispatcher import (
    CapabilityDispatcher,
    CredentialStore,
    DefinitionStore,
    InMemoryCredentialStore,
    InMemoryDefinitionStore,
    InMemoryPolicyGate,
    PolicyGate,
)
from .errors import ContextClosed
from .interpreter import ActionInterpreter, ClientInvoker, PageHost, RecordingPageHost
from .processes import ProcessRegistry
from .schemas.definitions import CapabilityResult

logger = get_logger(__name__)


class PageRuntime:
    """Runtime scope of one untrusted execution context."""

    def __init__(
        self,
        port: MessagePort,
        host: PageHost,
        *,
        clients: Optional[ClientInvoker] = None,
        runtime_settings: Optional[RuntimeSettings] = None,
    ) -> None:
        cfg = runtime_settings or settings
        self.registry = ProcessRegistry()
        self.bridge = RpcBridge(port, expected_origin=cfg.bridge.host_origin, timeout=cfg.bridge.rpc_timeout_seconds)
        self.interpreter = ActionInterpreter(
            registry=self.registry,
            bridge=self.bridge,
            host=host,
            clients=clients,
            config=cfg.interpreter,
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def list_processes(self, agent_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return [handle.to_dict() for handle in self.registry.list(agent_id)]

    def stop_process(self, process_id: str) -> bool:
        return self.registry.stop(process_id)

    def stop_agent_processes(self, agent_id: str) -> int:
        return self.registry.stop_agent(agent_id)

    def stop_all_processes(self) -> int:
        return self.registry.stop_all()

    def teardown(self) -> int:
        """
        Tear the context down.

        Returns:
            Number of processes that were still active.
        """
        if self._closed:
            return 0
        self._closed = True
        stopped = self.registry.close()
        self.interpreter.cancel_tasks()
        self.bridge.close()
        logger.info(f"Execution context torn down ({stopped} processes stopped)")
        return stopped

    async def __aenter__(self) -> PageRuntime:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.teardown()


class CapabilityRuntime:
    """Privileged host, current page context and dispatcher in one object."""

    def __init__(
        self,
        *,
        definitions: Optional[DefinitionStore] = None,
        credentials: Optional[CredentialStore] = None,
        policy_gate: Optional[PolicyGate] = None,
        page_host: Optional[PageHost] = None,
        router: Optional[MethodRouter] = None,
        client_engine: Optional[ClientEngine] = None,
        runtime_settings: Optional[RuntimeSettings] = None,
    ) -> None:
        self._settings = runtime_settings or settings
        store = definitions if definitions is not None else InMemoryDefinitionStore()
        if credentials is None:
            if not isinstance(store, InMemoryDefinitionStore):
                raise ValueError("credentials are required with a custom definition store")
            credentials = InMemoryCredentialStore(store)
        self.definitions = store
        self.credentials = credentials
        self.page_host = page_host if page_host is not None else RecordingPageHost()
        self.router = router if router is not None else build_default_router()
        self.client_engine = client_engine if client_engine is not None else ClientEngine(config=self._settings.client)
        self.dispatcher = CapabilityDispatcher(
            definitions=store,
            credentials=credentials,
            policy_gate=policy_gate if policy_gate is not None else InMemoryPolicyGate(),
            client_engine=self.client_engine,
            policy=self._settings.policy,
        )
        self.page: PageRuntime
        self.bridge_host: BridgeHost
        self._channel: Optional[MessageChannel] = None
        self._connect()

    def _connect(self) -> None:
        bridge_cfg = self._settings.bridge
        self._channel = MessageChannel(bridge_cfg.page_origin, bridge_cfg.host_origin)
        self.bridge_host = BridgeHost(self._channel.port2, self.router, expected_origin=bridge_cfg.page_origin)
        self.page = PageRuntime(
            self._channel.port1,
            self.page_host,
            clients=self.dispatcher,
            runtime_settings=self._settings,
        )
        self.dispatcher.attach_interpreter(self.page.interpreter)

    def reload(self) -> PageRuntime:
        """Tear down the current page context and start a fresh one."""
        self._disconnect()
        self._connect()
        logger.info("Execution context reloaded")
        return self.page

    def _disconnect(self) -> None:
        self.page.teardown()
        self.bridge_host.close()
        if self._channel is not None:
            self._channel.close()
        self.dispatcher.attach_interpreter(None)

    async def execute_capability(
        self,
        definition_id: str,
        capability_name: str,
        parameters: Optional[Dict[str, Any]] = None,
        call_context: Optional[Dict[str, Any]] = None,
    ) -> CapabilityResult:
        if self.page.closed:
            return CapabilityResult.fail(ContextClosed.code, str(ContextClosed()))
        return await self.dispatcher.execute_capability(definition_id, capability_name, parameters, call_context)

    async def aclose(self) -> None:
        self._disconnect()
        await self.client_engine.aclose()
