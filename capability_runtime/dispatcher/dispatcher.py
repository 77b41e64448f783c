from __future__ import annotations

"""Capability dispatcher.

``CapabilityDispatcher.execute_capability`` resolves
``(definition_id, capability_name, parameters)`` and runs it:

1. load the definition (``DefinitionNotFound``),
2. require every dependency to be configured (``DependencyUnresolved``),
3. require approval for definitions containing privileged code when the
   policy asks for it (``ApprovalRequired``),
4. locate the capability (``CapabilityNotFound``),
5. validate parameters and apply defaults (``ParameterValidationFailed``),
6. bind a fresh ``ExecutionContext`` and delegate to the interpreter (agent
   definitions) or the client engine (client definitions).

Nothing raises across this boundary. Every failure is returned as
``CapabilityResult(success=False, error=<code>, detail=<message>)``.
"""

import inspect
from typing import Any, Dict, List, Optional, Union

from ..clients.engine import ClientEngine
from ..core.config import PolicyConfig, settings
from ..core.logging_config import get_logger
from ..errors import (
    ApprovalRequired,
    CapabilityNotFound,
    CapabilityRuntimeError,
    DefinitionNotFound,
    DependencyUnresolved,
)
from ..interpreter.context import ExecutionContext
from ..interpreter.interpreter import ActionInterpreter
from ..schemas.definitions import (
    AgentDefinition,
    CapabilityDefinition,
    CapabilityResult,
    ClientCapabilityDefinition,
    ClientDefinition,
)
from ..schemas.parameters import validate_parameters
from .interfaces import AnyDefinition, CredentialStore, DefinitionStore, PolicyGate

logger = get_logger(__name__)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class CapabilityDispatcher:
    """Entry point for running installed capabilities by name."""

    def __init__(
        self,
        *,
        definitions: DefinitionStore,
        credentials: CredentialStore,
        policy_gate: PolicyGate,
        interpreter: Optional[ActionInterpreter] = None,
        client_engine: Optional[ClientEngine] = None,
        policy: Optional[PolicyConfig] = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            definitions: Source of installed definitions.
            credentials: Per-definition configuration used for dependency checks and context binding.
            policy_gate: Approval records for privileged definitions.
            interpreter: Runs agent capabilities. Its ``callClient`` actions are routed back
                through this dispatcher.
            client_engine: Runs client capabilities.
            policy: Approval policy; defaults to the runtime settings.
        """
        self._definitions = definitions
        self._credentials = credentials
        self._policy_gate = policy_gate
        self._interpreter = interpreter
        self._client_engine = client_engine
        self._policy = policy or settings.policy
        if interpreter is not None:
            interpreter.set_client_invoker(self)

    @property
    def definitions(self) -> DefinitionStore:
        return self._definitions

    def attach_interpreter(self, interpreter: Optional[ActionInterpreter]) -> None:
        """Swap the interpreter, e.g. after the execution context was rebuilt."""
        self._interpreter = interpreter
        if interpreter is not None:
            interpreter.set_client_invoker(self)

    async def execute_capability(
        self,
        definition_id: str,
        capability_name: str,
        parameters: Optional[Dict[str, Any]] = None,
        call_context: Optional[Dict[str, Any]] = None,
    ) -> CapabilityResult:
        """
        Run one capability and report the outcome.

        Args:
            definition_id: Id of an installed agent or client definition.
            capability_name: Capability to run.
            parameters: Caller-supplied parameters.
            call_context: Opaque caller data exposed to the execution context (tab id, origin...).

        Returns:
            The capability's ``CapabilityResult``; never raises.
        """
        try:
            definition = await self._load(definition_id)
            await self._check_dependencies(definition)
            await self._check_approval(definition)
            capability = self._find_capability(definition, capability_name)
            bound = validate_parameters(capability_name, capability.parameters, parameters)
            return await self._run(definition, capability_name, capability, bound, dict(call_context or {}))
        except CapabilityRuntimeError as e:
            logger.warning(f"Capability {definition_id}.{capability_name} rejected: {e}")
            return CapabilityResult.fail(e.code, str(e))
        except Exception as e:
            logger.error(f"Capability {definition_id}.{capability_name} crashed: {e}", exc_info=True)
            return CapabilityResult.fail(CapabilityRuntimeError.code, str(e) or type(e).__name__)

    async def invoke_client(
        self,
        client_id: str,
        capability_name: str,
        parameters: Dict[str, Any],
        call_context: Dict[str, Any],
    ) -> CapabilityResult:
        """Serve ``callClient`` actions through the same checks as direct calls."""
        return await self.execute_capability(client_id, capability_name, parameters, call_context)

    async def list_capabilities(
        self, definition_id: str
    ) -> List[Union[CapabilityDefinition, ClientCapabilityDefinition]]:
        """
        Raises:
            DefinitionNotFound: If nothing is installed under ``definition_id``.
        """
        definition = await self._load(definition_id)
        return list(definition.capabilities)

    async def list_definitions(self) -> List[AnyDefinition]:
        return list(await _resolve(self._definitions.list_definitions()))

    async def get_definition(self, definition_id: str) -> AnyDefinition:
        """
        Raises:
            DefinitionNotFound: If nothing is installed under ``definition_id``.
        """
        return await self._load(definition_id)

    async def is_configured(self, definition_id: str) -> bool:
        return bool(await _resolve(self._credentials.is_configured(definition_id)))

    async def approve(self, definition_id: str, granted: bool = True) -> None:
        await _resolve(self._policy_gate.record_approval(definition_id, granted))

    async def is_approved(self, definition_id: str) -> bool:
        return bool(await _resolve(self._policy_gate.has_approval(definition_id)))

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _load(self, definition_id: str) -> AnyDefinition:
        definition = await _resolve(self._definitions.load_definition(definition_id))
        if definition is None:
            raise DefinitionNotFound(definition_id)
        return definition

    async def _check_dependencies(self, definition: AnyDefinition) -> None:
        for dependency_id in definition.dependencies:
            if not await _resolve(self._credentials.is_configured(dependency_id)):
                raise DependencyUnresolved(definition.id, dependency_id)

    async def _check_approval(self, definition: AnyDefinition) -> None:
        if not definition.contains_privileged_code:
            return
        if not self._policy.require_approval_for_privileged_code:
            return
        if not await self.is_approved(definition.id):
            raise ApprovalRequired(definition.id)

    @staticmethod
    def _find_capability(
        definition: AnyDefinition, capability_name: str
    ) -> Union[CapabilityDefinition, ClientCapabilityDefinition]:
        capability = definition.get_capability(capability_name)
        if capability is None:
            raise CapabilityNotFound(definition.id, capability_name)
        return capability

    async def _run(
        self,
        definition: AnyDefinition,
        capability_name: str,
        capability: Union[CapabilityDefinition, ClientCapabilityDefinition],
        parameters: Dict[str, Any],
        call_context: Dict[str, Any],
    ) -> CapabilityResult:
        config = await _resolve(self._credentials.get_config(definition.id))

        if isinstance(definition, ClientDefinition):
            if self._client_engine is None:
                raise RuntimeError("No client engine is attached to this dispatcher")
            return await self._client_engine.execute(definition, capability_name, parameters, config)

        if not isinstance(definition, AgentDefinition) or not isinstance(capability, CapabilityDefinition):
            raise TypeError(f"Unsupported definition type for {definition.id}: {type(definition).__name__}")
        if self._interpreter is None:
            raise RuntimeError("No interpreter is attached to this dispatcher")
        deps: Dict[str, Dict[str, Any]] = {}
        for dependency_id in definition.dependencies:
            deps[dependency_id] = await _resolve(self._credentials.get_config(dependency_id))
        context = ExecutionContext(
            agent_id=definition.id,
            capability_name=capability_name,
            variables=parameters,
            config=config,
            deps=deps,
            call_context=call_context,
        )
        logger.info(f"Executing {definition.id}.{capability_name}")
        return await self._interpreter.execute(capability.actions, context)
