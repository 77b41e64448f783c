from __future__ import annotations

"""Error taxonomy of the capability runtime.

Every error carries a ``code`` class attribute. The dispatcher never lets
these escape its boundary; it converts them to
``CapabilityResult(success=False, error=<code>, detail=<message>)``.
"""

from typing import Optional


class CapabilityRuntimeError(Exception):
    code = "CapabilityRuntimeError"


class DefinitionNotFound(CapabilityRuntimeError):
    code = "DefinitionNotFound"

    def __init__(self, definition_id: str) -> None:
        self.definition_id = definition_id
        super().__init__(f"Definition not found: '{definition_id}'")


class CapabilityNotFound(CapabilityRuntimeError):
    code = "CapabilityNotFound"

    def __init__(self, definition_id: str, capability_name: str) -> None:
        self.definition_id = definition_id
        self.capability_name = capability_name
        super().__init__(f"Capability '{capability_name}' not found in definition '{definition_id}'")


class DependencyUnresolved(CapabilityRuntimeError):
    code = "DependencyUnresolved"

    def __init__(self, definition_id: str, dependency_id: str) -> None:
        self.definition_id = definition_id
        self.dependency_id = dependency_id
        super().__init__(f"Definition '{definition_id}' requires '{dependency_id}' to be configured")


class ApprovalRequired(CapabilityRuntimeError):
    code = "ApprovalRequired"

    def __init__(self, definition_id: str) -> None:
        self.definition_id = definition_id
        super().__init__(f"Definition '{definition_id}' contains privileged code and has not been approved")


class ParameterValidationFailed(CapabilityRuntimeError):
    code = "ParameterValidationFailed"

    def __init__(self, capability_name: str, problems: list[str]) -> None:
        self.capability_name = capability_name
        self.problems = list(problems)
        super().__init__(f"Invalid parameters for '{capability_name}': {'; '.join(self.problems)}")


class ActionExecutionFailed(CapabilityRuntimeError):
    code = "ActionExecutionFailed"

    def __init__(self, action_type: str, cause: BaseException) -> None:
        self.action_type = action_type
        self.cause = cause
        super().__init__(f"Action '{action_type}' failed: {cause}")


class UnknownActionType(CapabilityRuntimeError):
    code = "UnknownActionType"

    def __init__(self, action_type: str) -> None:
        self.action_type = action_type
        super().__init__(f"Unknown action type: {action_type}")


class ScriptExecutionDisabled(CapabilityRuntimeError):
    code = "ScriptExecutionDisabled"

    def __init__(self) -> None:
        super().__init__("Script execution is disabled in settings")


class RpcTimeout(CapabilityRuntimeError):
    code = "RpcTimeout"

    def __init__(self, method: str, timeout: float) -> None:
        self.method = method
        self.timeout = timeout
        super().__init__(f"API call timeout: {method} (after {timeout}s)")


class RpcRejected(CapabilityRuntimeError):
    code = "RpcRejected"

    def __init__(self, method: str, error: Optional[str]) -> None:
        self.method = method
        self.error = error
        super().__init__(f"API call '{method}' rejected: {error or 'unknown error'}")


class ProcessCleanupFailed(CapabilityRuntimeError):
    code = "ProcessCleanupFailed"

    def __init__(self, process_id: str, cause: BaseException) -> None:
        self.process_id = process_id
        self.cause = cause
        super().__init__(f"Cleanup of process '{process_id}' failed: {cause}")


class ContextClosed(CapabilityRuntimeError):
    code = "ContextClosed"

    def __init__(self, what: str = "execution context") -> None:
        super().__init__(f"The {what} has been torn down")


class ClientRequestFailed(CapabilityRuntimeError):
    code = "ClientRequestFailed"

    def __init__(self, client_id: str, status: Optional[int], message: str) -> None:
        self.client_id = client_id
        self.status = status
        super().__init__(f"Request for client '{client_id}' failed ({status}): {message}")
