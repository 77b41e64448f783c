"""Capability execution runtime.

Runs declaratively defined agents inside an untrusted execution context:

- ``interpreter``: the action language interpreter,
- ``bridge``: cross-context RPC to privileged host operations,
- ``processes``: lifecycle and guaranteed cleanup of long-running side effects,
- ``dispatcher``: resolves ``(definition, capability, parameters)`` and runs it,
- ``clients``: HTTP-backed client definitions,
- ``runtime``: context-scoped wiring of all of the above.
"""

from .dispatcher import CapabilityDispatcher
from .errors import CapabilityRuntimeError
from .interpreter import ActionInterpreter, ExecutionContext
from .processes import ProcessHandle, ProcessRegistry, ProcessType
from .runtime import CapabilityRuntime, PageRuntime
from .schemas import CapabilityResult

__all__ = [
    "ActionInterpreter",
    "CapabilityDispatcher",
    "CapabilityResult",
    "CapabilityRuntime",
    "CapabilityRuntimeError",
    "ExecutionContext",
    "PageRuntime",
    "ProcessHandle",
    "ProcessRegistry",
    "ProcessType",
]
