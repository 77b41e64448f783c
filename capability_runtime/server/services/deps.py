"""
Runtime Dependency.

Provides a process-wide ``CapabilityRuntime`` instance for API endpoints.
"""

from typing import Annotated, Optional

from fastapi import Depends

from capability_runtime.core.logging_config import get_logger
from capability_runtime.definitions import builtin_definitions
from capability_runtime.dispatcher import InMemoryDefinitionStore
from capability_runtime.runtime import CapabilityRuntime

logger = get_logger(__name__)

_runtime: Optional[CapabilityRuntime] = None


def build_runtime() -> CapabilityRuntime:
    """Runtime with the built-in definitions installed."""
    return CapabilityRuntime(definitions=InMemoryDefinitionStore(builtin_definitions()))


def get_runtime() -> CapabilityRuntime:
    global _runtime
    if _runtime is None:
        _runtime = build_runtime()
        logger.info("Capability runtime created")
    return _runtime


async def close_runtime() -> None:
    global _runtime
    if _runtime is not None:
        await _runtime.aclose()
        _runtime = None


RuntimeDep = Annotated[CapabilityRuntime, Depends(get_runtime)]
