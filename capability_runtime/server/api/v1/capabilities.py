"""
Capability Execution Endpoint.

Runs a capability through the dispatcher. The response body is always the
structured ``CapabilityResult``; failures are reported in it, not as HTTP
errors.
"""

from typing import Optional

from fastapi import APIRouter

from capability_runtime.schemas.definitions import CapabilityResult
from capability_runtime.server.schemas import CapabilityInvocation
from capability_runtime.server.services.deps import RuntimeDep

router = APIRouter()


@router.post(
    "/{definition_id}/{capability}",
    response_model=CapabilityResult,
    response_model_exclude_none=True,
    summary="Execute Capability",
    description="Resolve and run a capability of an installed agent or client definition.",
)
async def execute_capability(
    definition_id: str,
    capability: str,
    runtime: RuntimeDep,
    invocation: Optional[CapabilityInvocation] = None,
):
    body = invocation or CapabilityInvocation()
    return await runtime.execute_capability(definition_id, capability, body.parameters, body.call_context)
