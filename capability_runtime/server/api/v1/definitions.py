"""
Definition Endpoints.

Inspect installed definitions and record approvals for definitions that
contain privileged code.
"""

from typing import List

from fastapi import APIRouter, HTTPException

from capability_runtime.errors import DefinitionNotFound
from capability_runtime.server.schemas import ApprovalSubmit, CapabilitySummary, DefinitionSummary
from capability_runtime.server.services.deps import RuntimeDep

router = APIRouter()


@router.get(
    "",
    response_model=List[DefinitionSummary],
    summary="List Definitions",
)
async def list_definitions(runtime: RuntimeDep):
    summaries = []
    for definition in await runtime.dispatcher.list_definitions():
        summaries.append(
            DefinitionSummary(
                id=definition.id,
                kind=definition.kind,
                name=definition.name,
                description=definition.description,
                version=definition.version,
                contains_privileged_code=definition.contains_privileged_code,
                approved=await runtime.dispatcher.is_approved(definition.id),
                configured=await runtime.dispatcher.is_configured(definition.id),
                capabilities=[c.name for c in definition.capabilities],
            )
        )
    return summaries


@router.get(
    "/{definition_id}/capabilities",
    response_model=List[CapabilitySummary],
    summary="List Capabilities",
    responses={404: {"description": "Definition not found"}},
)
async def list_capabilities(definition_id: str, runtime: RuntimeDep):
    try:
        capabilities = await runtime.dispatcher.list_capabilities(definition_id)
    except DefinitionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [
        CapabilitySummary(
            name=c.name,
            description=c.description,
            parameters=[p.model_dump(mode="json") for p in c.parameters],
            is_long_running=getattr(c, "is_long_running", None),
        )
        for c in capabilities
    ]


@router.post(
    "/{definition_id}/approval",
    summary="Record Approval",
    description="Grant or revoke approval to run a definition that contains privileged code.",
    responses={404: {"description": "Definition not found"}},
)
async def submit_approval(definition_id: str, submission: ApprovalSubmit, runtime: RuntimeDep):
    try:
        await runtime.dispatcher.get_definition(definition_id)
    except DefinitionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    await runtime.dispatcher.approve(definition_id, submission.granted)
    return {"definition_id": definition_id, "approved": submission.granted}
