"""
Process Lifecycle Endpoints.

List and stop the long-running processes of the current execution context.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException

from capability_runtime.server.schemas import ProcessInfo, StopResult
from capability_runtime.server.services.deps import RuntimeDep

router = APIRouter()


@router.get(
    "",
    response_model=List[ProcessInfo],
    response_model_by_alias=True,
    summary="List Processes",
    description="List active processes, optionally only those owned by one agent.",
)
async def list_processes(runtime: RuntimeDep, agent_id: Optional[str] = None):
    return runtime.page.list_processes(agent_id)


@router.delete(
    "/agents/{agent_id}",
    response_model=StopResult,
    summary="Stop Agent Processes",
    description="Stop every process owned by an agent. Other agents are untouched.",
)
async def stop_agent_processes(agent_id: str, runtime: RuntimeDep):
    return StopResult(stopped=runtime.page.stop_agent_processes(agent_id))


@router.delete(
    "/{process_id}",
    response_model=StopResult,
    summary="Stop Process",
    responses={404: {"description": "Process not found"}},
)
async def stop_process(process_id: str, runtime: RuntimeDep):
    """
    Stop one process.

    Its cleanup runs even if it fails; a second stop of the same id is a 404.
    """
    if not runtime.page.stop_process(process_id):
        raise HTTPException(status_code=404, detail=f"Process not found: {process_id}")
    return StopResult(stopped=1)


@router.delete(
    "",
    response_model=StopResult,
    summary="Stop All Processes",
)
async def stop_all_processes(runtime: RuntimeDep):
    return StopResult(stopped=runtime.page.stop_all_processes())
