"""
Health Check Endpoints.

Basic status endpoints used for monitoring and deployment verification.
"""

from fastapi import APIRouter

from capability_runtime.server.services.deps import RuntimeDep

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the monitoring server.",
    response_description="Status object.",
)
async def health_check(runtime: RuntimeDep):
    """
    Health check endpoint.

    Also reports whether the current execution context is alive and how many
    processes it holds.
    """
    return {
        "status": "ok",
        "context_closed": runtime.page.closed,
        "active_processes": len(runtime.page.registry),
    }
