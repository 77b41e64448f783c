"""
Global Exception Handler for the monitoring server.

Unhandled exceptions are logged with their request context and answered with
a JSON 500 carrying an error id. Runtime errors that escape a route are
reported with their error code instead of a bare 500 message.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from capability_runtime.core.logging_config import get_logger
from capability_runtime.errors import CapabilityRuntimeError

logger = get_logger(__name__)


async def runtime_error_handler(request: Request, exc: Exception) -> JSONResponse:
    code = getattr(exc, "code", CapabilityRuntimeError.code)
    logger.warning(f"{code} in {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=409, content={"detail": str(exc), "error": code})


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Log an unhandled exception and return an error reference.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = id(exc)
    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {exc}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "error_type": type(exc).__name__,
        },
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(CapabilityRuntimeError, runtime_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
