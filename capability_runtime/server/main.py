"""
Monitoring Server Entry Point.

This module initializes the FastAPI application, configures middleware (CORS),
and includes the API routers exposing the process lifecycle API and capability
execution of the runtime.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from capability_runtime.core.logging_config import get_logger, setup_logging

from .api.v1 import capabilities, definitions, health, processes
from .core import constant
from .exception_handlers import setup_exception_handlers
from .services.deps import close_runtime, get_runtime

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates the runtime on startup and tears its execution context down on
    shutdown so no process outlives the server.
    """
    logger.info("Starting up capability runtime monitor...")
    get_runtime()

    yield

    logger.info("Shutting down capability runtime monitor...")
    await close_runtime()


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Capability Runtime Monitor API

    Inspect and stop the long-running processes started by agent capabilities,
    list installed definitions and run capabilities by name.
    """,
    version="1.0.0",
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(processes.router, prefix=f"{constant.API_V1_STR}/processes", tags=["processes"])
app.include_router(capabilities.router, prefix=f"{constant.API_V1_STR}/capabilities", tags=["capabilities"])
app.include_router(definitions.router, prefix=f"{constant.API_V1_STR}/definitions", tags=["definitions"])
