"""
Configuration Settings.

This module defines the runtime configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class BridgeConfig(BaseModel):
    """RPC bridge configuration."""

    rpc_timeout_seconds: float = Field(
        default=30.0,
        alias="CAPABILITY_RUNTIME_RPC_TIMEOUT_SECONDS",
        description="Seconds an RPC call may stay pending before it is rejected",
    )
    page_origin: str = Field(
        default="page",
        alias="CAPABILITY_RUNTIME_PAGE_ORIGIN",
        description="Origin tag of the untrusted page-side sender",
    )
    host_origin: str = Field(
        default="extension",
        alias="CAPABILITY_RUNTIME_HOST_ORIGIN",
        description="Origin tag of the privileged host-side sender",
    )

    model_config = {"populate_by_name": True}


class InterpreterConfig(BaseModel):
    """Action interpreter configuration."""

    default_while_max_iterations: int = Field(
        default=1000,
        alias="CAPABILITY_RUNTIME_WHILE_MAX_ITERATIONS",
        description="Iteration ceiling applied to while actions without their own maxIterations",
    )
    allow_script_actions: bool = Field(
        default=False,
        alias="CAPABILITY_RUNTIME_ALLOW_SCRIPT_ACTIONS",
        description="Allow executeScript actions to hand code to the page host",
    )
    default_script_timeout_ms: int = Field(
        default=5000,
        alias="CAPABILITY_RUNTIME_SCRIPT_TIMEOUT_MS",
        description="Timeout passed to the page host for executeScript actions without their own timeout",
    )

    model_config = {"populate_by_name": True}


class PolicyConfig(BaseModel):
    """Approval policy configuration."""

    require_approval_for_privileged_code: bool = Field(
        default=True,
        alias="CAPABILITY_RUNTIME_REQUIRE_APPROVAL",
        description="Require a recorded approval before running definitions that contain privileged code",
    )

    model_config = {"populate_by_name": True}


class ClientConfig(BaseModel):
    """HTTP client engine configuration."""

    request_timeout_seconds: float = Field(
        default=30.0,
        alias="CAPABILITY_RUNTIME_CLIENT_TIMEOUT_SECONDS",
        description="Timeout for HTTP requests issued by client definitions",
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class RuntimeSettings(BaseSettings):
    """
    Runtime settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="CAPABILITY_RUNTIME_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log line format (simple, detailed, json)",
        alias="CAPABILITY_RUNTIME_LOG_FORMAT",
    )
    log_file_dir: str = Field(
        default="logs",
        description="Directory for the log file when file logging is enabled",
        alias="CAPABILITY_RUNTIME_LOG_FILE_DIR",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Also write logs to a file under log_file_dir",
        alias="CAPABILITY_RUNTIME_ENABLE_FILE_LOGGING",
    )

    # =====================================================================
    # Monitoring Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="127.0.0.1",
        description="Monitoring server host address to bind to",
        alias="CAPABILITY_RUNTIME_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="Monitoring server port number",
        alias="CAPABILITY_RUNTIME_SERVER_PORT",
    )

    # =====================================================================
    # Component Configuration (flat so every value is env-overridable)
    # =====================================================================
    rpc_timeout_seconds: float = Field(default=30.0, alias="CAPABILITY_RUNTIME_RPC_TIMEOUT_SECONDS")
    page_origin: str = Field(default="page", alias="CAPABILITY_RUNTIME_PAGE_ORIGIN")
    host_origin: str = Field(default="extension", alias="CAPABILITY_RUNTIME_HOST_ORIGIN")
    default_while_max_iterations: int = Field(default=1000, alias="CAPABILITY_RUNTIME_WHILE_MAX_ITERATIONS")
    allow_script_actions: bool = Field(default=False, alias="CAPABILITY_RUNTIME_ALLOW_SCRIPT_ACTIONS")
    default_script_timeout_ms: int = Field(default=5000, alias="CAPABILITY_RUNTIME_SCRIPT_TIMEOUT_MS")
    require_approval_for_privileged_code: bool = Field(default=True, alias="CAPABILITY_RUNTIME_REQUIRE_APPROVAL")
    request_timeout_seconds: float = Field(default=30.0, alias="CAPABILITY_RUNTIME_CLIENT_TIMEOUT_SECONDS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def bridge(self) -> BridgeConfig:
        """Get RPC bridge configuration from environment variables."""
        return BridgeConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def interpreter(self) -> InterpreterConfig:
        """Get interpreter configuration from environment variables."""
        return InterpreterConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def policy(self) -> PolicyConfig:
        """Get approval policy configuration from environment variables."""
        return PolicyConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def client(self) -> ClientConfig:
        """Get HTTP client engine configuration from environment variables."""
        return ClientConfig.model_validate(self.model_dump(by_alias=True))


settings = RuntimeSettings()
