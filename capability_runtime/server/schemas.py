"""
API Schemas.

Pydantic models used for request bodies and responses of the monitoring API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProcessInfo(BaseModel):
    """Active process as reported by the registry, without its cleanup closure."""

    id: str = Field(..., examples=["proc-1735689600000-1"])
    owner_agent_id: str = Field(..., alias="ownerAgentId", examples=["overlay-remover"])
    capability_name: str = Field(..., alias="capabilityName", examples=["watch_and_remove"])
    type: str = Field(..., examples=["observer"])
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(..., alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


class StopResult(BaseModel):
    stopped: int = Field(..., description="Number of processes removed from the registry.")


class CapabilityInvocation(BaseModel):
    """
    Request body for running a capability.

    ``call_context`` is passed through to the execution context untouched.
    """

    parameters: Dict[str, Any] = Field(default_factory=dict, examples=[{}])
    call_context: Dict[str, Any] = Field(default_factory=dict, examples=[{"tabId": 1}])


class DefinitionSummary(BaseModel):
    id: str
    kind: str
    name: str
    description: str = ""
    version: str
    contains_privileged_code: bool = False
    approved: bool = False
    configured: bool = False
    capabilities: List[str] = Field(default_factory=list)


class CapabilitySummary(BaseModel):
    name: str
    description: str = ""
    parameters: List[Dict[str, Any]] = Field(default_factory=list)
    is_long_running: Optional[bool] = None


class ApprovalSubmit(BaseModel):
    granted: bool = Field(default=True, description="Grant (true) or revoke (false) approval.")
