from __future__ import annotations

"""Cross-context wire protocol.

Request::

    {"type": "AGENT_API_CALL", "id": "api-1", "method": "storage.get", "params": {...}}

Response::

    {"type": "AGENT_API_RESPONSE", "id": "api-1", "success": true, "result": ...}
    {"type": "AGENT_API_RESPONSE", "id": "api-1", "success": false, "error": "..."}

The ``id`` correlates exactly one request to exactly one response.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import Field

from ..schemas.base import BaseSchema

CALL_TYPE = "AGENT_API_CALL"
RESPONSE_TYPE = "AGENT_API_RESPONSE"


class ApiCallMessage(BaseSchema):
    type: Literal["AGENT_API_CALL"] = CALL_TYPE
    id: str
    method: str
    params: Dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class ApiResponseMessage(BaseSchema):
    type: Literal["AGENT_API_RESPONSE"] = RESPONSE_TYPE
    id: str
    success: bool
    result: Any = None
    error: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        wire: Dict[str, Any] = {"type": self.type, "id": self.id, "success": self.success}
        if self.success:
            wire["result"] = self.result
        else:
            wire["error"] = self.error or "Unknown error"
        return wire
