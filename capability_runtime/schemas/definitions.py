from __future__ import annotations

"""Agent and client definitions.

A *definition* is the unit a user installs: metadata, the configuration it
needs, the other definitions it depends on, and its capabilities.

- ``AgentDefinition`` capabilities are action trees run by the interpreter.
- ``ClientDefinition`` capabilities are HTTP endpoints run by the client
  engine. Agents usually depend on clients for credentials.

Definitions are frozen: an update replaces the whole object in the store.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from .actions import Action
from .base import BaseSchema, FrozenSchema


class ParameterType(str, Enum):
    string = "string"
    number = "number"
    boolean = "boolean"
    array = "array"
    object = "object"


class ParameterSpec(FrozenSchema):
    name: str
    type: ParameterType = ParameterType.string
    description: str = ""
    required: bool = False
    default: Any = None


class ConfigField(FrozenSchema):
    key: str
    label: str = ""
    type: str = "string"
    required: bool = False
    default: Optional[str] = None
    help_text: Optional[str] = Field(default=None, alias="helpText")


class CapabilityDefinition(FrozenSchema):
    name: str
    description: str = ""
    parameters: List[ParameterSpec] = Field(default_factory=list)
    is_long_running: bool = Field(default=False, alias="isLongRunning")
    actions: List[Action] = Field(default_factory=list)


class DefinitionBase(FrozenSchema):
    id: str
    name: str
    description: str = ""
    version: str = "1.0.0"
    author: str = ""
    tags: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    config_fields: List[ConfigField] = Field(default_factory=list, alias="configFields")
    contains_privileged_code: bool = Field(default=False, alias="containsPrivilegedCode")

    def required_config_keys(self) -> List[str]:
        return [f.key for f in self.config_fields if f.required]


class AgentDefinition(DefinitionBase):
    kind: Literal["agent"] = "agent"
    capabilities: List[CapabilityDefinition] = Field(default_factory=list)

    def get_capability(self, name: str) -> Optional[CapabilityDefinition]:
        for cap in self.capabilities:
            if cap.name == name:
                return cap
        return None


# ---------------------------------------------------------------------------
# HTTP clients
# ---------------------------------------------------------------------------


class AuthType(str, Enum):
    none = "none"
    bearer = "bearer"
    apikey = "apikey"
    basic = "basic"


class ParameterLocation(str, Enum):
    path = "path"
    query = "query"
    body = "body"
    header = "header"


class HttpMethod(str, Enum):
    get = "GET"
    post = "POST"
    put = "PUT"
    patch = "PATCH"
    delete = "DELETE"


class AuthConfig(FrozenSchema):
    type: AuthType = AuthType.none
    header_name: str = Field(default="X-API-Key", alias="headerName")


class ClientParameterSpec(ParameterSpec):
    location: ParameterLocation = ParameterLocation.query


class RequestTransform(FrozenSchema):
    body: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = Field(default_factory=dict)


class ResponseTransform(FrozenSchema):
    extract: Optional[str] = None
    map: Optional[Dict[str, str]] = None


class ClientCapabilityDefinition(FrozenSchema):
    name: str
    description: str = ""
    method: HttpMethod = HttpMethod.get
    path: str = "/"
    parameters: List[ClientParameterSpec] = Field(default_factory=list)
    request_transform: Optional[RequestTransform] = Field(default=None, alias="requestTransform")
    response_transform: Optional[ResponseTransform] = Field(default=None, alias="responseTransform")


class ClientDefinition(DefinitionBase):
    kind: Literal["client"] = "client"
    auth: AuthConfig = Field(default_factory=AuthConfig)
    base_url: Optional[str] = Field(default=None, alias="baseUrl")
    capabilities: List[ClientCapabilityDefinition] = Field(default_factory=list)

    def get_capability(self, name: str) -> Optional[ClientCapabilityDefinition]:
        for cap in self.capabilities:
            if cap.name == name:
                return cap
        return None


Definition = Annotated[Union[AgentDefinition, ClientDefinition], Field(discriminator="kind")]

_definition_adapter: TypeAdapter[Definition] = TypeAdapter(Definition)


def parse_definition(raw: Dict[str, Any]) -> Union[AgentDefinition, ClientDefinition]:
    """Validate a JSON definition; ``kind`` defaults to ``agent``."""
    data = dict(raw)
    data.setdefault("kind", "agent")
    return _definition_adapter.validate_python(data)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class CapabilityResult(BaseSchema):
    """Structured outcome of a capability invocation.

    ``error`` carries the error code (``"DefinitionNotFound"``...), ``detail``
    the human-readable message.
    """

    success: bool
    data: Any = None
    error: Optional[str] = None
    detail: Optional[str] = None
    status: Optional[int] = None

    @classmethod
    def ok(cls, data: Any = None, *, status: Optional[int] = None) -> "CapabilityResult":
        return cls(success=True, data=data, status=status)

    @classmethod
    def fail(cls, error: str, detail: Optional[str] = None, *, status: Optional[int] = None) -> "CapabilityResult":
        return cls(success=False, error=error, detail=detail, status=status)
