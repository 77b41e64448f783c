from __future__ import annotations

"""Declarative action language.

An ``Action`` is one node of a capability's behavior tree. The union is closed
and discriminated on ``type``; ``ActionInterpreter`` keeps a handler for every
member and refuses to start if one is missing.

Groups
------

- Control flow: ``sequence``, ``if``, ``forEach``, ``while``, ``return``.
- Page effects: ``addStyle``, ``executeScript``.
- Privileged effects (through the RPC bridge): ``notify``, ``storage.get``,
  ``storage.set``, ``tabs.create``.
- Processes: ``startProcess``, ``registerCleanup``, ``stopProcess``.
- Data: ``set``, ``get``, ``transform``, ``merge``, ``wait``.
- Clients: ``callClient``.

Field names follow the JSON spelling used by definition authors through
aliases (``saveAs``, ``itemAs``, ``processType``...).
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from ..processes.models import ProcessType
from .base import FrozenSchema
from .conditions import Condition, Transform

# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------


class SequenceAction(FrozenSchema):
    type: Literal["sequence"] = "sequence"
    actions: List["Action"] = Field(default_factory=list)


class IfAction(FrozenSchema):
    type: Literal["if"] = "if"
    condition: Condition
    then: List["Action"] = Field(default_factory=list)
    else_: Optional[List["Action"]] = Field(default=None, alias="else")


class ForEachAction(FrozenSchema):
    type: Literal["forEach"] = "forEach"
    source: str
    item_as: str = Field(default="item", alias="itemAs")
    index_as: str = Field(default="index", alias="indexAs")
    do: List["Action"] = Field(default_factory=list)


class WhileAction(FrozenSchema):
    type: Literal["while"] = "while"
    condition: Condition
    do: List["Action"] = Field(default_factory=list)
    max_iterations: Optional[int] = Field(default=None, alias="maxIterations", gt=0)


class ReturnAction(FrozenSchema):
    type: Literal["return"] = "return"
    value: Any = None


# ---------------------------------------------------------------------------
# Page and privileged effects
# ---------------------------------------------------------------------------


class AddStyleAction(FrozenSchema):
    type: Literal["addStyle"] = "addStyle"
    target: str
    styles: Dict[str, str] = Field(default_factory=dict)


class NotifyAction(FrozenSchema):
    type: Literal["notify"] = "notify"
    title: str
    message: str


class ExecuteScriptAction(FrozenSchema):
    type: Literal["executeScript"] = "executeScript"
    script: str
    args: List[str] = Field(default_factory=list)
    save_as: Optional[str] = Field(default=None, alias="saveAs")
    timeout: Optional[int] = None


class StorageGetAction(FrozenSchema):
    type: Literal["storage.get"] = "storage.get"
    keys: Union[str, List[str], None] = None
    save_as: Optional[str] = Field(default=None, alias="saveAs")


class StorageSetAction(FrozenSchema):
    type: Literal["storage.set"] = "storage.set"
    items: Dict[str, Any] = Field(default_factory=dict)


class TabsCreateAction(FrozenSchema):
    type: Literal["tabs.create"] = "tabs.create"
    url: str
    save_as: Optional[str] = Field(default=None, alias="saveAs")


class CallClientAction(FrozenSchema):
    type: Literal["callClient"] = "callClient"
    client: str
    method: str
    params: Dict[str, Any] = Field(default_factory=dict)
    save_as: Optional[str] = Field(default=None, alias="saveAs")


# ---------------------------------------------------------------------------
# Process management
# ---------------------------------------------------------------------------


class StartProcessAction(FrozenSchema):
    type: Literal["startProcess"] = "startProcess"
    process_type: ProcessType = Field(alias="processType")
    actions: List["Action"] = Field(default_factory=list)
    cleanup: List["Action"] = Field(default_factory=list)
    interval_ms: Optional[int] = Field(default=None, alias="intervalMs", gt=0)
    delay_ms: Optional[int] = Field(default=None, alias="delayMs", ge=0)
    target: Optional[str] = None
    event: Optional[str] = None
    description: Optional[str] = None
    save_as: Optional[str] = Field(default=None, alias="saveAs")


class RegisterCleanupAction(FrozenSchema):
    type: Literal["registerCleanup"] = "registerCleanup"
    actions: List["Action"] = Field(default_factory=list)
    cleanup: List["Action"] = Field(default_factory=list)
    description: Optional[str] = None
    save_as: Optional[str] = Field(default=None, alias="saveAs")


class StopProcessAction(FrozenSchema):
    type: Literal["stopProcess"] = "stopProcess"
    process_id: str = Field(alias="processId")


# ---------------------------------------------------------------------------
# Data operations
# ---------------------------------------------------------------------------


class SetVariableAction(FrozenSchema):
    type: Literal["set"] = "set"
    variable: str
    value: Any = None


class GetVariableAction(FrozenSchema):
    type: Literal["get"] = "get"
    variable: str
    save_as: Optional[str] = Field(default=None, alias="saveAs")


class TransformAction(FrozenSchema):
    type: Literal["transform"] = "transform"
    source: str
    transform: Transform
    save_as: Optional[str] = Field(default=None, alias="saveAs")


class MergeAction(FrozenSchema):
    type: Literal["merge"] = "merge"
    sources: List[str] = Field(default_factory=list)
    save_as: Optional[str] = Field(default=None, alias="saveAs")


class WaitAction(FrozenSchema):
    type: Literal["wait"] = "wait"
    ms: Union[int, str] = 0


Action = Annotated[
    Union[
        SequenceAction,
        IfAction,
        ForEachAction,
        WhileAction,
        ReturnAction,
        AddStyleAction,
        NotifyAction,
        ExecuteScriptAction,
        StorageGetAction,
        StorageSetAction,
        TabsCreateAction,
        CallClientAction,
        StartProcessAction,
        RegisterCleanupAction,
        StopProcessAction,
        SetVariableAction,
        GetVariableAction,
        TransformAction,
        MergeAction,
        WaitAction,
    ],
    Field(discriminator="type"),
]

ACTION_TYPES = (
    SequenceAction,
    IfAction,
    ForEachAction,
    WhileAction,
    ReturnAction,
    AddStyleAction,
    NotifyAction,
    ExecuteScriptAction,
    StorageGetAction,
    StorageSetAction,
    TabsCreateAction,
    CallClientAction,
    StartProcessAction,
    RegisterCleanupAction,
    StopProcessAction,
    SetVariableAction,
    GetVariableAction,
    TransformAction,
    MergeAction,
    WaitAction,
)

for _model in (SequenceAction, IfAction, ForEachAction, WhileAction, StartProcessAction, RegisterCleanupAction):
    _model.model_rebuild()

_actions_adapter: TypeAdapter[List[Action]] = TypeAdapter(List[Action])


def parse_actions(raw: List[Dict[str, Any]]) -> List[Action]:
    """Validate a JSON action list into typed action models.

    Raises ``pydantic.ValidationError`` for unknown ``type`` tags or malformed
    nodes.
    """
    return _actions_adapter.validate_python(raw)


def dump_actions(actions: List[Action]) -> List[Dict[str, Any]]:
    """Serialize typed actions back to their JSON spelling."""
    return _actions_adapter.dump_python(actions, by_alias=True, exclude_none=True, mode="json")
