from __future__ import annotations

"""Condition and transform expressions used by control-flow and data actions.

Both are closed discriminated unions on ``type``. Operands that name a
variable (``target``, ``left``, ``source``) are looked up in the execution
context; literal operands (``right``, ``value``) may contain ``{{var}}``
references which are resolved before comparison.
"""

from typing import Annotated, Any, List, Literal, Union

from pydantic import Field

from .base import FrozenSchema


class ExistsCondition(FrozenSchema):
    type: Literal["exists"] = "exists"
    target: str


class EqualsCondition(FrozenSchema):
    type: Literal["equals"] = "equals"
    left: Any
    right: Any = None


class GreaterThanCondition(FrozenSchema):
    type: Literal["greaterThan"] = "greaterThan"
    left: str
    right: float


class LessThanCondition(FrozenSchema):
    type: Literal["lessThan"] = "lessThan"
    left: str
    right: float


class ContainsCondition(FrozenSchema):
    type: Literal["contains"] = "contains"
    source: str
    value: Any = None


class IsEmptyCondition(FrozenSchema):
    type: Literal["isEmpty"] = "isEmpty"
    target: str


class AndCondition(FrozenSchema):
    type: Literal["and"] = "and"
    conditions: List["Condition"] = Field(default_factory=list)


class OrCondition(FrozenSchema):
    type: Literal["or"] = "or"
    conditions: List["Condition"] = Field(default_factory=list)


class NotCondition(FrozenSchema):
    type: Literal["not"] = "not"
    condition: "Condition"


Condition = Annotated[
    Union[
        ExistsCondition,
        EqualsCondition,
        GreaterThanCondition,
        LessThanCondition,
        ContainsCondition,
        IsEmptyCondition,
        AndCondition,
        OrCondition,
        NotCondition,
    ],
    Field(discriminator="type"),
]

AndCondition.model_rebuild()
OrCondition.model_rebuild()
NotCondition.model_rebuild()


class ToLowerCaseTransform(FrozenSchema):
    type: Literal["toLowerCase"] = "toLowerCase"


class ToUpperCaseTransform(FrozenSchema):
    type: Literal["toUpperCase"] = "toUpperCase"


class TrimTransform(FrozenSchema):
    type: Literal["trim"] = "trim"


class SplitTransform(FrozenSchema):
    type: Literal["split"] = "split"
    delimiter: str


class JoinTransform(FrozenSchema):
    type: Literal["join"] = "join"
    delimiter: str


class ParseIntTransform(FrozenSchema):
    type: Literal["parseInt"] = "parseInt"


class ParseFloatTransform(FrozenSchema):
    type: Literal["parseFloat"] = "parseFloat"


class JsonParseTransform(FrozenSchema):
    type: Literal["jsonParse"] = "jsonParse"


class JsonStringifyTransform(FrozenSchema):
    type: Literal["jsonStringify"] = "jsonStringify"


class MapTransform(FrozenSchema):
    type: Literal["map"] = "map"
    field: str


Transform = Annotated[
    Union[
        ToLowerCaseTransform,
        ToUpperCaseTransform,
        TrimTransform,
        SplitTransform,
        JoinTransform,
        ParseIntTransform,
        ParseFloatTransform,
        JsonParseTransform,
        JsonStringifyTransform,
        MapTransform,
    ],
    Field(discriminator="type"),
]
