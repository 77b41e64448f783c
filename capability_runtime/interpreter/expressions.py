from __future__ import annotations

"""Evaluation of ``Condition`` and ``Transform`` expressions."""

import json
import math
import re
from typing import Any

from ..schemas.conditions import (
    AndCondition,
    Condition,
    ContainsCondition,
    EqualsCondition,
    ExistsCondition,
    GreaterThanCondition,
    IsEmptyCondition,
    JoinTransform,
    JsonParseTransform,
    JsonStringifyTransform,
    LessThanCondition,
    MapTransform,
    NotCondition,
    OrCondition,
    ParseFloatTransform,
    ParseIntTransform,
    SplitTransform,
    ToLowerCaseTransform,
    ToUpperCaseTransform,
    Transform,
    TrimTransform,
)
from .context import ExecutionContext

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def evaluate_condition(condition: Condition, ctx: ExecutionContext) -> bool:
    """Evaluate ``condition`` against ``ctx``'s bindings.

    Numeric comparisons against a missing or non-numeric variable are False.
    """
    if isinstance(condition, ExistsCondition):
        return ctx.has_variable(condition.target) or ctx.lookup(condition.target) is not None

    if isinstance(condition, EqualsCondition):
        return ctx.resolve_value(condition.left) == ctx.resolve_value(condition.right)

    if isinstance(condition, (GreaterThanCondition, LessThanCondition)):
        left = _as_number(ctx.lookup(condition.left))
        if left is None or math.isnan(left):
            return False
        if isinstance(condition, GreaterThanCondition):
            return left > condition.right
        return left < condition.right

    if isinstance(condition, ContainsCondition):
        source = ctx.lookup(condition.source)
        value = ctx.resolve_value(condition.value)
        if isinstance(source, list):
            return value in source
        if isinstance(source, str):
            return isinstance(value, str) and value in source
        return False

    if isinstance(condition, IsEmptyCondition):
        target = ctx.lookup(condition.target)
        if target is None:
            return True
        if isinstance(target, (list, str, dict)):
            return len(target) == 0
        return False

    if isinstance(condition, AndCondition):
        return all(evaluate_condition(c, ctx) for c in condition.conditions)

    if isinstance(condition, OrCondition):
        return any(evaluate_condition(c, ctx) for c in condition.conditions)

    if isinstance(condition, NotCondition):
        return not evaluate_condition(condition.condition, ctx)

    raise ValueError(f"Unknown condition type: {getattr(condition, 'type', condition)!r}")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def apply_transform(value: Any, transform: Transform) -> Any:
    """
    Apply one transform to ``value``.

    Raises:
        ValueError: ``parseInt``/``parseFloat`` input has no numeric prefix,
            or ``jsonParse`` input is not valid JSON.
    """
    if isinstance(transform, ToLowerCaseTransform):
        return _text(value).lower()
    if isinstance(transform, ToUpperCaseTransform):
        return _text(value).upper()
    if isinstance(transform, TrimTransform):
        return _text(value).strip()
    if isinstance(transform, SplitTransform):
        return _text(value).split(transform.delimiter)
    if isinstance(transform, JoinTransform):
        if isinstance(value, list):
            return transform.delimiter.join(_text(v) for v in value)
        return value
    if isinstance(transform, ParseIntTransform):
        match = _INT_PREFIX.match(_text(value))
        if match is None:
            raise ValueError(f"Cannot parse integer from {value!r}")
        return int(match.group(1))
    if isinstance(transform, ParseFloatTransform):
        match = _FLOAT_PREFIX.match(_text(value))
        if match is None:
            raise ValueError(f"Cannot parse number from {value!r}")
        return float(match.group(1))
    if isinstance(transform, JsonParseTransform):
        return json.loads(_text(value))
    if isinstance(transform, JsonStringifyTransform):
        return json.dumps(value)
    if isinstance(transform, MapTransform):
        if isinstance(value, list):
            return [item.get(transform.field) if isinstance(item, dict) else None for item in value]
        return value

    raise ValueError(f"Unknown transform type: {getattr(transform, 'type', transform)!r}")
