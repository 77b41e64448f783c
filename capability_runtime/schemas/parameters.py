from __future__ import annotations

"""Parameter validation against ``ParameterSpec`` declarations."""

from typing import Any, Dict, List, Sequence

from ..errors import ParameterValidationFailed
from .definitions import ParameterSpec, ParameterType

_PYTHON_TYPES: Dict[ParameterType, tuple[type, ...]] = {
    ParameterType.string: (str,),
    ParameterType.number: (int, float),
    ParameterType.boolean: (bool,),
    ParameterType.array: (list, tuple),
    ParameterType.object: (dict,),
}


def _matches(spec: ParameterSpec, value: Any) -> bool:
    if spec.type == ParameterType.number and isinstance(value, bool):
        return False
    return isinstance(value, _PYTHON_TYPES[spec.type])


def validate_parameters(
    capability_name: str,
    specs: Sequence[ParameterSpec],
    parameters: Dict[str, Any] | None,
) -> Dict[str, Any]:
    """
    Check ``parameters`` against ``specs`` and apply defaults.

    Undeclared parameters are passed through untouched. ``None`` counts as
    absent.

    Returns:
        A new dict with defaults filled in.

    Raises:
        ParameterValidationFailed: Listing every missing required parameter
            and every type mismatch.
    """
    bound = dict(parameters or {})
    problems: List[str] = []
    for spec in specs:
        value = bound.get(spec.name)
        if value is None:
            if spec.default is not None:
                bound[spec.name] = spec.default
            elif spec.required:
                problems.append(f"missing required parameter '{spec.name}'")
            continue
        if not _matches(spec, value):
            problems.append(f"parameter '{spec.name}' expected {spec.type.value}, got {type(value).__name__}")
    if problems:
        raise ParameterValidationFailed(capability_name, problems)
    return bound
