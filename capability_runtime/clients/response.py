from __future__ import annotations

"""Response shaping for client capabilities.

``extract_path`` understands a small JSONPath subset:

- ``$``: the whole document,
- ``$.a.b`` or ``a.b``: nested keys,
- ``a[0]``: list index,
- ``a[*]``: the whole list under ``a``.

Any missing step yields ``None``.
"""

import re
from typing import Any, Dict, Optional

from ..schemas.definitions import ResponseTransform

_INDEXED = re.compile(r"^(.+)\[(\d+)\]$")
_WILDCARD = re.compile(r"^(.+)\[\*\]$")


def _field(value: Any, name: str) -> Any:
    if isinstance(value, dict):
        return value.get(name)
    return None


def extract_path(data: Any, path: str) -> Any:
    if path == "$":
        return data
    clean = path[2:] if path.startswith("$.") else path
    result = data
    for part in clean.split("."):
        if result is None:
            return None
        indexed = _INDEXED.match(part)
        if indexed:
            items = _field(result, indexed.group(1))
            index = int(indexed.group(2))
            result = items[index] if isinstance(items, list) and index < len(items) else None
            continue
        wildcard = _WILDCARD.match(part)
        if wildcard:
            result = _field(result, wildcard.group(1))
            continue
        result = _field(result, part)
    return result


def map_fields(data: Any, mapping: Dict[str, str]) -> Any:
    """Build ``{target: extract_path(item, source)}`` for an object, or for each item of a list."""
    if isinstance(data, list):
        return [map_fields(item, mapping) for item in data]
    return {target: extract_path(data, source) for target, source in mapping.items()}


def transform_response(data: Any, transform: Optional[ResponseTransform]) -> Any:
    if transform is None:
        return data
    result = data
    if transform.extract:
        result = extract_path(result, transform.extract)
    if transform.map:
        result = map_fields(result, transform.map)
    return result
