from __future__ import annotations

"""Execution context bound to one capability invocation.

The context holds variable bindings (parameters, ``saveAs`` results, loop
items), the owning definition's configuration and the configurations of its
dependencies. ``forEach`` iterations and process bodies run in child
contexts: reads fall through to the parent, assignments update the nearest
scope that already binds the name and otherwise stay local.

Reference syntax inside action arguments:

- ``{{name}}`` / ``{{name.field}}``: a variable, optionally walked by key or index.
- ``{{config.field}}``: a field of the definition's own configuration.
- ``{{deps.<id>.<field>}}``: a field of a dependency's configuration.

A string that is exactly one reference resolves to the raw value; embedded
references are stringified. Unresolvable references are left untouched.
"""

import json
import re
from typing import Any, Dict, Mapping, Optional

_MISSING = object()
_SINGLE_REF = re.compile(r"^\{\{([^}]+)\}\}$")
_EMBEDDED_REF = re.compile(r"\{\{([^}]+)\}\}")


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _walk(value: Any, path: list[str]) -> Any:
    for part in path:
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        elif isinstance(value, list) and part.isdigit() and int(part) < len(value):
            value = value[int(part)]
        else:
            return _MISSING
    return value


class ExecutionContext:
    def __init__(
        self,
        *,
        agent_id: str,
        capability_name: str,
        variables: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        deps: Optional[Dict[str, Dict[str, Any]]] = None,
        call_context: Optional[Dict[str, Any]] = None,
        parent: Optional[ExecutionContext] = None,
    ) -> None:
        self.agent_id = agent_id
        self.capability_name = capability_name
        self.config: Dict[str, Any] = dict(config or {})
        self.deps: Dict[str, Dict[str, Any]] = dict(deps or {})
        self.call_context: Dict[str, Any] = dict(call_context or {})
        self.parent = parent
        self._variables: Dict[str, Any] = dict(variables or {})

    def child(self, **bindings: Any) -> ExecutionContext:
        """New scope sharing config and deps, with ``bindings`` set locally."""
        return ExecutionContext(
            agent_id=self.agent_id,
            capability_name=self.capability_name,
            variables=bindings,
            config=self.config,
            deps=self.deps,
            call_context=self.call_context,
            parent=self,
        )

    def _owner(self, name: str) -> Optional[ExecutionContext]:
        scope: Optional[ExecutionContext] = self
        while scope is not None:
            if name in scope._variables:
                return scope
            scope = scope.parent
        return None

    def has_variable(self, name: str) -> bool:
        return self._owner(name) is not None

    def get_variable(self, name: str, default: Any = None) -> Any:
        owner = self._owner(name)
        return owner._variables[name] if owner is not None else default

    def set_variable(self, name: str, value: Any) -> None:
        owner = self._owner(name) or self
        owner._variables[name] = value

    @property
    def variables(self) -> Dict[str, Any]:
        """Flattened view of every visible binding."""
        merged = self.parent.variables if self.parent is not None else {}
        merged.update(self._variables)
        return merged

    def _lookup_reference(self, ref: str) -> Any:
        ref = ref.strip()
        head, _, rest = ref.partition(".")
        path = rest.split(".") if rest else []
        if head == "config" and path:
            return _walk(self.config, path)
        if head == "deps" and path:
            return _walk(self.deps, path)
        if self.has_variable(ref):
            return self.get_variable(ref)
        if self.has_variable(head):
            return _walk(self.get_variable(head), path)
        return _MISSING

    def lookup(self, expression: str) -> Any:
        """Resolve a variable name, dotted path or single ``{{ref}}``; ``None`` if unbound."""
        match = _SINGLE_REF.match(expression)
        value = self._lookup_reference(match.group(1) if match else expression)
        return None if value is _MISSING else value

    def resolve_value(self, value: Any) -> Any:
        """Substitute references inside ``value`` (strings, lists and dicts, recursively)."""
        if isinstance(value, str):
            match = _SINGLE_REF.match(value)
            if match:
                resolved = self._lookup_reference(match.group(1))
                return value if resolved is _MISSING or resolved is None else resolved

            def _replace(m: re.Match[str]) -> str:
                resolved = self._lookup_reference(m.group(1))
                return m.group(0) if resolved is _MISSING or resolved is None else _stringify(resolved)

            return _EMBEDDED_REF.sub(_replace, value)
        if isinstance(value, list):
            return [self.resolve_value(item) for item in value]
        if isinstance(value, dict):
            return {key: self.resolve_value(item) for key, item in value.items()}
        return value
